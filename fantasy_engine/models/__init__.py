from .game import (
    CreatedBy,
    Difficulty,
    GameCategory,
    GameConfiguration,
    GameType,
    PredictionType,
)
from .question import FantasyEvent, FantasyQuestion
from .session import FantasySession
from .prediction import FantasyResult, ScoringOutcome, UserPrediction
from .wallet import CoinTransaction, TransactionType, UserWallet
from .badge import BADGE_DEFINITIONS, BadgeType, UserBadge
from .leaderboard import LeaderboardEntry, LeaderboardPeriod, LeaderboardSnapshot

__all__ = [
    "CreatedBy",
    "Difficulty",
    "GameCategory",
    "GameConfiguration",
    "GameType",
    "PredictionType",
    "FantasyEvent",
    "FantasyQuestion",
    "FantasySession",
    "FantasyResult",
    "ScoringOutcome",
    "UserPrediction",
    "CoinTransaction",
    "TransactionType",
    "UserWallet",
    "BADGE_DEFINITIONS",
    "BadgeType",
    "UserBadge",
    "LeaderboardEntry",
    "LeaderboardPeriod",
    "LeaderboardSnapshot",
]
