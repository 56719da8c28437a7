from .question_repository import QuestionRepository
from .event_repository import EventRepository
from .session_repository import SessionRepository
from .prediction_repository import PredictionRepository
from .outcome_repository import OutcomeRepository, ResultRepository
from .wallet_repository import WalletRepository
from .badge_repository import BadgeRepository
from .leaderboard_repository import LeaderboardRepository

__all__ = [
    "QuestionRepository",
    "EventRepository",
    "SessionRepository",
    "PredictionRepository",
    "OutcomeRepository",
    "ResultRepository",
    "WalletRepository",
    "BadgeRepository",
    "LeaderboardRepository",
]
