"""
Badge Evaluator - grants badges when cumulative stats cross a threshold.

Predicates are pure functions of UserStats; the evaluator gathers the
stats, checks every predicate, and grants what the user does not hold yet.
Badges are never revoked.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import utcnow
from fantasy_engine.models.badge import BADGE_DEFINITIONS, BadgeType, UserBadge
from fantasy_engine.models.game import Difficulty, GameCategory, GameType
from fantasy_engine.models.wallet import TransactionType
from fantasy_engine.repositories.badge_repository import BadgeRepository
from fantasy_engine.repositories.outcome_repository import OutcomeRepository
from fantasy_engine.repositories.prediction_repository import PredictionRepository
from fantasy_engine.repositories.wallet_repository import WalletRepository
from fantasy_engine.services.catalog import GameCatalog, default_catalog
from fantasy_engine.services.leaderboard_service import LeaderboardService

logger = logging.getLogger(__name__)

HARD_CORRECT_THRESHOLD = 10
LOGIN_STREAK_THRESHOLD = 7
WEEKLY_RANK_THRESHOLD = 3
GAME_CORRECT_THRESHOLD = 5
CATEGORY_CORRECT_THRESHOLD = 5
FIRST_PREDICTOR_THRESHOLD = 3

SAREE_GAMES = (
    GameType.SILK_SAREE_PRICE.value,
    GameType.SAREE_COLOR_TREND.value,
    GameType.CELEBRITY_SAREE_LOOK.value,
)


@dataclass
class UserStats:
    user_id: str
    correct_by_game: Counter = field(default_factory=Counter)
    correct_by_category: Counter = field(default_factory=Counter)
    correct_hard: int = 0
    login_streak: int = 0  # longest run of consecutive login days
    first_predictions: int = 0  # questions where the user predicted first
    best_weekly_rank: Optional[int] = None


def longest_day_streak(days: set[date]) -> int:
    best = 0
    for day in days:
        if day - timedelta(days=1) in days:
            continue
        run = 1
        while day + timedelta(days=run) in days:
            run += 1
        best = max(best, run)
    return best


BADGE_RULES: dict[BadgeType, Callable[[UserStats], bool]] = {
    BadgeType.GOLD_QUEEN: lambda s: (
        s.correct_by_game[GameType.GOLD_ORNAMENT_PRICE.value] >= GAME_CORRECT_THRESHOLD
    ),
    BadgeType.SAREE_SENSEI: lambda s: (
        sum(s.correct_by_game[g] for g in SAREE_GAMES) >= GAME_CORRECT_THRESHOLD
    ),
    BadgeType.BUDGET_BOSS: lambda s: (
        s.correct_by_category[GameCategory.LIFESTYLE_BUDGET.value] >= CATEGORY_CORRECT_THRESHOLD
    ),
    BadgeType.TREND_SETTER: lambda s: (
        s.correct_by_category[GameCategory.FASHION_TREND.value] >= CATEGORY_CORRECT_THRESHOLD
    ),
    BadgeType.PREDICTION_MASTER: lambda s: s.correct_hard >= HARD_CORRECT_THRESHOLD,
    BadgeType.FANTASY_CHAMPION: lambda s: (
        s.best_weekly_rank is not None and s.best_weekly_rank <= WEEKLY_RANK_THRESHOLD
    ),
    BadgeType.EARLY_BIRD: lambda s: s.first_predictions >= FIRST_PREDICTOR_THRESHOLD,
    BadgeType.STREAK_KEEPER: lambda s: s.login_streak >= LOGIN_STREAK_THRESHOLD,
}


def earned_badges(stats: UserStats) -> list[BadgeType]:
    return [badge for badge, rule in BADGE_RULES.items() if rule(stats)]


class BadgeEvaluator:
    def __init__(self, db: AsyncIOMotorDatabase, catalog: GameCatalog = default_catalog):
        self.catalog = catalog
        self.badge_repo = BadgeRepository(db)
        self.outcome_repo = OutcomeRepository(db)
        self.prediction_repo = PredictionRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.leaderboard_service = LeaderboardService(db, catalog=catalog)

    async def _count_first_predictions(self, user_id: str) -> int:
        own = await self.prediction_repo.get_user_predictions(user_id, limit=None)
        question_ids = [p.question_id for p in own]
        everyone = await self.prediction_repo.get_for_questions(question_ids)

        first: dict[str, tuple] = {}
        for prediction in everyone:
            key = (prediction.submitted_at, prediction.id)
            if prediction.question_id not in first or key < first[prediction.question_id][0]:
                first[prediction.question_id] = (key, prediction.user_id)
        return sum(1 for _, uid in first.values() if uid == user_id)

    async def collect_stats(self, user_id: str) -> UserStats:
        stats = UserStats(user_id=user_id)

        for outcome in await self.outcome_repo.get_for_user(user_id):
            if not outcome.is_correct:
                continue
            stats.correct_by_game[outcome.game_type] += 1
            stats.correct_by_category[self.catalog.category_of(outcome.game_type)] += 1
            if outcome.difficulty == Difficulty.HARD.value:
                stats.correct_hard += 1

        logins = {
            tx.created_at.date()
            for tx in await self.wallet_repo.list_transactions(user_id)
            if tx.type == TransactionType.DAILY_LOGIN.value
        }
        stats.login_streak = longest_day_streak(logins)
        stats.first_predictions = await self._count_first_predictions(user_id)
        stats.best_weekly_rank = await self.leaderboard_service.best_weekly_rank(user_id)
        return stats

    async def evaluate(self, user_id: str) -> list[BadgeType]:
        """Grant every badge the user has earned and does not hold; returns the new ones"""
        stats = await self.collect_stats(user_id)

        granted = []
        for badge_type in earned_badges(stats):
            if await self.badge_repo.exists(user_id, badge_type.value):
                continue

            badge = UserBadge(
                _id=UserBadge.make_id(user_id, badge_type.value),
                user_id=user_id,
                badge_type=badge_type,
                awarded_at=utcnow(),
                metadata={"name": BADGE_DEFINITIONS[badge_type]["name"]}
            )
            # Unique index still guards a concurrent evaluation
            if await self.badge_repo.grant(badge):
                granted.append(badge_type)
                logger.info("Badge %s granted to %s", badge_type.value, user_id)
        return granted

    async def evaluate_many(self, user_ids) -> dict[str, list[BadgeType]]:
        results = {}
        for user_id in sorted(user_ids):
            results[user_id] = await self.evaluate(user_id)
        return results

    async def list_badges(self, user_id: str) -> list[UserBadge]:
        return await self.badge_repo.list_for_user(user_id)
