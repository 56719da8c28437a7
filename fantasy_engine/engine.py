"""
FantasyEngine - wires the services together around a database handle.

`on_result_declared` is the single entry point for admin tooling:

    result declared -> predictions locked -> scoring pass
        -> badges for affected users -> leaderboards recomputed

Every step is idempotent, so a repeated or retried declaration resumes
where the previous attempt stopped.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import utcnow
from fantasy_engine.core.config import Settings, get_settings
from fantasy_engine.core.errors import DuplicateResultError, InvalidResultError, QuestionNotFoundError
from fantasy_engine.models.badge import BadgeType
from fantasy_engine.models.prediction import FantasyResult
from fantasy_engine.repositories.outcome_repository import ResultRepository
from fantasy_engine.repositories.question_repository import QuestionRepository
from fantasy_engine.services.badge_service import BadgeEvaluator
from fantasy_engine.services.catalog import GameCatalog, default_catalog
from fantasy_engine.services.coin_ledger import CoinLedger
from fantasy_engine.services.leaderboard_service import LeaderboardService
from fantasy_engine.services.prediction_service import PredictionService
from fantasy_engine.services.question_service import QuestionService
from fantasy_engine.services.reward_service import RewardService
from fantasy_engine.services.scoring import validate_result_value
from fantasy_engine.services.scoring_service import ScoringService, ScoringSummary
from fantasy_engine.services.session_service import SessionService

logger = logging.getLogger(__name__)


@dataclass
class ResultReport:
    result: FantasyResult
    predictions_locked: int
    scoring: ScoringSummary
    badges_granted: dict[str, list[BadgeType]] = field(default_factory=dict)
    leaderboards: list[str] = field(default_factory=list)


class FantasyEngine:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        catalog: GameCatalog = default_catalog,
        settings: Optional[Settings] = None
    ):
        self.db = db
        self.catalog = catalog
        self.settings = settings or get_settings()

        self.question_repo = QuestionRepository(db)
        self.result_repo = ResultRepository(db)

        self.ledger = CoinLedger(db)
        self.questions = QuestionService(db, catalog=catalog, settings=self.settings)
        self.sessions = SessionService(db, catalog=catalog, settings=self.settings)
        self.predictions = PredictionService(db)
        self.scoring = ScoringService(db, catalog=catalog, ledger=self.ledger)
        self.rewards = RewardService(db, ledger=self.ledger)
        self.badges = BadgeEvaluator(db, catalog=catalog)
        self.leaderboards = LeaderboardService(db, settings=self.settings, catalog=catalog)

    async def declare_result(self, result: FantasyResult) -> FantasyResult:
        """
        Validate and store a result; a repeated declaration returns the stored one.

        The first declaration wins: a second one with a different value does
        not replace it.
        """
        question = await self.question_repo.get_by_id(result.question_id)
        if not question:
            raise QuestionNotFoundError(f"Question {result.question_id} not found")

        canonical = validate_result_value(question, result.actual_value)
        result = result.model_copy(update={"actual_value": canonical})

        try:
            return await self.result_repo.create(result)
        except DuplicateResultError:
            stored = await self.result_repo.get(result.question_id)
            if stored.actual_value != result.actual_value:
                raise InvalidResultError(
                    f"Question {result.question_id} already has a different result"
                )
            logger.info("Result for %s already declared, resuming", result.question_id)
            return stored

    async def _recompute_boards(self, game_type: str) -> list[str]:
        """General boards plus the boards of the question's game and category"""
        now = utcnow()
        scopes = [
            {},
            {"game_type": game_type},
            {"category": self.catalog.category_of(game_type)},
        ]

        boards = []
        for scope in scopes:
            recomputed = await self.leaderboards.recompute_all(now, **scope)
            boards.extend(
                self.leaderboards.snapshot_id(period, now, **scope)
                for period in recomputed
            )
        return boards

    async def on_result_declared(self, result: FantasyResult) -> ResultReport:
        result = await self.declare_result(result)
        question = await self.question_repo.get_by_id(result.question_id)

        locked = await self.predictions.lock_predictions_for_question(result.question_id)
        summary = await self.scoring.run_pass(result)
        granted = await self.badges.evaluate_many(summary.users_affected)
        boards = await self._recompute_boards(question.game_type)

        return ResultReport(
            result=result,
            predictions_locked=locked,
            scoring=summary,
            badges_granted={uid: b for uid, b in granted.items() if b},
            leaderboards=boards
        )
