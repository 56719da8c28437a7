"""
QuestionService - question pool management and per-user selection.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.config import Settings, get_settings
from fantasy_engine.core.errors import InvalidQuestionError, QuestionNotFoundError
from fantasy_engine.models.question import FantasyQuestion
from fantasy_engine.repositories.question_repository import QuestionRepository
from fantasy_engine.repositories.session_repository import SessionRepository
from fantasy_engine.services.catalog import GameCatalog, default_catalog
from fantasy_engine.services.question_selector import QuestionSelector, SelectionResult

logger = logging.getLogger(__name__)


class QuestionService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        catalog: GameCatalog = default_catalog,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog
        self.question_repo = QuestionRepository(db)
        self.session_repo = SessionRepository(db)
        self.selector = QuestionSelector(mix=self.settings.difficulty_mix)

    async def add_question(self, question: FantasyQuestion) -> FantasyQuestion:
        """
        Add a question to the pool.

        The game type must be in the catalog and allow the question's
        prediction type; choice questions need options to answer with.
        """
        config = self.catalog.get(question.game_type)
        if not config.allows(question.prediction_type):
            raise InvalidQuestionError(
                f"{question.game_type} does not allow {question.prediction_type} questions"
            )
        if question.prediction_type in ("MULTIPLE_CHOICE", "RANKING") and len(question.options) < 2:
            raise InvalidQuestionError("Choice and ranking questions need at least two options")
        if question.prediction_type == "BINARY" and question.options and len(question.options) != 2:
            raise InvalidQuestionError("Binary questions have exactly two options")

        return await self.question_repo.create(question)

    async def get_question(self, question_id: str) -> FantasyQuestion:
        question = await self.question_repo.get_by_id(question_id)
        if not question:
            raise QuestionNotFoundError(f"Question {question_id} not found")
        return question

    async def retire_question(self, question_id: str) -> None:
        if not await self.question_repo.retire(question_id):
            raise QuestionNotFoundError(f"Question {question_id} not found")

    async def get_history(self, user_id: str, game_type: str) -> list[list[str]]:
        """Question ids of the user's cool-down sessions, most recent first"""
        sessions = await self.session_repo.get_recent_for_user(
            user_id,
            game_type=game_type,
            limit=self.settings.selector_cooldown_sessions
        )
        return [s.question_ids for s in sessions]

    async def select_for_user(
        self,
        user_id: str,
        game_type: str,
        count: int,
        event_id: Optional[str] = None,
        seed: Optional[int] = None,
        strict: bool = False
    ) -> SelectionResult:
        """Load the pool and the user's history, then run the selector"""
        config = self.catalog.get(game_type)
        count = min(count, config.max_questions_per_session)

        pool = await self.question_repo.list_pool(game_type, event_id=event_id)
        history = await self.get_history(user_id, game_type)

        selection = self.selector.select(
            pool,
            game_type=game_type,
            count=count,
            event_id=event_id,
            history=history,
            seed=seed,
            strict=strict
        )

        if selection.relaxations:
            logger.info(
                "Relaxed selection for %s/%s: %s (%d of %d)",
                user_id, game_type, ",".join(selection.relaxations),
                len(selection.questions), count
            )
        return selection

