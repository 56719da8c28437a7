"""
PredictionService - Business logic for predictions.

Handles validation, lock-in rules and locking.
"""

import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import ensure_utc, utcnow
from fantasy_engine.core.errors import (
    InvalidPredictionError,
    LockInError,
    QuestionNotFoundError,
    SessionNotFoundError,
)
from fantasy_engine.models.prediction import PredictionValue, UserPrediction
from fantasy_engine.repositories.outcome_repository import ResultRepository
from fantasy_engine.repositories.prediction_repository import PredictionRepository
from fantasy_engine.repositories.question_repository import QuestionRepository
from fantasy_engine.repositories.session_repository import SessionRepository
from fantasy_engine.services.scoring import validate_value

logger = logging.getLogger(__name__)


class PredictionService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.prediction_repo = PredictionRepository(db)
        self.session_repo = SessionRepository(db)
        self.question_repo = QuestionRepository(db)
        self.result_repo = ResultRepository(db)

    async def submit(
        self,
        user_id: str,
        session_id: str,
        question_id: str,
        value: PredictionValue,
        now: Optional[datetime] = None
    ) -> UserPrediction:
        """
        Create or replace the user's prediction for a question.

        Validates:
        - Session exists and belongs to the user
        - Question is part of the session
        - Value matches the question's answer schema
        - Lock-in deadline has not passed and no result is declared
        - Existing prediction is not locked

        Returns the stored prediction.
        """
        now = ensure_utc(now) if now else utcnow()

        session = await self.session_repo.get_by_id(session_id)
        if not session or session.user_id != user_id:
            raise SessionNotFoundError(f"Session {session_id} not found")

        if question_id not in session.question_ids:
            raise InvalidPredictionError(f"Question {question_id} is not part of this session")

        question = await self.question_repo.get_by_id(question_id)
        if not question:
            raise QuestionNotFoundError(f"Question {question_id} not found")

        canonical = validate_value(question, value)

        # Lock-in barrier
        if now > session.lock_at:
            raise LockInError(f"Predictions for this session locked at {session.lock_at.isoformat()}")

        if await self.result_repo.exists(question_id):
            raise LockInError(f"Result for question {question_id} is already declared")

        existing = await self.prediction_repo.get_user_prediction(user_id, question_id)
        if existing and existing.locked:
            raise LockInError("This prediction has been locked")

        prediction = UserPrediction(
            _id=UserPrediction.make_id(user_id, question_id),
            user_id=user_id,
            question_id=question_id,
            session_id=session_id,
            submitted_value=canonical,
            submitted_at=existing.submitted_at if existing else now,
            updated_at=now if existing else None,
            locked=False
        )
        stored = await self.prediction_repo.save_unlocked(prediction)

        # A result declared while the write was in flight: undo it
        if await self.result_repo.exists(question_id):
            if existing:
                await self.prediction_repo.restore(existing)
            else:
                await self.prediction_repo.delete(stored.id)
            logger.warning("Prediction %s arrived after the result for %s", stored.id, question_id)
            raise LockInError(f"Result for question {question_id} is already declared")

        logger.debug("Prediction %s saved", stored.id)
        return stored

    async def get_user_prediction(
        self,
        user_id: str,
        question_id: str
    ) -> Optional[UserPrediction]:
        return await self.prediction_repo.get_user_prediction(user_id, question_id)

    async def get_session_predictions(self, session_id: str) -> list[UserPrediction]:
        return await self.prediction_repo.get_for_session(session_id)

    async def get_user_predictions(self, user_id: str, limit: int = 100) -> list[UserPrediction]:
        return await self.prediction_repo.get_user_predictions(user_id, limit)

    async def get_answer_distribution(self, question_id: str) -> dict:
        return await self.prediction_repo.get_answer_distribution(question_id)

    async def lock_predictions_for_question(self, question_id: str) -> int:
        """
        Lock all predictions for a question.

        Called when the result is declared.
        Returns number of predictions locked.
        """
        locked = await self.prediction_repo.lock_for_question(question_id)
        logger.info("Locked %d predictions for question %s", locked, question_id)
        return locked
