"""
OutcomeRepository - write-once scoring outcomes and declared results.

Both collections use the natural key as _id (prediction id / question id)
so a second write for the same key collides instead of duplicating.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from fantasy_engine.core.errors import DuplicateOutcomeError, DuplicateResultError
from fantasy_engine.models.prediction import FantasyResult, ScoringOutcome
from fantasy_engine.repositories.base import translate_errors


class ResultRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["fantasy_results"]

    @translate_errors
    async def create(self, result: FantasyResult) -> FantasyResult:
        try:
            await self.collection.insert_one(result.model_dump(by_alias=True))
            return result
        except DuplicateKeyError:
            raise DuplicateResultError(result.question_id)

    @translate_errors
    async def get(self, question_id: str) -> Optional[FantasyResult]:
        doc = await self.collection.find_one({"_id": question_id})
        return FantasyResult(**doc) if doc else None

    @translate_errors
    async def exists(self, question_id: str) -> bool:
        count = await self.collection.count_documents({"_id": question_id}, limit=1)
        return count > 0


class OutcomeRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["scoring_outcomes"]

    @translate_errors
    async def create(self, outcome: ScoringOutcome) -> ScoringOutcome:
        try:
            await self.collection.insert_one(outcome.model_dump(by_alias=True))
            return outcome
        except DuplicateKeyError:
            raise DuplicateOutcomeError(outcome.prediction_id)

    @translate_errors
    async def get(self, prediction_id: str) -> Optional[ScoringOutcome]:
        doc = await self.collection.find_one({"_id": prediction_id})
        return ScoringOutcome(**doc) if doc else None

    @translate_errors
    async def get_for_question(self, question_id: str) -> list[ScoringOutcome]:
        cursor = self.collection.find({"question_id": question_id})
        docs = await cursor.to_list(length=None)
        return [ScoringOutcome(**doc) for doc in docs]

    @translate_errors
    async def get_for_user(self, user_id: str) -> list[ScoringOutcome]:
        """Oldest first, the order streaks are counted in"""
        cursor = self.collection.find({"user_id": user_id}).sort([
            ("computed_at", 1),
            ("_id", 1)
        ])
        docs = await cursor.to_list(length=None)
        return [ScoringOutcome(**doc) for doc in docs]

    @translate_errors
    async def list_all(self) -> list[ScoringOutcome]:
        """Whole outcome history; leaderboards project from one read of it"""
        cursor = self.collection.find({})
        docs = await cursor.to_list(length=None)
        return [ScoringOutcome(**doc) for doc in docs]
