"""
SessionRepository - MongoDB access for fantasy sessions.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.models.session import FantasySession
from fantasy_engine.repositories.base import translate_errors


class SessionRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["fantasy_sessions"]

    @translate_errors
    async def create(self, session: FantasySession) -> FantasySession:
        await self.collection.insert_one(session.model_dump(by_alias=True))
        return session

    @translate_errors
    async def get_by_id(self, session_id: str) -> Optional[FantasySession]:
        doc = await self.collection.find_one({"_id": session_id})
        return FantasySession(**doc) if doc else None

    @translate_errors
    async def get_recent_for_user(
        self,
        user_id: str,
        game_type: Optional[str] = None,
        limit: int = 5
    ) -> list[FantasySession]:
        """Most recent sessions first"""
        query: dict = {"user_id": user_id}
        if game_type:
            query["game_type"] = game_type

        cursor = self.collection.find(query).sort([
            ("created_at", -1),
            ("_id", -1)
        ]).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [FantasySession(**doc) for doc in docs]
