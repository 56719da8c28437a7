"""
BadgeRepository - MongoDB access for user badges.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from fantasy_engine.models.badge import UserBadge
from fantasy_engine.repositories.base import translate_errors


class BadgeRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["user_badges"]

    @translate_errors
    async def grant(self, badge: UserBadge) -> bool:
        """Insert the badge. False if the user already holds it."""
        try:
            await self.collection.insert_one(badge.model_dump(by_alias=True))
            return True
        except DuplicateKeyError:
            return False

    @translate_errors
    async def exists(self, user_id: str, badge_type: str) -> bool:
        count = await self.collection.count_documents(
            {"_id": UserBadge.make_id(user_id, badge_type)},
            limit=1
        )
        return count > 0

    @translate_errors
    async def list_for_user(self, user_id: str) -> list[UserBadge]:
        cursor = self.collection.find({"user_id": user_id}).sort("awarded_at", 1)
        docs = await cursor.to_list(length=None)
        return [UserBadge(**doc) for doc in docs]

    @translate_errors
    async def badge_types_by_user(self, user_ids: list[str]) -> dict[str, list[str]]:
        """user_id -> badge types held, for leaderboard snapshots"""
        if not user_ids:
            return {}
        cursor = self.collection.find({"user_id": {"$in": user_ids}}).sort("awarded_at", 1)
        docs = await cursor.to_list(length=None)

        by_user: dict[str, list[str]] = {}
        for doc in docs:
            by_user.setdefault(doc["user_id"], []).append(doc["badge_type"])
        return by_user
