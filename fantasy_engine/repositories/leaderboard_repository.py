"""
🏆 LeaderboardRepository - snapshots persistidos de las tablas de clasificación
"""

from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.models.leaderboard import LeaderboardSnapshot
from fantasy_engine.repositories.base import translate_errors


class LeaderboardRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["leaderboards"]

    @translate_errors
    async def replace(self, snapshot: LeaderboardSnapshot) -> LeaderboardSnapshot:
        """Guarda un snapshot recalculado, reemplazando el anterior de la misma ventana"""
        await self.collection.replace_one(
            {"_id": snapshot.id},
            snapshot.model_dump(by_alias=True),
            upsert=True
        )
        return snapshot

    @translate_errors
    async def get(
        self,
        period: str,
        period_key: str,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> Optional[LeaderboardSnapshot]:
        snapshot_id = LeaderboardSnapshot.make_id(period, period_key, game_type, category)
        doc = await self.collection.find_one({"_id": snapshot_id})
        return LeaderboardSnapshot(**doc) if doc else None

    @translate_errors
    async def list_for_period(self, period: str) -> list[LeaderboardSnapshot]:
        """Todas las ventanas guardadas de la tabla general de un periodo, más recientes primero"""
        cursor = self.collection.find({
            "period": period,
            "game_type": None,
            "category": None
        }).sort("generated_at", -1)
        docs = await cursor.to_list(length=None)
        return [LeaderboardSnapshot(**doc) for doc in docs]
