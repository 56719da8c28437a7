"""
📅 EventRepository - eventos reales a los que se asocian las preguntas
"""

from datetime import datetime
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from fantasy_engine.core.errors import InvalidEventError
from fantasy_engine.models.question import FantasyEvent
from fantasy_engine.repositories.base import translate_errors


class EventRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["fantasy_events"]

    @translate_errors
    async def create(self, event: FantasyEvent) -> FantasyEvent:
        try:
            await self.collection.insert_one(event.model_dump(by_alias=True))
            return event
        except DuplicateKeyError:
            raise InvalidEventError(f"Event {event.id} already exists")

    @translate_errors
    async def get_by_id(self, event_id: str) -> Optional[FantasyEvent]:
        doc = await self.collection.find_one({"_id": event_id})
        return FantasyEvent(**doc) if doc else None

    @translate_errors
    async def get_active(self, game_type: str, now: datetime) -> list[FantasyEvent]:
        """
        Eventos de un tipo de juego abiertos en `now`, el más próximo primero.
        """
        cursor = self.collection.find({
            "game_type": game_type,
            "active": True
        })
        docs = await cursor.to_list(length=None)
        events = [FantasyEvent(**doc) for doc in docs]

        # Ventana revisada en Python; end_time es opcional
        open_events = [
            e for e in events
            if e.end_time is None or e.end_time >= now
        ]
        open_events.sort(key=lambda e: e.start_time)
        return open_events
