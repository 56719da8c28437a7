"""
SessionService - opens fantasy sessions.

A session is the bounded set of questions one user plays at one time.
The game configuration is snapshotted into the session so later catalog
changes never affect predictions already made under it.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import ensure_utc, utcnow
from fantasy_engine.core.config import Settings, get_settings
from fantasy_engine.core.errors import EventNotFoundError, InvalidSessionError, SessionNotFoundError
from fantasy_engine.models.session import FantasySession
from fantasy_engine.repositories.event_repository import EventRepository
from fantasy_engine.repositories.session_repository import SessionRepository
from fantasy_engine.services.catalog import GameCatalog, default_catalog
from fantasy_engine.services.question_service import QuestionService

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        catalog: GameCatalog = default_catalog,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog
        self.session_repo = SessionRepository(db)
        self.event_repo = EventRepository(db)
        self.question_service = QuestionService(db, catalog=catalog, settings=self.settings)

    async def start_session(
        self,
        user_id: str,
        game_type: str,
        count: Optional[int] = None,
        event_id: Optional[str] = None,
        starts_at: Optional[datetime] = None,
        seed: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> FantasySession:
        """
        Select questions for the user and store the session.

        lock_at = start - lock_in_offset_seconds, where start is the event's
        start time when an event is given, else `starts_at`, else now plus
        the default game duration.
        """
        config = self.catalog.get(game_type)
        now = now or utcnow()

        event = None
        if event_id is not None:
            event = await self.event_repo.get_by_id(event_id)
            if not event:
                raise EventNotFoundError(f"Event {event_id} not found")
            if event.game_type != config.game_type:
                raise InvalidSessionError(f"Event {event_id} is not a {game_type} event")

        if event is not None:
            start = event.start_time
        elif starts_at is not None:
            start = ensure_utc(starts_at)
        else:
            start = now + timedelta(hours=self.settings.default_game_duration_hours)
        lock_at = start - timedelta(seconds=config.lock_in_offset_seconds)

        selection = await self.question_service.select_for_user(
            user_id,
            game_type,
            count or config.max_questions_per_session,
            event_id=event_id,
            seed=seed
        )

        session = FantasySession(
            _id=str(uuid.uuid4()),
            user_id=user_id,
            game_type=config.game_type,
            event_id=event_id,
            question_ids=selection.question_ids,
            config=config,
            lock_at=lock_at,
            seed=seed,
            relaxations=selection.relaxations,
            created_at=now
        )
        await self.session_repo.create(session)

        logger.info(
            "Session %s started for %s: %d questions, locks at %s",
            session.id, user_id, len(session.question_ids), lock_at.isoformat()
        )
        return session

    async def get_session(self, session_id: str) -> FantasySession:
        session = await self.session_repo.get_by_id(session_id)
        if not session:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def get_recent_sessions(self, user_id: str, limit: int = 10) -> list[FantasySession]:
        return await self.session_repo.get_recent_for_user(user_id, limit=limit)
