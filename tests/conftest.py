"""
Pytest fixtures and configuration for all tests.
"""

import pytest
from typing import AsyncGenerator
from datetime import datetime, timedelta, timezone

from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.config import Settings
from fantasy_engine.database import create_indexes
from fantasy_engine.models.prediction import FantasyResult, ScoringOutcome, UserPrediction
from fantasy_engine.models.question import FantasyEvent, FantasyQuestion

TEST_DB_NAME = "fantasy_engine_test"

# Monday, ISO week 43
FIXED_NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
async def test_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """
    Provide a clean in-memory database for each test.

    Indexes are created up front: the unique ones carry the engine's
    idempotence guarantees.
    """
    client = AsyncMongoMockClient()
    db = client[TEST_DB_NAME]
    await create_indexes(db)

    yield db

    for collection_name in await db.list_collection_names():
        await db[collection_name].drop()


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env"""
    return Settings(_env_file=None)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_question():
    """Build a FantasyQuestion with sensible defaults."""

    def _make(question_id: str = "q1", **overrides) -> FantasyQuestion:
        data = {
            "_id": question_id,
            "game_type": "vegetable-price",
            "prediction_type": "NUMERIC",
            "difficulty": "EASY",
            "event_id": None,
            "prompt": "Price of 1kg tomatoes at Koyambedu tomorrow?",
            "options": [],
            "min_value": 0,
            "max_value": 1000,
            "unit": "₹",
            "created_at": FIXED_NOW - timedelta(days=30),
        }
        data.update(overrides)
        return FantasyQuestion(**data)

    return _make


@pytest.fixture
def make_prediction():
    def _make(
        value,
        user_id: str = "user123",
        question_id: str = "q1",
        session_id: str = "s1",
        submitted_at: datetime = FIXED_NOW
    ) -> UserPrediction:
        return UserPrediction(
            _id=UserPrediction.make_id(user_id, question_id),
            user_id=user_id,
            question_id=question_id,
            session_id=session_id,
            submitted_value=value,
            submitted_at=submitted_at,
        )

    return _make


@pytest.fixture
def make_result():
    def _make(actual_value, question_id: str = "q1") -> FantasyResult:
        return FantasyResult(
            _id=question_id,
            actual_value=actual_value,
            declared_at=FIXED_NOW,
            declared_by="admin1",
            source="Manual",
        )

    return _make


@pytest.fixture
def make_outcome():
    def _make(
        user_id: str,
        question_id: str,
        points: int,
        ratio: float,
        computed_at: datetime,
        session_id: str = "s1",
        game_type: str = "vegetable-price",
        difficulty: str = "EASY"
    ) -> ScoringOutcome:
        return ScoringOutcome(
            _id=UserPrediction.make_id(user_id, question_id),
            user_id=user_id,
            question_id=question_id,
            session_id=session_id,
            game_type=game_type,
            difficulty=difficulty,
            points_awarded=points,
            correctness_ratio=ratio,
            computed_at=computed_at,
        )

    return _make


@pytest.fixture
def sample_event_data():
    """Sample event data for testing."""
    return {
        "_id": "evt-diwali-2026",
        "game_type": "gold-ornament-price",
        "title": "Diwali gold rush",
        "start_time": FIXED_NOW + timedelta(days=2),
        "end_time": FIXED_NOW + timedelta(days=3),
        "active": True,
        "created_at": FIXED_NOW - timedelta(days=7),
    }


@pytest.fixture
def sample_event(sample_event_data) -> FantasyEvent:
    return FantasyEvent(**sample_event_data)
