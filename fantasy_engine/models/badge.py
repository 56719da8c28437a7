from enum import Enum
from typing import Any
from pydantic import BaseModel, Field

from fantasy_engine.models.types import UTCDateTime


class BadgeType(str, Enum):
    GOLD_QUEEN = "gold-queen"
    SAREE_SENSEI = "saree-sensei"
    BUDGET_BOSS = "budget-boss"
    TREND_SETTER = "trend-setter"
    PREDICTION_MASTER = "prediction-master"
    FANTASY_CHAMPION = "fantasy-champion"
    EARLY_BIRD = "early-bird"
    STREAK_KEEPER = "streak-keeper"


BADGE_DEFINITIONS: dict[BadgeType, dict[str, str]] = {
    BadgeType.GOLD_QUEEN: {
        "name": "Gold Queen",
        "description": "Master of gold price predictions",
    },
    BadgeType.SAREE_SENSEI: {
        "name": "Saree Sensei",
        "description": "Expert in saree trends and prices",
    },
    BadgeType.BUDGET_BOSS: {
        "name": "Budget Boss",
        "description": "Champion of budget predictions",
    },
    BadgeType.TREND_SETTER: {
        "name": "Trend Setter",
        "description": "Always ahead of fashion trends",
    },
    BadgeType.PREDICTION_MASTER: {
        "name": "Prediction Master",
        "description": "Consistently accurate on hard questions",
    },
    BadgeType.FANTASY_CHAMPION: {
        "name": "Fantasy Champion",
        "description": "Top 3 in a weekly leaderboard",
    },
    BadgeType.EARLY_BIRD: {
        "name": "Early Bird",
        "description": "First to predict in multiple questions",
    },
    BadgeType.STREAK_KEEPER: {
        "name": "Streak Keeper",
        "description": "Logged in seven days in a row",
    },
}


class UserBadge(BaseModel):
    """Como máximo una por (user_id, badge_type); nunca se revoca"""

    id: str = Field(..., alias="_id")  # user_id:badge_type

    user_id: str
    badge_type: BadgeType
    awarded_at: UTCDateTime

    metadata: dict[str, Any] = {}

    class Config:
        populate_by_name = True
        use_enum_values = True

    @staticmethod
    def make_id(user_id: str, badge_type: str) -> str:
        return f"{user_id}:{badge_type}"
