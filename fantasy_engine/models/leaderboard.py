from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from fantasy_engine.models.types import UTCDateTime


class LeaderboardPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    OVERALL = "overall"


class LeaderboardEntry(BaseModel):
    """Fila de una tabla de clasificación (resultado agregado)"""

    user_id: str
    period: LeaderboardPeriod

    total_points: int
    coins_earned: int = 0

    games_played: int
    predictions_total: int
    predictions_correct: int
    win_rate: float  # predictions_correct / predictions_total

    rank: int
    badges: list[str] = []  # copia al momento del recálculo

    last_point_at: Optional[UTCDateTime] = None  # cuándo se alcanzó el total

    class Config:
        populate_by_name = True
        use_enum_values = True


class LeaderboardSnapshot(BaseModel):
    """Resultado guardado de un recálculo; se reemplaza entero, nunca se parchea"""

    id: str = Field(..., alias="_id")  # period:period_key[:game=...][:category=...]

    period: LeaderboardPeriod
    period_key: str  # "2026-10-19", "2026-W42", "2026-10", "all-time"

    # Tabla de un juego o de una categoría; None en ambos = tabla general
    game_type: Optional[str] = None
    category: Optional[str] = None

    window_start: Optional[UTCDateTime] = None
    window_end: Optional[UTCDateTime] = None

    entries: list[LeaderboardEntry]
    generated_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True

    @staticmethod
    def make_id(
        period: str,
        period_key: str,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> str:
        parts = [period, period_key]
        if game_type:
            parts.append(f"game={game_type}")
        if category:
            parts.append(f"category={category}")
        return ":".join(parts)
