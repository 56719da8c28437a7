from typing import Optional
from pydantic import BaseModel, Field

from fantasy_engine.models.game import CreatedBy, Difficulty, GameType, PredictionType
from fantasy_engine.models.types import UTCDateTime


class FantasyEvent(BaseModel):
    """Evento real sobre el que trata un grupo de preguntas (un día de mercado, un festival...)"""

    id: str = Field(..., alias="_id")
    game_type: GameType
    title: str

    start_time: UTCDateTime
    end_time: Optional[UTCDateTime] = None

    active: bool = True
    created_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True


class FantasyQuestion(BaseModel):
    """
    Pregunta de predicción reutilizable.

    El esquema de respuesta depende de prediction_type:
    - BINARY: exactamente dos opciones
    - MULTIPLE_CHOICE: dos o más opciones
    - RANKING: las opciones a ordenar
    - NUMERIC: límites min_value / max_value opcionales
    """

    id: str = Field(..., alias="_id")

    game_type: GameType
    prediction_type: PredictionType
    difficulty: Difficulty

    event_id: Optional[str] = None  # None = atemporal

    prompt: str
    options: list[str] = []

    min_value: Optional[float] = None
    max_value: Optional[float] = None
    unit: Optional[str] = None  # "₹", "%", "kg"...

    created_by: CreatedBy = CreatedBy.SYSTEM
    reusable: bool = True
    active: bool = True  # False = retirada (soft delete)

    tags: list[str] = []

    created_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def is_evergreen(self) -> bool:
        return self.event_id is None
