from typing import Optional, Union
from pydantic import BaseModel, Field

from fantasy_engine.models.game import Difficulty, GameType
from fantasy_engine.models.types import UTCDateTime

# bool para respuestas BINARY de sí/no, str para una opción,
# número para NUMERIC, lista ordenada de opciones para RANKING
PredictionValue = Union[bool, int, float, str, list[str]]


class UserPrediction(BaseModel):
    """Respuesta de un usuario a una pregunta"""

    id: str = Field(..., alias="_id")  # user_id:question_id

    user_id: str
    question_id: str
    session_id: str

    submitted_value: PredictionValue

    submitted_at: UTCDateTime
    updated_at: Optional[UTCDateTime] = None

    locked: bool = False

    class Config:
        populate_by_name = True

    @staticmethod
    def make_id(user_id: str, question_id: str) -> str:
        return f"{user_id}:{question_id}"


class FantasyResult(BaseModel):
    """Resultado real declarado de una pregunta. Se escribe una sola vez"""

    question_id: str = Field(..., alias="_id")

    actual_value: PredictionValue

    declared_at: UTCDateTime
    declared_by: str  # id del admin

    source: Optional[str] = None  # "API", "Manual", "Market Data"
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class ScoringOutcome(BaseModel):
    """Puntuación de una predicción contra su resultado. Se escribe una sola vez"""

    prediction_id: str = Field(..., alias="_id")

    user_id: str
    question_id: str
    session_id: str

    # Denormalizado: estadísticas y tablas no necesitan leer las preguntas
    game_type: GameType
    difficulty: Difficulty

    points_awarded: int = Field(..., ge=0)
    correctness_ratio: float = Field(..., ge=0.0, le=1.0)

    computed_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def is_correct(self) -> bool:
        return self.correctness_ratio >= 1.0
