from typing import Optional
from pydantic import BaseModel, Field

from fantasy_engine.models.game import GameConfiguration, GameType
from fantasy_engine.models.types import UTCDateTime


class FantasySession(BaseModel):
    """Conjunto acotado de preguntas presentado a un usuario en un momento dado"""

    id: str = Field(..., alias="_id")

    user_id: str
    game_type: GameType
    event_id: Optional[str] = None

    question_ids: list[str]

    config: GameConfiguration  # copia tomada al crear la sesión
    lock_at: UTCDateTime  # se rechazan predicciones posteriores a este instante

    seed: Optional[int] = None
    relaxations: list[str] = []  # restricciones del selector relajadas para llenar la sesión

    created_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True
