"""
Configuración del motor cargada desde variables de entorno (.env)

Aquí vive todo lo que cambia entre desarrollo y producción.
Las reglas de cada juego viven en el catálogo, no aquí.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "fantasy_engine"
    # Espera máxima de selección de servidor / socket; un timeout es un error reintentable
    mongodb_timeout_ms: int = 5000
    mongodb_max_pool_size: int = 10

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # App
    app_env: str = "development"  # o "production"

    # Selector de preguntas
    selector_cooldown_sessions: int = 5  # sesiones recientes cuyas preguntas no se repiten
    difficulty_mix_easy: float = 0.4
    difficulty_mix_medium: float = 0.4
    difficulty_mix_hard: float = 0.2

    # Las sesiones sin evento se cierran este tiempo después de crearse
    default_game_duration_hours: int = 24

    # Tablas de clasificación
    leaderboard_max_entries: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def difficulty_mix(self) -> dict[str, float]:
        return {
            "EASY": self.difficulty_mix_easy,
            "MEDIUM": self.difficulty_mix_medium,
            "HARD": self.difficulty_mix_hard,
        }


@lru_cache()
def get_settings() -> Settings:
    """Devuelve la instancia de settings cacheada"""
    return Settings()
