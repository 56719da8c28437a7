from enum import Enum
from pydantic import BaseModel, Field


class GameCategory(str, Enum):
    PRICE_PREDICTION = "price-prediction"
    LIFESTYLE_BUDGET = "lifestyle-budget"
    FASHION_TREND = "fashion-trend"
    CELEBRITY_STYLE = "celebrity-style"


class GameType(str, Enum):
    # Predicción de precios
    GOLD_ORNAMENT_PRICE = "gold-ornament-price"
    SILK_SAREE_PRICE = "silk-saree-price"
    MAKEUP_BEAUTY_PRICE = "makeup-beauty-price"
    VEGETABLE_PRICE = "vegetable-price"
    FRUIT_PRICE = "fruit-price"
    DAILY_GROCERY_PRICE = "daily-grocery-price"
    # Estilo de vida y presupuesto
    KITCHEN_BUDGET = "kitchen-budget"
    WEDDING_BUDGET = "wedding-budget"
    FESTIVAL_EXPENSE = "festival-expense"
    # Moda y tendencias
    SAREE_COLOR_TREND = "saree-color-trend"
    JEWELRY_DESIGN_TREND = "jewelry-design-trend"
    BRIDAL_MAKEUP_TREND = "bridal-makeup-trend"
    # Celebridades y estilo
    CELEBRITY_SAREE_LOOK = "celebrity-saree-look"
    ACTRESS_FASHION_TREND = "actress-fashion-trend"
    VIRAL_FASHION_LOOK = "viral-fashion-look"


class PredictionType(str, Enum):
    BINARY = "BINARY"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    NUMERIC = "NUMERIC"
    RANKING = "RANKING"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class CreatedBy(str, Enum):
    SYSTEM = "system"
    ADMIN = "admin"


class GameConfiguration(BaseModel):
    """Reglas de un tipo de juego. Inmutable: las sesiones guardan una copia"""

    game_type: GameType
    category: GameCategory

    prediction_type: PredictionType  # tipo principal que muestra el juego
    allowed_prediction_types: list[PredictionType]

    points_per_correct: int = Field(..., gt=0)
    numeric_tolerance: float = Field(0.0, ge=0)  # fracción del valor real, 0.05 = 5%

    # Las predicciones cierran estos segundos antes de que empiece el evento
    lock_in_offset_seconds: int = Field(0, ge=0)
    max_questions_per_session: int = Field(..., gt=0)

    class Config:
        frozen = True
        use_enum_values = True

    def allows(self, prediction_type: str) -> bool:
        return prediction_type in self.allowed_prediction_types
