"""
Game Catalog - rule set per supported game type.

Configurations are frozen models; a catalog built with overrides is fixed
from then on, and sessions snapshot the configuration they were built with.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from fantasy_engine.core.errors import UnknownGameTypeError
from fantasy_engine.models.game import (
    GameCategory,
    GameConfiguration,
    GameType,
    PredictionType,
)

_PRICE = [PredictionType.BINARY, PredictionType.NUMERIC, PredictionType.MULTIPLE_CHOICE]
_MARKET = [PredictionType.NUMERIC, PredictionType.MULTIPLE_CHOICE]
_BUDGET = [PredictionType.NUMERIC, PredictionType.MULTIPLE_CHOICE, PredictionType.RANKING]
_TREND = [PredictionType.MULTIPLE_CHOICE, PredictionType.RANKING, PredictionType.BINARY]


def _config(
    game_type: GameType,
    category: GameCategory,
    prediction_type: PredictionType,
    allowed: list[PredictionType],
    points: int = 100,
    tolerance: float = 0.0,
    lock_in_offset_seconds: int = 3600,
    max_questions: int = 5,
) -> GameConfiguration:
    return GameConfiguration(
        game_type=game_type,
        category=category,
        prediction_type=prediction_type,
        allowed_prediction_types=allowed,
        points_per_correct=points,
        numeric_tolerance=tolerance,
        lock_in_offset_seconds=lock_in_offset_seconds,
        max_questions_per_session=max_questions,
    )


DEFAULT_CONFIGURATIONS: dict[GameType, GameConfiguration] = {
    # Price prediction
    GameType.GOLD_ORNAMENT_PRICE: _config(
        GameType.GOLD_ORNAMENT_PRICE, GameCategory.PRICE_PREDICTION,
        PredictionType.NUMERIC, _PRICE, points=100, tolerance=0.05,
    ),
    GameType.SILK_SAREE_PRICE: _config(
        GameType.SILK_SAREE_PRICE, GameCategory.PRICE_PREDICTION,
        PredictionType.NUMERIC, _PRICE, points=100, tolerance=0.05,
    ),
    GameType.MAKEUP_BEAUTY_PRICE: _config(
        GameType.MAKEUP_BEAUTY_PRICE, GameCategory.PRICE_PREDICTION,
        PredictionType.NUMERIC, _PRICE, points=100, tolerance=0.05,
    ),
    GameType.VEGETABLE_PRICE: _config(
        GameType.VEGETABLE_PRICE, GameCategory.PRICE_PREDICTION,
        PredictionType.NUMERIC, _MARKET, points=120, tolerance=0.10,
    ),
    GameType.FRUIT_PRICE: _config(
        GameType.FRUIT_PRICE, GameCategory.PRICE_PREDICTION,
        PredictionType.NUMERIC, _MARKET, points=120, tolerance=0.10,
    ),
    GameType.DAILY_GROCERY_PRICE: _config(
        GameType.DAILY_GROCERY_PRICE, GameCategory.PRICE_PREDICTION,
        PredictionType.NUMERIC, [PredictionType.NUMERIC], points=120, tolerance=0.10,
    ),
    # Lifestyle & budget
    GameType.KITCHEN_BUDGET: _config(
        GameType.KITCHEN_BUDGET, GameCategory.LIFESTYLE_BUDGET,
        PredictionType.NUMERIC, _BUDGET, points=100, tolerance=0.10,
    ),
    GameType.WEDDING_BUDGET: _config(
        GameType.WEDDING_BUDGET, GameCategory.LIFESTYLE_BUDGET,
        PredictionType.NUMERIC, _BUDGET, points=100, tolerance=0.10,
    ),
    GameType.FESTIVAL_EXPENSE: _config(
        GameType.FESTIVAL_EXPENSE, GameCategory.LIFESTYLE_BUDGET,
        PredictionType.NUMERIC, _BUDGET, points=100, tolerance=0.10,
    ),
    # Fashion & trend
    GameType.SAREE_COLOR_TREND: _config(
        GameType.SAREE_COLOR_TREND, GameCategory.FASHION_TREND,
        PredictionType.MULTIPLE_CHOICE, _TREND,
    ),
    GameType.JEWELRY_DESIGN_TREND: _config(
        GameType.JEWELRY_DESIGN_TREND, GameCategory.FASHION_TREND,
        PredictionType.MULTIPLE_CHOICE, _TREND,
    ),
    GameType.BRIDAL_MAKEUP_TREND: _config(
        GameType.BRIDAL_MAKEUP_TREND, GameCategory.FASHION_TREND,
        PredictionType.MULTIPLE_CHOICE, _TREND,
    ),
    # Celebrity & style
    GameType.CELEBRITY_SAREE_LOOK: _config(
        GameType.CELEBRITY_SAREE_LOOK, GameCategory.CELEBRITY_STYLE,
        PredictionType.MULTIPLE_CHOICE, _TREND,
    ),
    GameType.ACTRESS_FASHION_TREND: _config(
        GameType.ACTRESS_FASHION_TREND, GameCategory.CELEBRITY_STYLE,
        PredictionType.MULTIPLE_CHOICE, _TREND,
    ),
    GameType.VIRAL_FASHION_LOOK: _config(
        GameType.VIRAL_FASHION_LOOK, GameCategory.CELEBRITY_STYLE,
        PredictionType.MULTIPLE_CHOICE, _TREND, lock_in_offset_seconds=0,
    ),
}


class GameCatalog:
    def __init__(self, overrides: Optional[Mapping[str, GameConfiguration]] = None):
        configs = {GameType(k).value: v for k, v in DEFAULT_CONFIGURATIONS.items()}
        for game_type, config in (overrides or {}).items():
            configs[GameType(game_type).value] = config
        self._configs = MappingProxyType(configs)

    def get(self, game_type: str) -> GameConfiguration:
        try:
            key = GameType(game_type).value
        except ValueError:
            raise UnknownGameTypeError(f"Unknown game type: {game_type}")

        config = self._configs.get(key)
        if config is None:
            raise UnknownGameTypeError(f"No configuration for game type: {game_type}")
        return config

    def game_types(self) -> list[str]:
        return list(self._configs.keys())

    def category_of(self, game_type: str) -> str:
        return self.get(game_type).category


default_catalog = GameCatalog()
