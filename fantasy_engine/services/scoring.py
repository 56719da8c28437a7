"""
Scoring Engine - pure scoring of one prediction against one result.

Scoring per prediction type:
- BINARY / MULTIPLE_CHOICE: 1.0 when the answer matches, else 0.0
- NUMERIC: partial credit inside the tolerance band,
  1 - |submitted - actual| / (|actual| * tolerance), clamped to [0, 1]
- RANKING: share of adjacent pairs the user put in the right order

points_awarded = round(correctness_ratio * points_per_correct), half up.

Nothing here touches storage; the scoring pass lives in scoring_service.
"""

import math
from datetime import datetime
from typing import Optional

from fantasy_engine.core.clock import utcnow
from fantasy_engine.core.errors import InvalidPredictionError, InvalidResultError
from fantasy_engine.models.game import GameConfiguration, PredictionType
from fantasy_engine.models.prediction import (
    FantasyResult,
    PredictionValue,
    ScoringOutcome,
    UserPrediction,
)
from fantasy_engine.models.question import FantasyQuestion

DEFAULT_BINARY_OPTIONS = ["yes", "no"]


# ============================================
# Answer schema validation
# ============================================

def _binary_options(question: FantasyQuestion) -> list[str]:
    return question.options or DEFAULT_BINARY_OPTIONS


def _match_option(value: str, options: list[str]) -> Optional[str]:
    lowered = value.strip().lower()
    for option in options:
        if option.lower() == lowered:
            return option
    return None


def validate_value(
    question: FantasyQuestion,
    value: PredictionValue,
    check_bounds: bool = True
) -> PredictionValue:
    """
    Check a value against the question's answer schema.

    `check_bounds` applies the authored min/max of NUMERIC questions; it is
    off for declared results, since real prices can leave the authored range.

    Returns the canonical form (option spelling as authored, bools mapped
    to the first/second BINARY option). Raises InvalidPredictionError.
    """
    match PredictionType(question.prediction_type):
        case PredictionType.BINARY:
            options = _binary_options(question)
            if len(options) != 2:
                raise InvalidPredictionError(f"Question {question.id} is not a two-way question")
            if isinstance(value, bool):
                return options[0] if value else options[1]
            if not isinstance(value, str):
                raise InvalidPredictionError("Binary prediction must be one of the two options")
            option = _match_option(value, options)
            if option is None:
                raise InvalidPredictionError(f"Must be one of: {', '.join(options)}")
            return option

        case PredictionType.MULTIPLE_CHOICE:
            if not question.options:
                raise InvalidPredictionError(f"Question {question.id} has no options")
            if not isinstance(value, str):
                raise InvalidPredictionError("Multiple choice prediction must be an option")
            option = _match_option(value, question.options)
            if option is None:
                raise InvalidPredictionError("Invalid option selected")
            return option

        case PredictionType.NUMERIC:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidPredictionError("Numeric prediction must be a number")
            if not math.isfinite(value):
                raise InvalidPredictionError("Numeric prediction must be finite")
            if check_bounds and question.min_value is not None and value < question.min_value:
                raise InvalidPredictionError(f"Value must be at least {question.min_value}")
            if check_bounds and question.max_value is not None and value > question.max_value:
                raise InvalidPredictionError(f"Value must be at most {question.max_value}")
            return value

        case PredictionType.RANKING:
            if not question.options:
                raise InvalidPredictionError(f"Question {question.id} has nothing to rank")
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise InvalidPredictionError("Ranking prediction must be a list of options")
            ranked = [_match_option(v, question.options) for v in value]
            if None in ranked or len(set(ranked)) != len(ranked) or len(ranked) != len(question.options):
                raise InvalidPredictionError("Ranking must order every option exactly once")
            return ranked

        case _:
            raise InvalidPredictionError(f"Unsupported prediction type {question.prediction_type}")


def validate_result_value(question: FantasyQuestion, value: PredictionValue) -> PredictionValue:
    """Same schema as predictions without the input bounds, reported as a result error"""
    try:
        return validate_value(question, value, check_bounds=False)
    except InvalidPredictionError as exc:
        raise InvalidResultError(f"Result for {question.id}: {exc}") from exc


# ============================================
# Correctness
# ============================================

def numeric_ratio(submitted: float, actual: float, tolerance: float) -> float:
    if submitted == actual:
        return 1.0

    band = abs(actual) * tolerance
    if band <= 0:
        # Zero actual value or zero tolerance: exact answers only
        return 0.0

    ratio = 1 - abs(submitted - actual) / band
    return min(1.0, max(0.0, ratio))


def ranking_ratio(submitted: list[str], actual: list[str]) -> float:
    position = {item: idx for idx, item in enumerate(actual)}
    pairs = len(submitted) - 1
    if pairs <= 0:
        return 1.0 if list(submitted) == list(actual) else 0.0

    in_order = sum(
        1
        for first, second in zip(submitted, submitted[1:])
        if first in position and second in position and position[first] < position[second]
    )
    return in_order / pairs


def correctness_ratio(
    prediction_type: str,
    submitted: PredictionValue,
    actual: PredictionValue,
    tolerance: float = 0.0
) -> float:
    match PredictionType(prediction_type):
        case PredictionType.BINARY | PredictionType.MULTIPLE_CHOICE:
            return 1.0 if str(submitted).lower() == str(actual).lower() else 0.0
        case PredictionType.NUMERIC:
            return numeric_ratio(float(submitted), float(actual), tolerance)
        case PredictionType.RANKING:
            return ranking_ratio(list(submitted), list(actual))
        case _:
            raise InvalidPredictionError(f"Unsupported prediction type {prediction_type}")


def points_for(ratio: float, points_per_correct: int) -> int:
    """round() half up, so 0.5 * 25 gives 13 rather than banker's 12"""
    return int(math.floor(ratio * points_per_correct + 0.5))


def score(
    prediction: UserPrediction,
    result: FantasyResult,
    config: GameConfiguration,
    question: FantasyQuestion,
    computed_at: Optional[datetime] = None
) -> ScoringOutcome:
    """Score one prediction. Pure: same inputs, same outcome."""
    ratio = correctness_ratio(
        question.prediction_type,
        prediction.submitted_value,
        result.actual_value,
        config.numeric_tolerance,
    )
    ratio = round(ratio, 6)

    return ScoringOutcome(
        prediction_id=prediction.id,
        user_id=prediction.user_id,
        question_id=prediction.question_id,
        session_id=prediction.session_id,
        game_type=question.game_type,
        difficulty=question.difficulty,
        points_awarded=points_for(ratio, config.points_per_correct),
        correctness_ratio=ratio,
        computed_at=computed_at or utcnow(),
    )
