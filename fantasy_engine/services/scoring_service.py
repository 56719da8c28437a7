"""
Servicio de Puntuación - concilia un resultado declarado con cada predicción

Una pasada de puntuación:
1. Busca todas las predicciones de la pregunta
2. Reutiliza el outcome guardado de cada una, o la puntúa y lo guarda
3. Acredita monedas por predicciones correctas y parcialmente correctas
4. Acredita un bono por rachas de predicciones correctas

Cada paso tiene su clave: repetir una pasada tras una caída o una
notificación repetida solo completa lo que falta.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.errors import DuplicateOutcomeError, QuestionNotFoundError
from fantasy_engine.core.locks import KeyedLock
from fantasy_engine.core.logging import clear_pass_id, set_pass_id
from fantasy_engine.models.game import GameConfiguration
from fantasy_engine.models.prediction import FantasyResult, ScoringOutcome, UserPrediction
from fantasy_engine.models.wallet import TransactionType
from fantasy_engine.repositories.outcome_repository import OutcomeRepository
from fantasy_engine.repositories.prediction_repository import PredictionRepository
from fantasy_engine.repositories.question_repository import QuestionRepository
from fantasy_engine.repositories.session_repository import SessionRepository
from fantasy_engine.services.catalog import GameCatalog, default_catalog
from fantasy_engine.services.coin_ledger import CoinLedger, prediction_reward, streak_bonus
from fantasy_engine.services.scoring import score

logger = logging.getLogger(__name__)

# Una sola pasada por pregunta a la vez
question_locks = KeyedLock()


@dataclass
class ScoringSummary:
    question_id: str
    predictions_processed: int = 0
    outcomes_created: int = 0
    points_distributed: int = 0
    coins_credited: int = 0
    users_affected: set[str] = field(default_factory=set)


def trailing_streak(outcomes: list[ScoringOutcome], prediction_id: str) -> int:
    """
    Outcomes correctos consecutivos que terminan en `prediction_id`.

    `outcomes` es el historial del usuario, el más antiguo primero.
    """
    streak = 0
    for outcome in outcomes:
        streak = streak + 1 if outcome.is_correct else 0
        if outcome.prediction_id == prediction_id:
            return streak
    return 0


class ScoringService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        catalog: GameCatalog = default_catalog,
        ledger: Optional[CoinLedger] = None,
        locks: Optional[KeyedLock] = None
    ):
        self.catalog = catalog
        self.prediction_repo = PredictionRepository(db)
        self.outcome_repo = OutcomeRepository(db)
        self.question_repo = QuestionRepository(db)
        self.session_repo = SessionRepository(db)
        self.ledger = ledger or CoinLedger(db)
        self.locks = locks or question_locks

    async def _config_for(
        self,
        prediction: UserPrediction,
        game_type: str,
        cache: dict[str, GameConfiguration]
    ) -> GameConfiguration:
        """La configuración copiada en la sesión de la predicción"""
        if prediction.session_id not in cache:
            session = await self.session_repo.get_by_id(prediction.session_id)
            cache[prediction.session_id] = session.config if session else self.catalog.get(game_type)
        return cache[prediction.session_id]

    async def _score_one(
        self,
        prediction: UserPrediction,
        result: FantasyResult,
        config: GameConfiguration,
        question,
        summary: ScoringSummary
    ) -> ScoringOutcome:
        outcome = await self.outcome_repo.get(prediction.id)
        if outcome:
            return outcome

        outcome = score(prediction, result, config, question)
        try:
            await self.outcome_repo.create(outcome)
            summary.outcomes_created += 1
        except DuplicateOutcomeError:
            # Otra pasada llegó primero; cuenta su outcome
            logger.info("Outcome for %s already written, reusing it", prediction.id)
            outcome = await self.outcome_repo.get(prediction.id)
        return outcome

    async def _credit(self, outcome: ScoringOutcome, summary: ScoringSummary) -> None:
        amount = prediction_reward(outcome.correctness_ratio, outcome.difficulty)
        if amount > 0:
            tx = await self.ledger.credit_once(
                outcome.user_id,
                TransactionType.PREDICTION_CORRECT,
                amount,
                reference_id=outcome.prediction_id,
                description=f"Prediction on {outcome.question_id}"
            )
            if tx:
                summary.coins_credited += tx.amount

        if not outcome.is_correct:
            return

        history = await self.outcome_repo.get_for_user(outcome.user_id)
        streak = trailing_streak(history, outcome.prediction_id)
        bonus = streak_bonus(streak)
        if bonus > 0:
            tx = await self.ledger.credit_once(
                outcome.user_id,
                TransactionType.STREAK_BONUS,
                bonus,
                reference_id=outcome.prediction_id,
                description=f"{streak} correct in a row"
            )
            if tx:
                summary.coins_credited += tx.amount

    async def run_pass(self, result: FantasyResult) -> ScoringSummary:
        """
        Puntúa todas las predicciones de la pregunta del resultado.

        Se puede llamar cuantas veces sea para el mismo resultado.
        """
        question = await self.question_repo.get_by_id(result.question_id)
        if not question:
            raise QuestionNotFoundError(f"Question {result.question_id} not found")

        token = set_pass_id(uuid.uuid4().hex[:12])
        try:
            async with self.locks.hold(result.question_id):
                summary = ScoringSummary(question_id=result.question_id)
                configs: dict[str, GameConfiguration] = {}

                predictions = await self.prediction_repo.get_for_question(result.question_id)
                logger.info(
                    "Scoring pass for %s: %d predictions",
                    result.question_id, len(predictions)
                )

                for prediction in predictions:
                    config = await self._config_for(prediction, question.game_type, configs)
                    outcome = await self._score_one(prediction, result, config, question, summary)
                    await self._credit(outcome, summary)

                    summary.predictions_processed += 1
                    summary.points_distributed += outcome.points_awarded
                    summary.users_affected.add(outcome.user_id)

                logger.info(
                    "Scoring pass for %s done: %d outcomes created, %d points, %d coins",
                    result.question_id, summary.outcomes_created,
                    summary.points_distributed, summary.coins_credited
                )
                return summary
        finally:
            clear_pass_id(token)
