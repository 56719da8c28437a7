"""
🎯 PredictionRepository - CRUD de predicciones de usuarios

IDs compuestos: user_id:question_id, así un usuario solo puede tener una
predicción por pregunta.
"""

from collections import Counter
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from fantasy_engine.core.errors import LockInError
from fantasy_engine.models.prediction import UserPrediction
from fantasy_engine.repositories.base import translate_errors


class PredictionRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["user_predictions"]

    # ============================================
    # 📌 CREATE / REEMPLAZO
    # ============================================

    @translate_errors
    async def save_unlocked(self, prediction: UserPrediction) -> UserPrediction:
        """
        Crea la predicción, o reemplaza su valor mientras no esté bloqueada.

        Compare-and-set sobre `locked`: si la predicción guardada se bloqueó
        entre medio, el upsert choca en _id y la escritura se rechaza.
        """
        try:
            await self.collection.update_one(
                {"_id": prediction.id, "locked": False},
                {
                    "$set": {
                        "session_id": prediction.session_id,
                        "submitted_value": prediction.submitted_value,
                        "updated_at": prediction.updated_at,
                    },
                    "$setOnInsert": {
                        "user_id": prediction.user_id,
                        "question_id": prediction.question_id,
                        "submitted_at": prediction.submitted_at,
                        "locked": False,
                    },
                },
                upsert=True
            )
        except DuplicateKeyError:
            raise LockInError(f"Prediction {prediction.id} is locked")

        return await self.get_by_id(prediction.id)

    # ============================================
    # 📌 READ
    # ============================================

    @translate_errors
    async def get_by_id(self, prediction_id: str) -> Optional[UserPrediction]:
        doc = await self.collection.find_one({"_id": prediction_id})
        return UserPrediction(**doc) if doc else None

    async def get_user_prediction(
        self,
        user_id: str,
        question_id: str
    ) -> Optional[UserPrediction]:
        return await self.get_by_id(UserPrediction.make_id(user_id, question_id))

    @translate_errors
    async def get_for_question(self, question_id: str) -> list[UserPrediction]:
        """
        🔥 TODAS las predicciones de una pregunta, en orden de envío.
        Es lo que recorre una pasada de puntuación.
        """
        cursor = self.collection.find({"question_id": question_id}).sort([
            ("submitted_at", 1),
            ("_id", 1)
        ])
        docs = await cursor.to_list(length=None)
        return [UserPrediction(**doc) for doc in docs]

    @translate_errors
    async def get_for_questions(self, question_ids: list[str]) -> list[UserPrediction]:
        if not question_ids:
            return []
        cursor = self.collection.find({"question_id": {"$in": question_ids}})
        docs = await cursor.to_list(length=None)
        return [UserPrediction(**doc) for doc in docs]

    @translate_errors
    async def get_for_session(self, session_id: str) -> list[UserPrediction]:
        cursor = self.collection.find({"session_id": session_id}).sort("submitted_at", 1)
        docs = await cursor.to_list(length=None)
        return [UserPrediction(**doc) for doc in docs]

    @translate_errors
    async def get_user_predictions(
        self,
        user_id: str,
        limit: Optional[int] = 100,
        skip: int = 0
    ) -> list[UserPrediction]:
        """Todas las predicciones de un usuario, las más nuevas primero (paginado)"""
        cursor = self.collection.find(
            {"user_id": user_id}
        ).sort("submitted_at", -1).skip(skip)
        if limit:
            cursor = cursor.limit(limit)

        docs = await cursor.to_list(length=limit)
        return [UserPrediction(**doc) for doc in docs]

    # ============================================
    # 📌 UPDATE
    # ============================================

    @translate_errors
    async def restore(self, prediction: UserPrediction) -> None:
        """Vuelve a escribir el valor anterior de una predicción (deshace un reemplazo tardío)"""
        await self.collection.update_one(
            {"_id": prediction.id},
            {"$set": {
                "session_id": prediction.session_id,
                "submitted_value": prediction.submitted_value,
                "updated_at": prediction.updated_at,
            }}
        )

    @translate_errors
    async def delete(self, prediction_id: str) -> bool:
        result = await self.collection.delete_one({"_id": prediction_id})
        return result.deleted_count > 0

    @translate_errors
    async def lock_for_question(self, question_id: str) -> int:
        """
        Bloquea todas las predicciones de una pregunta.

        Se llama al declarar el resultado; devuelve cuántas se bloquearon.
        """
        result = await self.collection.update_many(
            {"question_id": question_id, "locked": False},
            {"$set": {"locked": True}}
        )
        return result.modified_count

    # ============================================
    # 📌 STATS
    # ============================================

    @translate_errors
    async def get_answer_distribution(self, question_id: str) -> dict:
        """
        Cómo respondió la comunidad una pregunta de opciones.

        Retorna: {"up": 245, "down": 180, "total": 425}
        """
        cursor = self.collection.find(
            {"question_id": question_id},
            {"submitted_value": 1}
        )
        docs = await cursor.to_list(length=None)

        counts = Counter(
            str(doc["submitted_value"]).lower()
            for doc in docs
            if not isinstance(doc["submitted_value"], list)
        )
        distribution = dict(counts)
        distribution["total"] = sum(counts.values())
        return distribution

    @translate_errors
    async def count_for_question(self, question_id: str) -> int:
        return await self.collection.count_documents({"question_id": question_id})

    @translate_errors
    async def exists(self, user_id: str, question_id: str) -> bool:
        count = await self.collection.count_documents(
            {"_id": UserPrediction.make_id(user_id, question_id)},
            limit=1
        )
        return count > 0

