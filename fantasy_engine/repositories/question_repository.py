"""
❓ QuestionRepository - pool de preguntas de los juegos

Las preguntas se crean fuera del motor (seed o admin); el motor las lee
y solo cambia el flag `active` (retiro suave).
"""

from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from fantasy_engine.core.errors import InvalidQuestionError
from fantasy_engine.models.question import FantasyQuestion
from fantasy_engine.repositories.base import translate_errors


class QuestionRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["fantasy_questions"]

    # ============================================
    # 📌 CREATE (seed / herramientas de admin)
    # ============================================

    @translate_errors
    async def create(self, question: FantasyQuestion) -> FantasyQuestion:
        """Inserta una pregunta"""
        try:
            await self.collection.insert_one(question.model_dump(by_alias=True))
            return question
        except DuplicateKeyError:
            raise InvalidQuestionError(f"Question {question.id} already exists")

    @translate_errors
    async def create_many(self, questions: list[FantasyQuestion]) -> int:
        """Inserción masiva desde el script de seed"""
        if not questions:
            return 0

        docs = [q.model_dump(by_alias=True) for q in questions]
        result = await self.collection.insert_many(docs, ordered=False)
        return len(result.inserted_ids)

    # ============================================
    # 📌 READ
    # ============================================

    @translate_errors
    async def get_by_id(self, question_id: str) -> Optional[FantasyQuestion]:
        doc = await self.collection.find_one({"_id": question_id})
        return FantasyQuestion(**doc) if doc else None

    @translate_errors
    async def get_many(self, question_ids: list[str]) -> list[FantasyQuestion]:
        """Obtiene preguntas respetando el orden de `question_ids`"""
        if not question_ids:
            return []

        cursor = self.collection.find({"_id": {"$in": question_ids}})
        docs = await cursor.to_list(length=None)
        by_id = {doc["_id"]: FantasyQuestion(**doc) for doc in docs}
        return [by_id[qid] for qid in question_ids if qid in by_id]

    @translate_errors
    async def list_pool(
        self,
        game_type: str,
        event_id: Optional[str] = None,
        include_retired: bool = False
    ) -> list[FantasyQuestion]:
        """
        Pool de candidatas para un tipo de juego.

        Con filtro de evento solo vuelven las preguntas de ese evento y las
        atemporales (sin evento).
        """
        query: dict = {"game_type": game_type}
        if not include_retired:
            query["active"] = True
        if event_id is not None:
            query["$or"] = [{"event_id": event_id}, {"event_id": None}]

        cursor = self.collection.find(query).sort("_id", 1)
        docs = await cursor.to_list(length=None)
        return [FantasyQuestion(**doc) for doc in docs]

    @translate_errors
    async def count_available(
        self,
        game_type: str,
        difficulty: Optional[str] = None
    ) -> int:
        query: dict = {"game_type": game_type, "active": True}
        if difficulty:
            query["difficulty"] = difficulty
        return await self.collection.count_documents(query)

    # ============================================
    # 📌 UPDATE
    # ============================================

    @translate_errors
    async def retire(self, question_id: str) -> bool:
        """Retira una pregunta (soft delete); sigue legible para puntuar"""
        result = await self.collection.update_one(
            {"_id": question_id},
            {"$set": {"active": False}}
        )
        return result.matched_count > 0
