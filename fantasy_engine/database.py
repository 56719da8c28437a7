"""
🔌 Database Connection Setup - MongoDB

Cliente Motor centralizado para los repositorios del motor
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from fantasy_engine.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Database:
    """Singleton para la conexión a MongoDB"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls, settings: Optional[Settings] = None):
        """Conecta a MongoDB y verifica la conexión con un ping"""
        if cls.client is None:
            settings = settings or get_settings()

            # Cada operación tiene una espera acotada; un timeout llega como
            # PersistenceUnavailableError desde los repositorios
            cls.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                maxPoolSize=settings.mongodb_max_pool_size,
                minPoolSize=2,
                serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
                connectTimeoutMS=settings.mongodb_timeout_ms,
                socketTimeoutMS=settings.mongodb_timeout_ms,
            )
            cls.db = cls.client[settings.mongodb_db_name]

            await cls.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    @classmethod
    async def disconnect(cls):
        """Cierra la conexión"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Disconnected from MongoDB")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Devuelve la base de datos"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db


# ============================================
# 🏗️ ÍNDICES (se crean una vez al desplegar)
# ============================================

async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Crea los índices de los que depende el motor.

    Los únicos no son opcionales: son los que mantienen una predicción
    por (usuario, pregunta) y una transacción por (reference_id, type)
    cuando varios procesos escriben a la vez.
    """
    # Preguntas
    await db["fantasy_questions"].create_index([("game_type", 1), ("active", 1)])
    await db["fantasy_questions"].create_index("event_id")

    # Eventos
    await db["fantasy_events"].create_index([("game_type", 1), ("start_time", 1)])

    # Sesiones
    await db["fantasy_sessions"].create_index([("user_id", 1), ("created_at", -1)])

    # Predicciones
    await db["user_predictions"].create_index([("user_id", 1), ("question_id", 1)], unique=True)
    await db["user_predictions"].create_index("question_id")
    await db["user_predictions"].create_index("session_id")

    # Resultados de puntuación (_id es el id de la predicción)
    await db["scoring_outcomes"].create_index("user_id")
    await db["scoring_outcomes"].create_index("question_id")
    await db["scoring_outcomes"].create_index("computed_at")

    # Ledger de monedas
    await db["coin_transactions"].create_index([("reference_id", 1), ("type", 1)], unique=True)
    await db["coin_transactions"].create_index([("user_id", 1), ("created_at", -1)])

    # Insignias (_id es user_id:badge_type)
    await db["user_badges"].create_index([("user_id", 1), ("badge_type", 1)], unique=True)

    # Tablas de clasificación
    await db["leaderboards"].create_index([("period", 1), ("game_type", 1), ("category", 1)])

    logger.info("Indexes created")
