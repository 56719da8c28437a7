"""
💰 WalletRepository - log de transacciones de monedas + saldo cacheado

El log es append-only. El documento del wallet es un cache que siempre
se puede reconstruir desde el log.
"""

from datetime import datetime
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from fantasy_engine.core.errors import DuplicateTransactionError
from fantasy_engine.models.wallet import CoinTransaction, UserWallet
from fantasy_engine.repositories.base import translate_errors


class WalletRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.wallets = db["user_wallets"]
        self.transactions = db["coin_transactions"]

    # ============================================
    # 📌 TRANSACCIONES (append-only)
    # ============================================

    @translate_errors
    async def append(self, transaction: CoinTransaction) -> CoinTransaction:
        """
        Agrega una transacción.

        El índice único (reference_id, type) convierte un segundo crédito del
        mismo disparador en DuplicateTransactionError.
        """
        try:
            await self.transactions.insert_one(transaction.model_dump(by_alias=True))
            return transaction
        except DuplicateKeyError:
            raise DuplicateTransactionError(transaction.reference_id, transaction.type)

    @translate_errors
    async def find_transaction(
        self,
        reference_id: str,
        type_: str
    ) -> Optional[CoinTransaction]:
        doc = await self.transactions.find_one({"reference_id": reference_id, "type": type_})
        return CoinTransaction(**doc) if doc else None

    @translate_errors
    async def list_transactions(
        self,
        user_id: str,
        limit: Optional[int] = None
    ) -> list[CoinTransaction]:
        """Transacciones del usuario, las más nuevas primero"""
        cursor = self.transactions.find({"user_id": user_id}).sort([
            ("created_at", -1),
            ("_id", -1)
        ])
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=limit)
        return [CoinTransaction(**doc) for doc in docs]

    @translate_errors
    async def list_all_transactions(self) -> list[CoinTransaction]:
        cursor = self.transactions.find({})
        docs = await cursor.to_list(length=None)
        return [CoinTransaction(**doc) for doc in docs]

    # ============================================
    # 📌 WALLET (cache)
    # ============================================

    @translate_errors
    async def get_wallet(self, user_id: str) -> Optional[UserWallet]:
        doc = await self.wallets.find_one({"_id": user_id})
        return UserWallet(**doc) if doc else None

    @translate_errors
    async def refresh(self, user_id: str, now: datetime) -> UserWallet:
        """
        Recalcula el saldo cacheado a partir del log de transacciones.

        El log es append-only, así que una vista con más transacciones
        siempre es más reciente: solo se escribe si `transaction_count`
        avanza. Dos procesos que refrescan a la vez nunca dejan una vista
        vieja encima de una nueva.
        """
        cursor = self.transactions.find({"user_id": user_id}, {"amount": 1})
        docs = await cursor.to_list(length=None)

        earned = sum(doc["amount"] for doc in docs if doc["amount"] > 0)
        spent = sum(-doc["amount"] for doc in docs if doc["amount"] < 0)

        try:
            await self.wallets.update_one(
                {"_id": user_id, "transaction_count": {"$lt": len(docs)}},
                {
                    "$set": {
                        "balance": earned - spent,
                        "total_earned": earned,
                        "total_spent": spent,
                        "transaction_count": len(docs),
                        "updated_at": now,
                    }
                },
                upsert=True
            )
        except DuplicateKeyError:
            # Otro escritor ya guardó una vista igual o más reciente
            pass

        doc = await self.wallets.find_one({"_id": user_id})
        if doc:
            return UserWallet(**doc)
        return UserWallet(_id=user_id, updated_at=now)

    @translate_errors
    async def overwrite(self, wallet: UserWallet) -> UserWallet:
        """Reemplaza el cache con un wallet recalculado"""
        await self.wallets.replace_one(
            {"_id": wallet.user_id},
            wallet.model_dump(by_alias=True),
            upsert=True
        )
        return wallet
