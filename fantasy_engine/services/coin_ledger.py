"""
Coin Ledger - append-only transaction log with a cached wallet balance.

Rules:
- every credit is keyed by (reference_id, type); the same trigger never
  pays twice
- reward types only credit (amount > 0)
- ADMIN_ADJUSTMENT may debit, but never below a zero balance
- the wallet is refreshed from the log after every append, and again
  whenever a repeated trigger finds its transaction already written, so a
  retry after a failed refresh heals the balance
- `reconcile_balance` forces a rebuild and reports any drift
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import ensure_utc, utcnow
from fantasy_engine.core.errors import (
    DuplicateTransactionError,
    InsufficientBalanceError,
    InvalidTransactionError,
)
from fantasy_engine.core.locks import KeyedLock
from fantasy_engine.models.game import Difficulty
from fantasy_engine.models.wallet import CoinTransaction, TransactionType, UserWallet
from fantasy_engine.repositories.wallet_repository import WalletRepository

logger = logging.getLogger(__name__)


COIN_REWARDS = {
    "REFERRAL": 50,
    "REFERRAL_WELCOME": 10,  # paid to the referred user
    "QUIZ_COMPLETE": 15,
    "DAILY_LOGIN": 10,
    "PREDICTION_EXACT": 50,
    "PREDICTION_PARTIAL": 25,
    "HARD_MULTIPLIER": 2,
    "STREAK_MIN": 3,
    "STREAK_PER_PREDICTION": 5,
    "STREAK_CAP": 50,
    "WEEKLY_WINNER": 500,
    "WEEKLY_TOP_3": 200,
    "WEEKLY_TOP_10": 100,
}


def prediction_reward(correctness_ratio: float, difficulty: str) -> int:
    """Coins for one scored prediction: exact 50, partial 25, doubled for HARD"""
    if correctness_ratio >= 1.0:
        amount = COIN_REWARDS["PREDICTION_EXACT"]
    elif correctness_ratio > 0.0:
        amount = COIN_REWARDS["PREDICTION_PARTIAL"]
    else:
        return 0

    if difficulty == Difficulty.HARD.value:
        amount *= COIN_REWARDS["HARD_MULTIPLIER"]
    return amount


def streak_bonus(streak: int) -> int:
    if streak < COIN_REWARDS["STREAK_MIN"]:
        return 0
    return min(COIN_REWARDS["STREAK_PER_PREDICTION"] * streak, COIN_REWARDS["STREAK_CAP"])


def weekly_prize(rank: int) -> int:
    if rank == 1:
        return COIN_REWARDS["WEEKLY_WINNER"]
    if rank <= 3:
        return COIN_REWARDS["WEEKLY_TOP_3"]
    if rank <= 10:
        return COIN_REWARDS["WEEKLY_TOP_10"]
    return 0


# Shared by every ledger in the process so credits for one user queue up
wallet_locks = KeyedLock()


class CoinLedger:
    def __init__(self, db: AsyncIOMotorDatabase, locks: Optional[KeyedLock] = None):
        self.wallet_repo = WalletRepository(db)
        self.locks = locks or wallet_locks

    def _check_amount(self, type_: TransactionType, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidTransactionError("Coin amounts are whole numbers")

        if type_ == TransactionType.ADMIN_ADJUSTMENT:
            if amount == 0:
                raise InvalidTransactionError("Adjustment amount cannot be zero")
        elif amount <= 0:
            raise InvalidTransactionError(f"{type_.value} must credit a positive amount")

    async def credit(
        self,
        user_id: str,
        type_: str,
        amount: int,
        reference_id: str,
        description: str = "",
        now: Optional[datetime] = None
    ) -> CoinTransaction:
        """
        Append a transaction and apply it to the user's wallet.

        Raises:
            DuplicateTransactionError: (reference_id, type) was already credited
            InvalidTransactionError: amount not allowed for the type
            InsufficientBalanceError: adjustment would go below zero
        """
        type_ = TransactionType(type_)
        self._check_amount(type_, amount)
        now = ensure_utc(now) if now else utcnow()

        async with self.locks.hold(user_id):
            existing = await self.wallet_repo.find_transaction(reference_id, type_.value)
            if existing:
                # An earlier attempt may have appended without refreshing the wallet
                await self.wallet_repo.refresh(existing.user_id, utcnow())
                raise DuplicateTransactionError(reference_id, type_.value)

            if amount < 0:
                balance = (await self.wallet_repo.refresh(user_id, now)).balance
                if balance + amount < 0:
                    raise InsufficientBalanceError(
                        f"Balance {balance} cannot cover adjustment of {amount}"
                    )

            transaction = CoinTransaction(
                _id=str(uuid.uuid4()),
                user_id=user_id,
                type=type_,
                amount=amount,
                reference_id=reference_id,
                description=description,
                created_at=now
            )
            try:
                # Unique index catches writers in other processes
                await self.wallet_repo.append(transaction)
            except DuplicateTransactionError:
                await self.wallet_repo.refresh(user_id, utcnow())
                raise
            wallet = await self.wallet_repo.refresh(user_id, now)

        logger.info(
            "Credited %d coins to %s (%s, ref %s), balance %d",
            amount, user_id, type_.value, reference_id, wallet.balance
        )
        return transaction

    async def credit_once(
        self,
        user_id: str,
        type_: str,
        amount: int,
        reference_id: str,
        description: str = "",
        now: Optional[datetime] = None
    ) -> Optional[CoinTransaction]:
        """credit(), with a repeated trigger treated as already paid (returns None)"""
        try:
            return await self.credit(user_id, type_, amount, reference_id, description, now)
        except DuplicateTransactionError:
            logger.debug("Skipped duplicate %s for reference %s", type_, reference_id)
            return None

    async def get_balance(self, user_id: str) -> int:
        wallet = await self.wallet_repo.get_wallet(user_id)
        return wallet.balance if wallet else 0

    async def get_wallet(self, user_id: str) -> Optional[UserWallet]:
        return await self.wallet_repo.get_wallet(user_id)

    async def list_transactions(
        self,
        user_id: str,
        limit: Optional[int] = None
    ) -> list[CoinTransaction]:
        """Newest first"""
        return await self.wallet_repo.list_transactions(user_id, limit)

    async def reconcile_balance(self, user_id: str) -> UserWallet:
        """Rebuild the cached wallet from the transaction log"""
        async with self.locks.hold(user_id):
            transactions = await self.wallet_repo.list_transactions(user_id)
            earned = sum(t.amount for t in transactions if t.amount > 0)
            spent = sum(-t.amount for t in transactions if t.amount < 0)

            cached = await self.wallet_repo.get_wallet(user_id)
            wallet = UserWallet(
                _id=user_id,
                balance=earned - spent,
                total_earned=earned,
                total_spent=spent,
                transaction_count=len(transactions),
                updated_at=utcnow()
            )
            if cached and cached.balance != wallet.balance:
                logger.warning(
                    "Wallet cache for %s drifted: cached %d, log %d",
                    user_id, cached.balance, wallet.balance
                )
            return await self.wallet_repo.overwrite(wallet)
