"""
Unit tests for CoinLedger
"""

import asyncio
import pytest

from fantasy_engine.core.clock import utcnow
from fantasy_engine.core.errors import (
    DuplicateTransactionError,
    InsufficientBalanceError,
    InvalidTransactionError,
    PersistenceUnavailableError,
)
from fantasy_engine.services.coin_ledger import (
    CoinLedger,
    prediction_reward,
    streak_bonus,
    weekly_prize,
)


async def assert_wallet_matches_log(ledger: CoinLedger, user_id: str):
    transactions = await ledger.list_transactions(user_id)
    assert await ledger.get_balance(user_id) == sum(t.amount for t in transactions)


class TestCoinLedger:
    """Test suite for the coin ledger."""

    @pytest.mark.asyncio
    async def test_credit_updates_balance(self, test_db):
        ledger = CoinLedger(test_db)

        tx = await ledger.credit("user123", "REFERRAL", 50, "referral:bob:referrer")

        assert tx.amount == 50
        assert tx.type == "REFERRAL"
        wallet = await ledger.get_wallet("user123")
        assert wallet.balance == 50
        assert wallet.total_earned == 50
        assert wallet.total_spent == 0

    @pytest.mark.asyncio
    async def test_duplicate_credit_rejected(self, test_db):
        ledger = CoinLedger(test_db)
        await ledger.credit("user123", "QUIZ_REWARD", 15, "quiz:1:user123")

        with pytest.raises(DuplicateTransactionError):
            await ledger.credit("user123", "QUIZ_REWARD", 15, "quiz:1:user123")

        assert len(await ledger.list_transactions("user123")) == 1
        assert await ledger.get_balance("user123") == 15

    @pytest.mark.asyncio
    async def test_same_reference_different_type_allowed(self, test_db):
        ledger = CoinLedger(test_db)

        await ledger.credit("user123", "PREDICTION_CORRECT", 50, "user123:q1")
        await ledger.credit("user123", "STREAK_BONUS", 15, "user123:q1")

        assert await ledger.get_balance("user123") == 65

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_credits(self, test_db):
        """Two concurrent credits for one trigger: exactly one persists."""
        ledger = CoinLedger(test_db)

        results = await asyncio.gather(
            ledger.credit("user123", "REFERRAL", 50, "referral:bob:referrer"),
            ledger.credit("user123", "REFERRAL", 50, "referral:bob:referrer"),
            return_exceptions=True
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateTransactionError)
        assert len(await ledger.list_transactions("user123")) == 1
        await assert_wallet_matches_log(ledger, "user123")

    @pytest.mark.asyncio
    async def test_credit_once_swallows_duplicates(self, test_db):
        ledger = CoinLedger(test_db)

        first = await ledger.credit_once("user123", "DAILY_LOGIN", 10, "daily-login:user123:2026-10-19")
        second = await ledger.credit_once("user123", "DAILY_LOGIN", 10, "daily-login:user123:2026-10-19")

        assert first is not None
        assert second is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("type_,amount", [
        ("REFERRAL", 0),
        ("REFERRAL", -50),
        ("PREDICTION_CORRECT", -1),
        ("ADMIN_ADJUSTMENT", 0),
        ("QUIZ_REWARD", 1.5),
    ])
    async def test_invalid_amounts(self, test_db, type_, amount):
        ledger = CoinLedger(test_db)

        with pytest.raises(InvalidTransactionError):
            await ledger.credit("user123", type_, amount, "ref-1")

        assert await ledger.list_transactions("user123") == []

    @pytest.mark.asyncio
    async def test_admin_adjustment_can_debit(self, test_db):
        ledger = CoinLedger(test_db)
        await ledger.credit("user123", "REFERRAL", 50, "ref-1")

        await ledger.credit("user123", "ADMIN_ADJUSTMENT", -20, "adj-1", "Refund correction")

        wallet = await ledger.get_wallet("user123")
        assert wallet.balance == 30
        assert wallet.total_spent == 20
        await assert_wallet_matches_log(ledger, "user123")

    @pytest.mark.asyncio
    async def test_admin_adjustment_cannot_go_negative(self, test_db):
        ledger = CoinLedger(test_db)
        await ledger.credit("user123", "REFERRAL", 50, "ref-1")

        with pytest.raises(InsufficientBalanceError):
            await ledger.credit("user123", "ADMIN_ADJUSTMENT", -51, "adj-1")

        assert await ledger.get_balance("user123") == 50

    @pytest.mark.asyncio
    async def test_reconcile_rebuilds_cache(self, test_db):
        ledger = CoinLedger(test_db)
        await ledger.credit("user123", "REFERRAL", 50, "ref-1")
        await ledger.credit("user123", "QUIZ_REWARD", 15, "quiz-1")
        # Simulate a cache that missed an update
        await test_db["user_wallets"].update_one({"_id": "user123"}, {"$set": {"balance": 999}})

        wallet = await ledger.reconcile_balance("user123")

        assert wallet.balance == 65
        assert wallet.total_earned == 65
        await assert_wallet_matches_log(ledger, "user123")

    @pytest.mark.asyncio
    async def test_retry_after_failed_wallet_refresh(self, test_db):
        """The transaction is written but the wallet refresh times out; the retry heals it."""
        ledger = CoinLedger(test_db)
        refresh = ledger.wallet_repo.refresh
        calls = []

        async def refresh_fails_once(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise PersistenceUnavailableError("wallet write timed out")
            return await refresh(*args, **kwargs)

        ledger.wallet_repo.refresh = refresh_fails_once

        with pytest.raises(PersistenceUnavailableError):
            await ledger.credit("user123", "QUIZ_REWARD", 15, "quiz:1:user123")
        assert len(await ledger.list_transactions("user123")) == 1

        assert await ledger.credit_once("user123", "QUIZ_REWARD", 15, "quiz:1:user123") is None

        assert await ledger.get_balance("user123") == 15
        await assert_wallet_matches_log(ledger, "user123")

    @pytest.mark.asyncio
    async def test_stale_refresh_never_overwrites_newer_wallet(self, test_db):
        ledger = CoinLedger(test_db)
        await ledger.credit("user123", "REFERRAL", 50, "ref-1")
        await ledger.credit("user123", "QUIZ_REWARD", 15, "quiz-1")
        # A refresh that saw fewer transactions must not win
        await test_db["user_wallets"].update_one({"_id": "user123"}, {"$set": {"transaction_count": 5, "balance": 70}})

        wallet = await ledger.wallet_repo.refresh("user123", utcnow())

        assert wallet.balance == 70

    @pytest.mark.asyncio
    async def test_unknown_user_has_zero_balance(self, test_db):
        assert await CoinLedger(test_db).get_balance("nobody") == 0


class TestRewardTable:

    def test_prediction_reward(self):
        assert prediction_reward(1.0, "EASY") == 50
        assert prediction_reward(0.5, "MEDIUM") == 25
        assert prediction_reward(1.0, "HARD") == 100
        assert prediction_reward(0.2, "HARD") == 50
        assert prediction_reward(0.0, "HARD") == 0

    def test_streak_bonus(self):
        assert streak_bonus(2) == 0
        assert streak_bonus(3) == 15
        assert streak_bonus(9) == 45
        assert streak_bonus(20) == 50

    def test_weekly_prize(self):
        assert weekly_prize(1) == 500
        assert weekly_prize(3) == 200
        assert weekly_prize(10) == 100
        assert weekly_prize(11) == 0
