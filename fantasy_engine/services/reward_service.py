"""
RewardService - coin rewards outside of prediction scoring.

Each reward has a deterministic reference id, so firing the same trigger
twice (a retried request, a double click) pays once:
- referral            referral:{referred}:referrer / referral:{referred}:welcome
- quiz completion     quiz:{quiz_id}:{user}
- daily login         daily-login:{user}:{YYYY-MM-DD}
- weekly prizes       {week_key}:{user}
"""

import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import ensure_utc, utcnow
from fantasy_engine.core.errors import InvalidReferralError
from fantasy_engine.models.leaderboard import LeaderboardPeriod
from fantasy_engine.models.wallet import CoinTransaction, TransactionType
from fantasy_engine.repositories.leaderboard_repository import LeaderboardRepository
from fantasy_engine.services.coin_ledger import COIN_REWARDS, CoinLedger, weekly_prize
from fantasy_engine.services.leaderboard_service import period_window

logger = logging.getLogger(__name__)


class RewardService:
    def __init__(self, db: AsyncIOMotorDatabase, ledger: Optional[CoinLedger] = None):
        self.ledger = ledger or CoinLedger(db)
        self.leaderboard_repo = LeaderboardRepository(db)

    async def award_referral(
        self,
        referrer_id: str,
        referred_id: str
    ) -> list[CoinTransaction]:
        """Pay the referrer, and a welcome bonus to the new user"""
        if referrer_id == referred_id:
            raise InvalidReferralError("Users cannot refer themselves")

        paid = []
        tx = await self.ledger.credit_once(
            referrer_id,
            TransactionType.REFERRAL,
            COIN_REWARDS["REFERRAL"],
            reference_id=f"referral:{referred_id}:referrer",
            description=f"Referred {referred_id}"
        )
        if tx:
            paid.append(tx)

        tx = await self.ledger.credit_once(
            referred_id,
            TransactionType.REFERRAL,
            COIN_REWARDS["REFERRAL_WELCOME"],
            reference_id=f"referral:{referred_id}:welcome",
            description="Welcome bonus"
        )
        if tx:
            paid.append(tx)
        return paid

    async def award_quiz_completion(
        self,
        user_id: str,
        quiz_id: str
    ) -> Optional[CoinTransaction]:
        return await self.ledger.credit_once(
            user_id,
            TransactionType.QUIZ_REWARD,
            COIN_REWARDS["QUIZ_COMPLETE"],
            reference_id=f"quiz:{quiz_id}:{user_id}",
            description=f"Completed quiz {quiz_id}"
        )

    async def award_daily_login(
        self,
        user_id: str,
        now: Optional[datetime] = None
    ) -> Optional[CoinTransaction]:
        """Once per UTC calendar day"""
        now = ensure_utc(now) if now else utcnow()
        day = now.date().isoformat()
        return await self.ledger.credit_once(
            user_id,
            TransactionType.DAILY_LOGIN,
            COIN_REWARDS["DAILY_LOGIN"],
            reference_id=f"daily-login:{user_id}:{day}",
            description=f"Daily login {day}",
            now=now
        )

    async def award_weekly_prizes(self, now: Optional[datetime] = None) -> list[CoinTransaction]:
        """
        Pay the top 10 of the stored weekly leaderboard containing `now`.

        Winner 500, ranks 2-3 200, ranks 4-10 100. Users without points
        win nothing.
        """
        period = LeaderboardPeriod.WEEKLY.value
        week_key, _, _ = period_window(period, now or utcnow())
        snapshot = await self.leaderboard_repo.get(period, week_key)
        if not snapshot:
            logger.warning("No weekly leaderboard for %s, no prizes paid", week_key)
            return []

        paid = []
        for entry in snapshot.entries:
            amount = weekly_prize(entry.rank)
            if amount <= 0 or entry.total_points <= 0:
                continue
            tx = await self.ledger.credit_once(
                entry.user_id,
                TransactionType.LEADERBOARD_PRIZE,
                amount,
                reference_id=f"{week_key}:{entry.user_id}",
                description=f"Weekly rank {entry.rank} ({week_key})"
            )
            if tx:
                paid.append(tx)

        logger.info("Weekly prizes for %s: %d paid", week_key, len(paid))
        return paid
