"""
LeaderboardService - Aggregates scoring outcomes into ranked leaderboards.

Leaderboards are a projection: each recompute reads the outcome history
and the coin log once, filters them to the period's window, ranks, and
replaces the stored snapshot for that window. Nothing is patched in place,
so recomputing is always safe.

Windows (UTC):
- daily: the calendar day containing `now`          key "2026-10-19"
- weekly: the ISO week (Monday start) containing it  key "2026-W42"
- monthly: the calendar month containing it         key "2026-10"
- overall: everything                                key "all-time"

A board can be scoped to one game type or one category; each scope is
its own snapshot next to the general board.
"""

import logging
from collections import defaultdict
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from fantasy_engine.core.clock import ensure_utc, utcnow
from fantasy_engine.core.config import Settings, get_settings
from fantasy_engine.models.game import GameCategory, GameType
from fantasy_engine.models.leaderboard import (
    LeaderboardEntry,
    LeaderboardPeriod,
    LeaderboardSnapshot,
)
from fantasy_engine.models.prediction import ScoringOutcome
from fantasy_engine.models.wallet import CoinTransaction
from fantasy_engine.repositories.badge_repository import BadgeRepository
from fantasy_engine.repositories.leaderboard_repository import LeaderboardRepository
from fantasy_engine.repositories.outcome_repository import OutcomeRepository
from fantasy_engine.repositories.wallet_repository import WalletRepository
from fantasy_engine.services.catalog import GameCatalog, default_catalog

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def period_window(
    period: str,
    now: datetime
) -> tuple[str, Optional[datetime], Optional[datetime]]:
    """Return (period_key, window_start, window_end) for the period containing `now`"""
    now = ensure_utc(now)
    period = LeaderboardPeriod(period)

    if period == LeaderboardPeriod.DAILY:
        start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
        return now.date().isoformat(), start, start + timedelta(days=1)

    if period == LeaderboardPeriod.WEEKLY:
        monday = now.date() - timedelta(days=now.weekday())
        start = datetime.combine(monday, time.min, tzinfo=timezone.utc)
        iso_year, iso_week, _ = now.isocalendar()
        return f"{iso_year}-W{iso_week:02d}", start, start + timedelta(days=7)

    if period == LeaderboardPeriod.MONTHLY:
        start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
        if now.month == 12:
            end = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)
        return f"{now.year}-{now.month:02d}", start, end

    return "all-time", None, None


def _in_window(at: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and at < start:
        return False
    if end is not None and at >= end:
        return False
    return True


def build_entries(
    period: str,
    outcomes: list[ScoringOutcome],
    transactions: list[CoinTransaction],
    badges: dict[str, list[str]],
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
    limit: Optional[int] = None,
    game_types: Optional[set[str]] = None
) -> list[LeaderboardEntry]:
    """
    Rank users by points within a window.

    With `game_types`, only outcomes of those games count, and only the
    coins paid for those outcomes.

    Ties are broken by who reached their total first (last point earned
    earliest), then by user id, so the ordering is total and stable.
    """
    stats: dict[str, dict] = defaultdict(lambda: {
        "total_points": 0,
        "sessions": set(),
        "predictions_total": 0,
        "predictions_correct": 0,
        "last_point_at": None,
    })

    if game_types is not None:
        outcomes = [o for o in outcomes if o.game_type in game_types]
        scored = {o.prediction_id for o in outcomes}
        transactions = [tx for tx in transactions if tx.reference_id in scored]

    for outcome in outcomes:
        if not _in_window(outcome.computed_at, window_start, window_end):
            continue
        s = stats[outcome.user_id]
        s["total_points"] += outcome.points_awarded
        s["sessions"].add(outcome.session_id)
        s["predictions_total"] += 1
        if outcome.is_correct:
            s["predictions_correct"] += 1
        if outcome.points_awarded > 0:
            if s["last_point_at"] is None or outcome.computed_at > s["last_point_at"]:
                s["last_point_at"] = outcome.computed_at

    coins: dict[str, int] = defaultdict(int)
    for tx in transactions:
        if tx.amount > 0 and tx.user_id in stats and _in_window(tx.created_at, window_start, window_end):
            coins[tx.user_id] += tx.amount

    ordered = sorted(
        stats.items(),
        key=lambda item: (
            -item[1]["total_points"],
            item[1]["last_point_at"] or _FAR_FUTURE,
            item[0],
        )
    )
    if limit is not None:
        ordered = ordered[:limit]

    entries = []
    for rank, (user_id, s) in enumerate(ordered, start=1):
        total = s["predictions_total"]
        entries.append(LeaderboardEntry(
            user_id=user_id,
            period=period,
            total_points=s["total_points"],
            coins_earned=coins[user_id],
            games_played=len(s["sessions"]),
            predictions_total=total,
            predictions_correct=s["predictions_correct"],
            win_rate=round(s["predictions_correct"] / total, 4) if total else 0.0,
            rank=rank,
            badges=badges.get(user_id, []),
            last_point_at=s["last_point_at"],
        ))
    return entries


class LeaderboardService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        settings: Optional[Settings] = None,
        catalog: GameCatalog = default_catalog
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog
        self.outcome_repo = OutcomeRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.badge_repo = BadgeRepository(db)
        self.leaderboard_repo = LeaderboardRepository(db)

    def _scope(
        self,
        game_type: Optional[str],
        category: Optional[str]
    ) -> tuple[Optional[str], Optional[str], Optional[set[str]]]:
        """Normalize a board scope; returns (game_type, category, game types counted)"""
        if game_type is None and category is None:
            return None, None, None

        game_types = set(self.catalog.game_types())
        if game_type is not None:
            game_type = GameType(self.catalog.get(game_type).game_type).value
            game_types &= {game_type}
        if category is not None:
            category = GameCategory(category).value
            game_types = {gt for gt in game_types if self.catalog.category_of(gt) == category}
        return game_type, category, game_types

    def snapshot_id(
        self,
        period: str,
        now: datetime,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> str:
        period = LeaderboardPeriod(period).value
        period_key, _, _ = period_window(period, now)
        game_type, category, _ = self._scope(game_type, category)
        return LeaderboardSnapshot.make_id(period, period_key, game_type, category)

    async def recompute(
        self,
        period: str,
        now: Optional[datetime] = None,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> list[LeaderboardEntry]:
        """Rebuild and store the leaderboard of the window containing `now`"""
        now = ensure_utc(now) if now else utcnow()
        period = LeaderboardPeriod(period).value
        period_key, start, end = period_window(period, now)
        game_type, category, game_types = self._scope(game_type, category)

        outcomes = await self.outcome_repo.list_all()
        transactions = await self.wallet_repo.list_all_transactions()
        user_ids = sorted({o.user_id for o in outcomes})
        badges = await self.badge_repo.badge_types_by_user(user_ids)

        entries = build_entries(
            period,
            outcomes,
            transactions,
            badges,
            window_start=start,
            window_end=end,
            limit=self.settings.leaderboard_max_entries,
            game_types=game_types
        )

        snapshot = LeaderboardSnapshot(
            _id=LeaderboardSnapshot.make_id(period, period_key, game_type, category),
            period=period,
            period_key=period_key,
            game_type=game_type,
            category=category,
            window_start=start,
            window_end=end,
            entries=entries,
            generated_at=utcnow()
        )
        await self.leaderboard_repo.replace(snapshot)

        logger.info("Leaderboard %s recomputed: %d entries", snapshot.id, len(entries))
        return entries

    async def recompute_all(
        self,
        now: Optional[datetime] = None,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> dict[str, list[LeaderboardEntry]]:
        """Every period of one scope, keyed by period"""
        return {
            period.value: await self.recompute(period.value, now, game_type, category)
            for period in LeaderboardPeriod
        }

    async def get_snapshot(
        self,
        period: str,
        now: Optional[datetime] = None,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> Optional[LeaderboardSnapshot]:
        period = LeaderboardPeriod(period).value
        period_key, _, _ = period_window(period, now or utcnow())
        game_type, category, _ = self._scope(game_type, category)
        return await self.leaderboard_repo.get(period, period_key, game_type, category)

    async def get_user_rank(
        self,
        user_id: str,
        period: str,
        now: Optional[datetime] = None,
        game_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> Optional[LeaderboardEntry]:
        """User's entry in the stored snapshot, None if unranked"""
        snapshot = await self.get_snapshot(period, now, game_type, category)
        if not snapshot:
            return None
        for entry in snapshot.entries:
            if entry.user_id == user_id:
                return entry
        return None

    async def best_weekly_rank(self, user_id: str) -> Optional[int]:
        """Best rank the user ever held in a stored general weekly leaderboard"""
        snapshots = await self.leaderboard_repo.list_for_period(LeaderboardPeriod.WEEKLY.value)
        ranks = [
            entry.rank
            for snapshot in snapshots
            for entry in snapshot.entries
            if entry.user_id == user_id
        ]
        return min(ranks) if ranks else None
