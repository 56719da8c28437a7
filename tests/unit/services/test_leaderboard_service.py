"""
Unit tests for LeaderboardService
"""

import pytest
from datetime import datetime, timedelta, timezone

from fantasy_engine.core.clock import utcnow
from fantasy_engine.core.config import Settings
from fantasy_engine.models.badge import UserBadge
from fantasy_engine.models.wallet import CoinTransaction
from fantasy_engine.repositories.badge_repository import BadgeRepository
from fantasy_engine.repositories.outcome_repository import OutcomeRepository
from fantasy_engine.services.coin_ledger import CoinLedger
from fantasy_engine.services.leaderboard_service import (
    LeaderboardService,
    build_entries,
    period_window,
)


def coin_credit(user_id, amount, reference_id, created_at):
    return CoinTransaction(
        _id=f"tx-{reference_id}",
        user_id=user_id,
        type="PREDICTION_CORRECT",
        amount=amount,
        reference_id=reference_id,
        created_at=created_at
    )


class TestPeriodWindow:

    def test_daily(self, fixed_now):
        key, start, end = period_window("daily", fixed_now)

        assert key == "2026-10-19"
        assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 20, tzinfo=timezone.utc)

    def test_weekly_starts_monday(self):
        sunday = datetime(2026, 10, 25, 23, 59, tzinfo=timezone.utc)

        key, start, end = period_window("weekly", sunday)

        assert key == "2026-W43"
        assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 26, tzinfo=timezone.utc)

    def test_weekly_iso_year_boundary(self):
        key, start, _ = period_window("weekly", datetime(2027, 1, 1, tzinfo=timezone.utc))

        assert key == "2026-W53"
        assert start == datetime(2026, 12, 28, tzinfo=timezone.utc)

    def test_monthly(self, fixed_now):
        key, start, end = period_window("monthly", fixed_now)

        assert key == "2026-10"
        assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_monthly_wraps_december(self):
        key, start, end = period_window("monthly", datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc))

        assert key == "2026-12"
        assert start == datetime(2026, 12, 1, tzinfo=timezone.utc)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_overall(self, fixed_now):
        assert period_window("overall", fixed_now) == ("all-time", None, None)

    def test_unknown_period(self, fixed_now):
        with pytest.raises(ValueError):
            period_window("yearly", fixed_now)


class TestBuildEntries:
    """The pure projection."""

    def test_sorted_by_points(self, make_outcome, fixed_now):
        outcomes = [
            make_outcome("alice", "q1", 60, 0.5, fixed_now),
            make_outcome("bob", "q1", 120, 1.0, fixed_now),
            make_outcome("carol", "q1", 0, 0.0, fixed_now),
            make_outcome("alice", "q2", 120, 1.0, fixed_now, session_id="s2"),
        ]

        entries = build_entries("overall", outcomes, [], {})

        assert [e.user_id for e in entries] == ["alice", "bob", "carol"]
        assert [e.rank for e in entries] == [1, 2, 3]
        for first, second in zip(entries, entries[1:]):
            assert first.total_points >= second.total_points

        alice = entries[0]
        assert alice.total_points == 180
        assert alice.games_played == 2
        assert alice.predictions_total == 2
        assert alice.predictions_correct == 1
        assert alice.win_rate == 0.5

    def test_ties_go_to_earliest_point_then_user_id(self, make_outcome, fixed_now):
        outcomes = [
            make_outcome("zed", "q1", 100, 1.0, fixed_now),
            make_outcome("amy", "q1", 100, 1.0, fixed_now + timedelta(minutes=1)),
            make_outcome("bea", "q1", 100, 1.0, fixed_now + timedelta(minutes=1)),
        ]

        entries = build_entries("overall", outcomes, [], {})

        assert [e.user_id for e in entries] == ["zed", "amy", "bea"]
        assert entries[0].last_point_at == fixed_now

    def test_window_filters_outcomes_and_coins(self, make_outcome, fixed_now):
        _, start, end = period_window("daily", fixed_now)
        outcomes = [
            make_outcome("alice", "q1", 100, 1.0, fixed_now),
            make_outcome("alice", "q0", 100, 1.0, fixed_now - timedelta(days=1)),
            make_outcome("bob", "q0", 100, 1.0, fixed_now - timedelta(days=1)),
        ]

        entries = build_entries("daily", outcomes, [], {}, window_start=start, window_end=end)

        assert [e.user_id for e in entries] == ["alice"]
        assert entries[0].total_points == 100

    def test_game_filter_scopes_points_and_coins(self, make_outcome, fixed_now):
        outcomes = [
            make_outcome("alice", "q-price", 120, 1.0, fixed_now),
            make_outcome("alice", "q-trend", 200, 1.0, fixed_now, game_type="saree-color-trend"),
            make_outcome("bob", "q-trend", 100, 0.5, fixed_now, game_type="saree-color-trend"),
        ]
        transactions = [
            coin_credit("alice", 50, "alice:q-price", fixed_now),
            coin_credit("alice", 100, "alice:q-trend", fixed_now),
            coin_credit("bob", 25, "bob:q-trend", fixed_now),
        ]

        entries = build_entries(
            "overall", outcomes, transactions, {}, game_types={"vegetable-price"}
        )

        assert [(e.user_id, e.total_points, e.coins_earned) for e in entries] == [
            ("alice", 120, 50),
        ]

    def test_limit(self, make_outcome, fixed_now):
        outcomes = [make_outcome(f"u{i}", "q1", i, 0.1, fixed_now) for i in range(1, 6)]

        entries = build_entries("overall", outcomes, [], {}, limit=2)

        assert [e.user_id for e in entries] == ["u5", "u4"]


class TestLeaderboardService:
    """Recompute against the database."""

    @pytest.mark.asyncio
    async def test_recompute_persists_snapshot(self, test_db, settings, make_outcome):
        now = utcnow()
        repo = OutcomeRepository(test_db)
        await repo.create(make_outcome("alice", "q1", 120, 1.0, now))
        await repo.create(make_outcome("bob", "q1", 60, 0.5, now))
        ledger = CoinLedger(test_db)
        await ledger.credit("alice", "PREDICTION_CORRECT", 50, "alice:q1")
        await BadgeRepository(test_db).grant(UserBadge(
            _id=UserBadge.make_id("alice", "early-bird"),
            user_id="alice",
            badge_type="early-bird",
            awarded_at=now
        ))

        service = LeaderboardService(test_db, settings=settings)
        entries = await service.recompute("weekly", now)

        assert [e.user_id for e in entries] == ["alice", "bob"]
        assert entries[0].coins_earned == 50
        assert entries[0].badges == ["early-bird"]

        snapshot = await service.get_snapshot("weekly", now)
        assert snapshot.period_key == period_window("weekly", now)[0]
        assert [e.user_id for e in snapshot.entries] == ["alice", "bob"]

        bob = await service.get_user_rank("bob", "weekly", now)
        assert bob.rank == 2
        assert await service.get_user_rank("nobody", "weekly", now) is None

    @pytest.mark.asyncio
    async def test_recompute_replaces_not_patches(self, test_db, settings, make_outcome):
        now = utcnow()
        repo = OutcomeRepository(test_db)
        service = LeaderboardService(test_db, settings=settings)
        await repo.create(make_outcome("alice", "q1", 60, 0.5, now))
        await service.recompute("overall", now)

        await repo.create(make_outcome("bob", "q1", 120, 1.0, now))
        await service.recompute("overall", now)
        entries = await service.recompute("overall", now)

        snapshots = await test_db["leaderboards"].count_documents({"period": "overall"})
        assert snapshots == 1
        assert [(e.user_id, e.rank) for e in entries] == [("bob", 1), ("alice", 2)]

    @pytest.mark.asyncio
    async def test_max_entries_from_settings(self, test_db, make_outcome):
        now = utcnow()
        repo = OutcomeRepository(test_db)
        for i in range(5):
            await repo.create(make_outcome(f"u{i}", "q1", 10 * i, 0.1, now))

        service = LeaderboardService(test_db, settings=Settings(_env_file=None, leaderboard_max_entries=3))
        entries = await service.recompute("daily", now)

        assert len(entries) == 3
        assert entries[0].user_id == "u4"

    @pytest.mark.asyncio
    async def test_best_weekly_rank(self, test_db, settings, make_outcome):
        now = utcnow()
        repo = OutcomeRepository(test_db)
        await repo.create(make_outcome("alice", "q1", 120, 1.0, now))
        await repo.create(make_outcome("bob", "q1", 60, 0.5, now))
        service = LeaderboardService(test_db, settings=settings)

        assert await service.best_weekly_rank("bob") is None
        await service.recompute("weekly", now)
        assert await service.best_weekly_rank("bob") == 2

    @pytest.mark.asyncio
    async def test_scoped_boards_live_beside_the_general_board(self, test_db, settings, make_outcome):
        now = utcnow()
        repo = OutcomeRepository(test_db)
        await repo.create(make_outcome("alice", "q-price", 120, 1.0, now))
        await repo.create(make_outcome("bob", "q-gold", 60, 0.5, now, game_type="gold-ornament-price"))
        await repo.create(make_outcome("bob", "q-trend", 200, 1.0, now, game_type="saree-color-trend"))
        service = LeaderboardService(test_db, settings=settings)

        general = await service.recompute("weekly", now)
        by_game = await service.recompute("weekly", now, game_type="vegetable-price")
        by_category = await service.recompute("weekly", now, category="price-prediction")

        assert [(e.user_id, e.total_points) for e in general] == [("bob", 260), ("alice", 120)]
        assert [(e.user_id, e.total_points) for e in by_game] == [("alice", 120)]
        assert [(e.user_id, e.total_points) for e in by_category] == [("alice", 120), ("bob", 60)]

        key = period_window("weekly", now)[0]
        assert service.snapshot_id("weekly", now, game_type="vegetable-price") == (
            f"weekly:{key}:game=vegetable-price"
        )
        snapshot = await service.get_snapshot("weekly", now, category="price-prediction")
        assert snapshot.id == f"weekly:{key}:category=price-prediction"
        assert snapshot.category == "price-prediction"
        assert snapshot.game_type is None

        assert (await service.get_user_rank("bob", "weekly", now)).rank == 1
        assert (await service.get_user_rank("bob", "weekly", now, category="price-prediction")).rank == 2
        assert await service.get_user_rank("bob", "weekly", now, game_type="vegetable-price") is None

        # Only the general weekly board counts toward badges
        assert await service.best_weekly_rank("alice") == 2

    @pytest.mark.asyncio
    async def test_recompute_all_covers_every_period(self, test_db, settings, make_outcome):
        now = utcnow()
        await OutcomeRepository(test_db).create(make_outcome("alice", "q1", 120, 1.0, now))
        service = LeaderboardService(test_db, settings=settings)

        boards = await service.recompute_all(now, game_type="vegetable-price")

        assert set(boards) == {"daily", "weekly", "monthly", "overall"}
        assert await test_db["leaderboards"].count_documents({"game_type": "vegetable-price"}) == 4
