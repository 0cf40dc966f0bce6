"""Backfill of stats and rankings for existing users."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from cgrow.db.models import UserStats
from cgrow.leaderboard.initialize import initialize_leaderboard
from cgrow.leaderboard.seed import ACHIEVEMENT_SEED_DATA, seed_achievements
from tests.factories import NOW, create_event, create_user


async def all_stats(db) -> dict[int, UserStats]:
    result = await db.execute(select(UserStats).execution_options(populate_existing=True))
    return {s.user_id: s for s in result.scalars()}


class TestInitializeLeaderboard:
    @pytest.mark.asyncio
    async def test_backfills_every_user(self, db_session, settings):
        for user_id in (1, 2, 3):
            await create_user(db_session, user_id)
        await create_event(db_session, 1, 120, NOW - timedelta(days=1))
        await create_event(db_session, 2, 300, NOW - timedelta(days=40))
        await create_event(db_session, 2, 50, NOW)

        processed = await initialize_leaderboard(db_session, now=NOW, settings=settings)

        assert processed == 3
        stats = await all_stats(db_session)
        assert stats[1].total_points == 120
        assert stats[2].total_points == 350
        assert stats[2].monthly_points == 50
        assert stats[3].total_points == 0
        assert stats[2].ranking_position == 1
        assert stats[1].ranking_position == 2
        assert stats[3].ranking_position == 3

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, db_session, settings):
        await create_user(db_session, 1)
        await create_event(db_session, 1, 75, NOW)

        await initialize_leaderboard(db_session, now=NOW, settings=settings)
        await initialize_leaderboard(db_session, now=NOW, settings=settings)

        stats = await all_stats(db_session)
        assert stats[1].total_points == 75
        assert stats[1].ranking_position == 1

    @pytest.mark.asyncio
    async def test_empty_database(self, db_session, settings):
        assert await initialize_leaderboard(db_session, now=NOW, settings=settings) == 0


class TestSeedAchievements:
    @pytest.mark.asyncio
    async def test_seed_inserts_catalog_once(self, db_session):
        first = await seed_achievements(db_session)
        second = await seed_achievements(db_session)
        assert first == len(ACHIEVEMENT_SEED_DATA)
        assert second == 0
