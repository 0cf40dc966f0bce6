"""Activity hooks award the documented point values."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import select

from cgrow.db.models import PointEvent
from cgrow.leaderboard import integration
from tests.factories import NOW, create_user


@pytest_asyncio.fixture
async def user_db(db_session):
    await create_user(db_session, 7)
    return db_session


async def events(db) -> list[tuple[str, int, str | None]]:
    result = await db.execute(
        select(PointEvent.points_type, PointEvent.points_earned, PointEvent.source_id).order_by(PointEvent.id)
    )
    return [tuple(row) for row in result]


class TestFixedValueHooks:
    @pytest.mark.asyncio
    async def test_course_lifecycle(self, user_db, coordinator):
        await integration.on_course_enrolled(coordinator, 7, 3)
        await integration.on_course_started(coordinator, 7, 3)
        await integration.on_course_completed(coordinator, 7, 3)
        assert await events(user_db) == [
            ("course_enrollment", 25, "3"),
            ("course_started", 25, "3"),
            ("course_completion", 150, "3"),
        ]

    @pytest.mark.asyncio
    async def test_course_completion_is_deduplicated(self, user_db, coordinator):
        await integration.on_course_completed(coordinator, 7, 3)
        repeat = await integration.on_course_completed(coordinator, 7, 3)
        assert repeat.duplicate is True
        assert len(await events(user_db)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("percentage", "points"), [(25, 25), (50, 50), (75, 75)])
    async def test_progress_milestones(self, user_db, coordinator, percentage, points):
        result = await integration.on_course_progress(coordinator, 7, 3, percentage)
        assert result.points_awarded == points

    @pytest.mark.asyncio
    async def test_other_progress_awards_nothing(self, user_db, coordinator):
        assert await integration.on_course_progress(coordinator, 7, 3, 30) is None
        assert await integration.on_course_progress(coordinator, 7, 3, 100) is None
        assert await events(user_db) == []

    @pytest.mark.asyncio
    async def test_project_and_badge(self, user_db, coordinator):
        await integration.on_project_assigned(coordinator, 7, 11)
        await integration.on_project_completed(coordinator, 7, 11)
        await integration.on_badge_earned(coordinator, 7, 2)
        assert [e[1] for e in await events(user_db)] == [50, 200, 75]


class TestSkillHooks:
    @pytest.mark.asyncio
    async def test_skill_added_scales_with_proficiency(self, user_db, coordinator):
        result = await integration.on_skill_added(coordinator, 7, 4, proficiency_level=3)
        assert result.points_awarded == 35

    @pytest.mark.asyncio
    async def test_skill_improved(self, user_db, coordinator):
        result = await integration.on_skill_improved(coordinator, 7, 4, improvement=2)
        assert result.points_awarded == 30
        assert await integration.on_skill_improved(coordinator, 7, 4, improvement=0) is None

    @pytest.mark.asyncio
    async def test_skill_removed_deducts(self, user_db, coordinator):
        await integration.on_skill_verified(coordinator, 7, 4)
        await integration.on_skill_mastery(coordinator, 7, 4)
        result = await integration.on_skill_removed(coordinator, 7, 4)
        assert result.points_awarded == -10
        assert result.total_points == 120


class TestTableDrivenHooks:
    @pytest.mark.asyncio
    async def test_known_and_fallback_kinds(self, user_db, coordinator):
        assert (await integration.on_knowledge_sharing(coordinator, 7, "tutorial", 1)).points_awarded == 100
        assert (await integration.on_knowledge_sharing(coordinator, 7, "tweet", 2)).points_awarded == 50
        assert (await integration.on_team_collaboration(coordinator, 7, "pair_programming")).points_awarded == 40
        assert (await integration.on_team_collaboration(coordinator, 7, "lunch")).points_awarded == 20
        assert (await integration.on_community_participation(coordinator, 7, "helpful_answer")).points_awarded == 25
        assert (await integration.on_event_participation(coordinator, 7, "hackathon", 5)).points_awarded == 150
        assert (await integration.on_event_participation(coordinator, 7, "picnic", 6)).points_awarded == 50

    @pytest.mark.asyncio
    async def test_leadership_adds_team_size(self, user_db, coordinator):
        result = await integration.on_leadership_activity(coordinator, 7, "goal_setting", team_size=4)
        assert result.points_awarded == 45
        result = await integration.on_leadership_activity(coordinator, 7, "offsite")
        assert result.points_awarded == 35

    @pytest.mark.asyncio
    async def test_description_is_humanized(self, user_db, coordinator):
        await integration.on_team_collaboration(coordinator, 7, "problem_solving")
        description = (await user_db.execute(select(PointEvent.description))).scalar_one()
        assert description == "Participated in problem solving"


class TestDailyLogin:
    @pytest.mark.asyncio
    async def test_once_per_day(self, user_db, coordinator):
        first = await integration.on_daily_login(coordinator, 7, now=NOW)
        again = await integration.on_daily_login(coordinator, 7, now=NOW)
        next_day = await integration.on_daily_login(coordinator, 7, now=datetime(2026, 11, 19, 8, tzinfo=timezone.utc))
        assert first.points_awarded == 10
        assert again.duplicate is True
        assert next_day.points_awarded == 10


class TestWeeklyLearningBonus:
    @pytest.mark.asyncio
    async def test_below_threshold(self, user_db, coordinator):
        await coordinator.award_points(7, "course_completion", 150, now=NOW)
        await coordinator.award_points(7, "skill_verified", 30, now=NOW)
        assert await integration.check_weekly_learning_bonus(coordinator, 7, now=NOW) is None

    @pytest.mark.asyncio
    async def test_awarded_once_per_iso_week(self, user_db, coordinator):
        await coordinator.award_points(7, "course_completion", 150, now=NOW)
        await coordinator.award_points(7, "project_completion", 200, now=NOW)
        await coordinator.award_points(7, "skill_verified", 30, now=NOW)

        bonus = await integration.check_weekly_learning_bonus(coordinator, 7, now=NOW)
        repeat = await integration.check_weekly_learning_bonus(coordinator, 7, now=NOW)

        assert bonus.points_awarded == 100
        assert repeat.duplicate is True
        bonus_event = (
            await user_db.execute(select(PointEvent).where(PointEvent.points_type == "weekly_learning_bonus"))
        ).scalar_one()
        assert bonus_event.source_id == "2026-W47"

    @pytest.mark.asyncio
    async def test_last_week_does_not_count(self, user_db, coordinator):
        last_week = datetime(2026, 11, 12, tzinfo=timezone.utc)
        for points_type in ["course_completion", "project_completion", "skill_verified"]:
            await coordinator.award_points(7, points_type, 10, now=last_week)
        assert await integration.check_weekly_learning_bonus(coordinator, 7, now=NOW) is None
