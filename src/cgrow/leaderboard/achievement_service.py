"""Achievement evaluation: unlock newly-qualifying achievements and append their bonus events.

Each achievement type maps to a metric read from the user's freshly recomputed
stats (or from the collaborator skill tables) and a comparison against the
achievement's ``criteria_value``. Unknown types never unlock.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.config import Settings, get_settings
from cgrow.db.models import Achievement, UserAchievement, UserStats
from cgrow.leaderboard import collaborators, constants, ledger

logger = logging.getLogger(__name__)

ACHIEVEMENT_SOURCE_TYPE = "achievement"


@dataclass
class RuleContext:
    db: AsyncSession
    user_id: int
    stats: UserStats
    settings: Settings


Metric = Callable[[RuleContext, Achievement], Awaitable[int | None]]


@dataclass(frozen=True)
class AchievementRule:
    """How to measure a user against one achievement type."""

    metric: Metric
    qualifies: Callable[[int, int], bool] = operator.ge


async def _total_points(ctx: RuleContext, _achievement: Achievement) -> int:
    return ctx.stats.total_points


async def _current_streak(ctx: RuleContext, _achievement: Achievement) -> int:
    return ctx.stats.current_streak


async def _ranking_position(ctx: RuleContext, _achievement: Achievement) -> int | None:
    return ctx.stats.ranking_position


async def _courses_completed(ctx: RuleContext, _achievement: Achievement) -> int:
    return ctx.stats.courses_completed


async def _projects_completed(ctx: RuleContext, _achievement: Achievement) -> int:
    return ctx.stats.projects_completed


async def _legacy_completion(ctx: RuleContext, achievement: Achievement) -> int | None:
    """Older catalog rows pick the counter from the achievement name."""
    name = achievement.name.lower()
    if "course" in name:
        return ctx.stats.courses_completed
    if "project" in name:
        return ctx.stats.projects_completed
    logger.warning(
        "Completion achievement %r (id=%s) names neither courses nor projects; it will never unlock",
        achievement.name,
        achievement.id,
    )
    return None


async def _skill_count(ctx: RuleContext, _achievement: Achievement) -> int:
    return await collaborators.count_skills(ctx.db, ctx.user_id)


async def _verified_skills(ctx: RuleContext, _achievement: Achievement) -> int:
    return await collaborators.count_verified_skills(ctx.db, ctx.user_id)


async def _mastered_skills(ctx: RuleContext, _achievement: Achievement) -> int:
    return await collaborators.count_mastered_skills(ctx.db, ctx.user_id, ctx.settings.skill_mastery_level)


ACHIEVEMENT_RULES: dict[str, AchievementRule] = {
    constants.POINTS_MILESTONE: AchievementRule(_total_points),
    constants.STREAK: AchievementRule(_current_streak),
    # Top-N: a lower position is better
    constants.RANKING: AchievementRule(_ranking_position, operator.le),
    constants.COURSE_COMPLETION_COUNT: AchievementRule(_courses_completed),
    constants.PROJECT_COMPLETION_COUNT: AchievementRule(_projects_completed),
    constants.COMPLETION: AchievementRule(_legacy_completion),
    constants.SKILL_COUNT: AchievementRule(_skill_count),
    constants.VERIFIED_SKILLS: AchievementRule(_verified_skills),
    constants.SKILL_MASTERY: AchievementRule(_mastered_skills),
}


async def measure(ctx: RuleContext, achievement: Achievement) -> tuple[int | None, bool]:
    """Return (metric value, qualifies) for one achievement. Unknown types fail closed."""
    rule = ACHIEVEMENT_RULES.get(achievement.achievement_type)
    if rule is None:
        logger.warning(
            "Unknown achievement type %r on achievement %r (id=%s); skipping",
            achievement.achievement_type,
            achievement.name,
            achievement.id,
        )
        return None, False

    value = await rule.metric(ctx, achievement)
    if value is None:
        return None, False
    return value, rule.qualifies(value, achievement.criteria_value)


async def get_active_achievements(db: AsyncSession) -> list[Achievement]:
    result = await db.execute(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(Achievement.criteria_value, Achievement.id)
    )
    return list(result.scalars())


async def get_unlocked_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    )
    return set(result.scalars())


async def _insert_unlock(db: AsyncSession, unlock: UserAchievement) -> bool:
    """Insert an unlock row. Returns False if the unique constraint says it already exists."""
    if db.get_bind().dialect.name == "postgresql":
        # Savepoint keeps the surrounding award transaction usable after a conflict
        try:
            async with db.begin_nested():
                db.add(unlock)
        except IntegrityError:
            return False
        return True

    db.add(unlock)
    await db.flush()
    return True


async def evaluate_and_unlock(
    db: AsyncSession,
    user_id: int,
    stats: UserStats,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> list[Achievement]:
    """Unlock every active achievement the user newly qualifies for.

    Runs a single pass: bonus events appended here are not re-evaluated, so an
    unlock that pushes the user past another threshold is picked up on the next
    award. Returns the achievements unlocked by this call.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if settings is None:
        settings = get_settings()

    achievements = await get_active_achievements(db)
    if not achievements:
        return []

    already = await get_unlocked_ids(db, user_id)
    ctx = RuleContext(db=db, user_id=user_id, stats=stats, settings=settings)

    unlocked: list[Achievement] = []
    for achievement in achievements:
        if achievement.id in already:
            continue

        _value, qualifies = await measure(ctx, achievement)
        if not qualifies:
            continue

        inserted = await _insert_unlock(
            db,
            UserAchievement(user_id=user_id, achievement_id=achievement.id, unlocked_at=now),
        )
        if not inserted:
            logger.info("Achievement %d already unlocked for user %d", achievement.id, user_id)
            continue

        if achievement.points_reward > 0:
            await ledger.append_event(
                db,
                user_id=user_id,
                points_type=constants.ACHIEVEMENT_BONUS,
                points_earned=achievement.points_reward,
                source_id=str(achievement.id),
                source_type=ACHIEVEMENT_SOURCE_TYPE,
                description=f"Achievement unlocked: {achievement.name}",
                created_at=now,
            )

        logger.info(
            "Achievement unlocked: user=%d achievement=%r reward=%d",
            user_id,
            achievement.name,
            achievement.points_reward,
        )
        unlocked.append(achievement)

    return unlocked
