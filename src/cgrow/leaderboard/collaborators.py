"""Read-only counts from the collaborator-owned course, project, badge and skill tables."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import CourseEnrollment, ProjectAssignment, UserBadge, UserSkill

COMPLETED = "completed"


async def _count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return int(result.scalar_one())


async def count_completed_courses(db: AsyncSession, user_id: int) -> int:
    return await _count(
        db,
        select(func.count()).select_from(CourseEnrollment).where(
            CourseEnrollment.user_id == user_id,
            CourseEnrollment.status == COMPLETED,
        ),
    )


async def count_completed_projects(db: AsyncSession, user_id: int) -> int:
    return await _count(
        db,
        select(func.count()).select_from(ProjectAssignment).where(
            ProjectAssignment.user_id == user_id,
            ProjectAssignment.status == COMPLETED,
        ),
    )


async def count_badges(db: AsyncSession, user_id: int) -> int:
    return await _count(
        db,
        select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user_id),
    )


async def count_skills(db: AsyncSession, user_id: int) -> int:
    return await _count(
        db,
        select(func.count()).select_from(UserSkill).where(UserSkill.user_id == user_id),
    )


async def count_verified_skills(db: AsyncSession, user_id: int) -> int:
    return await _count(
        db,
        select(func.count()).select_from(UserSkill).where(
            UserSkill.user_id == user_id,
            UserSkill.is_verified.is_(True),
        ),
    )


async def count_mastered_skills(db: AsyncSession, user_id: int, level: int = 5) -> int:
    """Skills at or above the mastery proficiency level."""
    return await _count(
        db,
        select(func.count()).select_from(UserSkill).where(
            UserSkill.user_id == user_id,
            UserSkill.proficiency_level >= level,
        ),
    )
