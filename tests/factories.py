"""Row builders shared by the integration tests."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import Achievement, PointEvent, User, UserStats

# Mid-month, mid-quarter reference time used by clock-dependent tests
NOW = datetime(2026, 11, 18, 12, 0, 0, tzinfo=timezone.utc)


async def create_user(
    db: AsyncSession,
    user_id: int,
    first_name: str = "Test",
    last_name: str = "User",
    department: str | None = "Engineering",
    role: str = "employee",
) -> User:
    user = User(
        id=user_id,
        first_name=first_name,
        last_name=last_name,
        email=f"user{user_id}@companygrow.test",
        role=role,
        department=department,
    )
    db.add(user)
    await db.commit()
    return user


async def create_achievement(
    db: AsyncSession,
    name: str,
    achievement_type: str,
    criteria_value: int,
    points_reward: int = 0,
    is_active: bool = True,
) -> Achievement:
    achievement = Achievement(
        name=name,
        description=f"{name} description",
        achievement_type=achievement_type,
        criteria_value=criteria_value,
        points_reward=points_reward,
        is_active=is_active,
    )
    db.add(achievement)
    await db.commit()
    return achievement


async def create_event(
    db: AsyncSession,
    user_id: int,
    points: int,
    created_at: datetime,
    points_type: str = "manual_award",
) -> PointEvent:
    event = PointEvent(
        user_id=user_id,
        points_type=points_type,
        points_earned=points,
        source_type="test",
        description="test event",
        created_at=created_at,
    )
    db.add(event)
    await db.commit()
    return event


async def create_stats(db: AsyncSession, user_id: int, **values) -> UserStats:
    stats = UserStats(user_id=user_id, **values)
    db.add(stats)
    await db.commit()
    return stats
