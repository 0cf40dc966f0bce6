"""Append-only points ledger: inserts, signed sums and recent-activity reads."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import PointEvent


async def append_event(
    db: AsyncSession,
    user_id: int,
    points_type: str,
    points_earned: int,
    source_id: str | None = None,
    source_type: str | None = None,
    description: str | None = None,
    created_at: datetime | None = None,
) -> PointEvent:
    """Insert a point event and flush so it gets an id. Caller owns the transaction."""
    event = PointEvent(
        user_id=user_id,
        points_type=points_type,
        points_earned=points_earned,
        source_id=source_id,
        source_type=source_type,
        description=description,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(event)
    await db.flush()
    return event


async def sum_points(
    db: AsyncSession,
    user_id: int,
    points_type: str | None = None,
    from_time: datetime | None = None,
    to_time: datetime | None = None,
) -> int:
    """Signed sum of points_earned for a user, optionally by type and [from_time, to_time)."""
    stmt = select(func.coalesce(func.sum(PointEvent.points_earned), 0)).where(PointEvent.user_id == user_id)
    if points_type is not None:
        stmt = stmt.where(PointEvent.points_type == points_type)
    if from_time is not None:
        stmt = stmt.where(PointEvent.created_at >= from_time)
    if to_time is not None:
        stmt = stmt.where(PointEvent.created_at < to_time)

    result = await db.execute(stmt)
    return int(result.scalar_one())


async def count_events(
    db: AsyncSession,
    user_id: int,
    points_types: list[str],
    from_time: datetime | None = None,
) -> int:
    """Count a user's events of the given types since from_time."""
    stmt = select(func.count()).select_from(PointEvent).where(
        PointEvent.user_id == user_id,
        PointEvent.points_type.in_(points_types),
    )
    if from_time is not None:
        stmt = stmt.where(PointEvent.created_at >= from_time)
    result = await db.execute(stmt)
    return int(result.scalar_one())


async def list_recent(
    db: AsyncSession,
    user_id: int | None = None,
    limit: int = 20,
) -> list[PointEvent]:
    """Newest-first events for one user, or across all users when user_id is None."""
    stmt = select(PointEvent).order_by(PointEvent.created_at.desc(), PointEvent.id.desc()).limit(limit)
    if user_id is not None:
        stmt = stmt.where(PointEvent.user_id == user_id)
    result = await db.execute(stmt)
    return list(result.scalars())


async def find_by_source(
    db: AsyncSession,
    user_id: int,
    points_type: str,
    source_type: str,
    source_id: str,
) -> PointEvent | None:
    """Find an earlier event for the same user, type and source back-reference."""
    result = await db.execute(
        select(PointEvent)
        .where(
            PointEvent.user_id == user_id,
            PointEvent.points_type == points_type,
            PointEvent.source_type == source_type,
            PointEvent.source_id == source_id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def total_awarded(db: AsyncSession) -> int:
    """Net points across the whole ledger."""
    result = await db.execute(select(func.coalesce(func.sum(PointEvent.points_earned), 0)))
    return int(result.scalar_one())
