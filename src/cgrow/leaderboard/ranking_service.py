"""Full-table dense ranking of user stats by a period field."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import UserStats
from cgrow.leaderboard.constants import RANKABLE_FIELDS
from cgrow.leaderboard.exceptions import UnknownPeriodError

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock; any stable 64-bit value works
RANKING_ADVISORY_LOCK_ID = 0x6C6472626F617264

_ranking_lock = asyncio.Lock()


def ranking_column(period_field: str):
    if period_field not in RANKABLE_FIELDS:
        raise UnknownPeriodError(f"Cannot rank by {period_field!r}")
    return getattr(UserStats, period_field)


def ranking_lock_held() -> bool:
    return _ranking_lock.locked()


@asynccontextmanager
async def ranking_serialized(db: AsyncSession) -> AsyncIterator[None]:
    """Hold the ranking write lock for the rest of this block.

    In-process this is an asyncio lock. On PostgreSQL a transaction-scoped
    advisory lock is taken too and stays held until the caller commits or
    rolls back. Callers that also lock UserStats rows must enter this first.
    """
    async with _ranking_lock:
        if db.get_bind().dialect.name == "postgresql":
            await db.execute(
                text("SELECT pg_advisory_xact_lock(:lock_id)"),
                {"lock_id": RANKING_ADVISORY_LOCK_ID},
            )
        yield


async def recompute_rankings(
    db: AsyncSession,
    period_field: str = "total_points",
    *,
    already_serialized: bool = False,
) -> int:
    """Assign ranking_position = 1..N ordered by period_field DESC, user_id ASC.

    Only rows whose position changed are written. Pass ``already_serialized``
    when the caller is inside ``ranking_serialized`` for this session.
    Returns the number of ranked rows.
    """
    column = ranking_column(period_field)

    if already_serialized:
        ranked, changed = await _assign_positions(db, column)
    else:
        async with ranking_serialized(db):
            ranked, changed = await _assign_positions(db, column)

    logger.info("Rankings recomputed by %s: %d rows, %d changed", period_field, ranked, changed)
    return ranked


async def _assign_positions(db: AsyncSession, column) -> tuple[int, int]:
    result = await db.execute(
        select(UserStats.id, UserStats.ranking_position)
        .order_by(column.desc(), UserStats.user_id.asc())
    )
    rows = result.all()

    changed = 0
    for position, row in enumerate(rows, start=1):
        if row.ranking_position == position:
            continue
        await db.execute(
            update(UserStats)
            .where(UserStats.id == row.id)
            .values(ranking_position=position)
        )
        changed += 1

    await db.flush()
    return len(rows), changed
