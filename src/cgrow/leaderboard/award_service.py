"""Award coordinator: one atomic unit of work per incoming point award.

append ledger event -> recompute the user's stats -> evaluate achievements
(-> recompute stats again if bonuses were appended) -> rankings, then commit.
Any failure, including the caller's timeout, rolls the whole award back.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.config import Settings, get_settings
from cgrow.db.models import Achievement
from cgrow.leaderboard import ledger
from cgrow.leaderboard.achievement_service import evaluate_and_unlock
from cgrow.leaderboard.constants import (
    CHANNEL_ACHIEVEMENT_UNLOCKED,
    CHANNEL_POINTS_AWARDED,
    POINT_TYPES,
)
from cgrow.leaderboard.events import publish
from cgrow.leaderboard.exceptions import AwardValidationError
from cgrow.leaderboard.ranking_scheduler import RankingScheduler, get_scheduler, mark_ranking_dirty
from cgrow.leaderboard.ranking_service import ranking_serialized, recompute_rankings
from cgrow.leaderboard.stats_service import get_stats, recompute_stats

logger = logging.getLogger(__name__)

RANKING_INLINE = "inline"
RANKING_DEFERRED = "deferred"


@dataclass
class AwardResult:
    success: bool
    points_awarded: int
    user_id: int
    event_id: int | None = None
    total_points: int = 0
    duplicate: bool = False
    achievements_unlocked: list[str] = field(default_factory=list)


def validate_award(
    user_id: object,
    points_type: object,
    points_earned: object,
    max_points: int,
) -> None:
    """Reject malformed awards before anything is written."""
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise AwardValidationError(f"Invalid user id: {user_id!r}")
    if not isinstance(points_type, str) or points_type not in POINT_TYPES:
        raise AwardValidationError(f"Unknown points type: {points_type!r}")
    if points_earned is None:
        raise AwardValidationError("Points amount is required")
    if isinstance(points_earned, bool) or not isinstance(points_earned, int):
        raise AwardValidationError(f"Points amount must be an integer, got {points_earned!r}")
    if points_earned == 0:
        raise AwardValidationError("Points amount must be non-zero")
    if abs(points_earned) > max_points:
        raise AwardValidationError(f"Points amount {points_earned} exceeds the limit of {max_points}")


class AwardCoordinator:
    """Applies awards inside the given session's transaction and commits them."""

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        settings: Settings | None = None,
        scheduler: RankingScheduler | None = None,
    ) -> None:
        self.db = db
        self.redis = redis
        self.settings = settings or get_settings()
        self.scheduler = scheduler if scheduler is not None else get_scheduler()

    @property
    def ranks_inline(self) -> bool:
        return self.settings.ranking_mode == RANKING_INLINE

    async def award_points(
        self,
        user_id: int,
        points_type: str,
        points_earned: int,
        source_id: str | int | None = None,
        source_type: str | None = None,
        description: str | None = None,
        dedupe: bool = False,
        now: datetime | None = None,
    ) -> AwardResult:
        """Award (or deduct) points and fold them into stats, achievements and rankings.

        With ``dedupe=True`` an earlier event for the same user, type and
        source makes this call a no-op that reports ``duplicate=True``.
        Raises AwardValidationError before any write; store errors and
        TimeoutError propagate after the transaction is rolled back.
        """
        validate_award(user_id, points_type, points_earned, self.settings.max_points_per_award)
        if dedupe and (source_id is None or source_type is None):
            raise AwardValidationError("Deduplicated awards need both source_id and source_type")
        if now is None:
            now = datetime.now(timezone.utc)
        source_ref = str(source_id) if source_id is not None else None

        try:
            result, unlocked = await asyncio.wait_for(
                self._apply_serialized(
                    user_id, points_type, points_earned, source_ref, source_type, description, dedupe, now
                ),
                timeout=self.settings.award_timeout_seconds,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if result.duplicate:
            logger.info(
                "Duplicate award skipped: user=%d type=%s source=%s:%s",
                user_id, points_type, source_type, source_ref,
            )
            return result

        logger.info(
            "Points awarded: user=%d type=%s amount=%d total=%d",
            user_id, points_type, points_earned, result.total_points,
        )
        await self._after_commit(result, points_type, unlocked)
        return result

    async def _apply_serialized(self, *args) -> tuple[AwardResult, list[Achievement]]:
        # Inline ranking rewrites every stats row, so the ranking lock is taken
        # before this award locks its own row. Lock order: ranking, then rows.
        if not self.ranks_inline:
            return await self._apply(*args)
        async with ranking_serialized(self.db):
            return await self._apply(*args)

    async def _apply(
        self,
        user_id: int,
        points_type: str,
        points_earned: int,
        source_id: str | None,
        source_type: str | None,
        description: str | None,
        dedupe: bool,
        now: datetime,
    ) -> tuple[AwardResult, list[Achievement]]:
        if dedupe:
            existing = await ledger.find_by_source(self.db, user_id, points_type, source_type, source_id)
            if existing is not None:
                stats = await get_stats(self.db, user_id)
                return AwardResult(
                    success=True,
                    points_awarded=0,
                    user_id=user_id,
                    event_id=existing.id,
                    total_points=stats.total_points if stats else 0,
                    duplicate=True,
                ), []

        event = await ledger.append_event(
            self.db,
            user_id=user_id,
            points_type=points_type,
            points_earned=points_earned,
            source_id=source_id,
            source_type=source_type,
            description=description,
            created_at=now,
        )

        stats = await recompute_stats(self.db, user_id, now, self.settings)
        unlocked = await evaluate_and_unlock(self.db, user_id, stats, now, self.settings)
        if any(a.points_reward > 0 for a in unlocked):
            stats = await recompute_stats(self.db, user_id, now, self.settings)

        if self.ranks_inline:
            await recompute_rankings(self.db, self.settings.ranking_period_field, already_serialized=True)

        return AwardResult(
            success=True,
            points_awarded=points_earned,
            user_id=user_id,
            event_id=event.id,
            total_points=stats.total_points,
            achievements_unlocked=[a.name for a in unlocked],
        ), unlocked

    async def _after_commit(self, result: AwardResult, points_type: str, unlocked: list[Achievement]) -> None:
        if not self.ranks_inline:
            if self.scheduler is not None:
                self.scheduler.mark_dirty()
            await mark_ranking_dirty(self.redis)

        await publish(self.redis, CHANNEL_POINTS_AWARDED, {
            "user_id": result.user_id,
            "points_type": points_type,
            "points": result.points_awarded,
            "total_points": result.total_points,
        })
        for achievement in unlocked:
            await publish(self.redis, CHANNEL_ACHIEVEMENT_UNLOCKED, {
                "user_id": result.user_id,
                "achievement_id": achievement.id,
                "name": achievement.name,
                "points_reward": achievement.points_reward,
            })


async def award_points(
    db: AsyncSession,
    redis: object | None,
    user_id: int,
    points_type: str,
    points_earned: int,
    source_id: str | int | None = None,
    source_type: str | None = None,
    description: str | None = None,
    dedupe: bool = False,
) -> AwardResult:
    """Shortcut for a one-off award with the process-wide settings and scheduler."""
    coordinator = AwardCoordinator(db, redis)
    return await coordinator.award_points(
        user_id,
        points_type,
        points_earned,
        source_id=source_id,
        source_type=source_type,
        description=description,
        dedupe=dedupe,
    )
