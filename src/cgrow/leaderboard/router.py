"""Leaderboard API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.auth.dependencies import Actor, get_current_actor, require_privileged
from cgrow.config import get_settings
from cgrow.database import get_session
from cgrow.dependencies import get_award_coordinator
from cgrow.leaderboard import leaderboard_service
from cgrow.leaderboard.award_service import AwardCoordinator
from cgrow.leaderboard.constants import SYSTEM_POINT_TYPES
from cgrow.leaderboard.exceptions import AwardValidationError
from cgrow.leaderboard.schemas import (
    ActivityResponse,
    AwardRequest,
    AwardResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    LeaderboardStatsResponse,
    UserAchievementsResponse,
)

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])

MANUAL_SOURCE_TYPE = "manual"


def _clamp_limit(limit: int | None) -> int:
    settings = get_settings()
    if limit is None:
        return settings.leaderboard_default_limit
    return min(limit, settings.leaderboard_max_limit)


def _ensure_can_view(actor: Actor, user_id: int) -> None:
    if not actor.can_view(user_id):
        raise HTTPException(status_code=403, detail="Cannot view another user's leaderboard data")


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    period: str = Query(default="all"),
    limit: int | None = Query(default=None, ge=1),
    department: str | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Ranked users for a period, plus the caller's own live position."""
    entries = await leaderboard_service.get_leaderboard(db, period, _clamp_limit(limit), department)
    own = await leaderboard_service.get_user_position(db, actor.user_id, period)
    return LeaderboardResponse(
        period=period,
        department=department,
        entries=entries,
        user_position=own,
    )


@router.get("/stats", response_model=LeaderboardStatsResponse)
async def get_leaderboard_stats(
    _actor: Actor = Depends(get_current_actor),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    return await leaderboard_service.get_leaderboard_stats(db)


@router.get("/activity", response_model=ActivityResponse)
async def get_recent_activity(
    limit: int = Query(default=20, ge=1, le=100),
    user_id: int | None = Query(default=None, gt=0),
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Newest ledger events across everyone, or for one user."""
    if user_id is not None:
        _ensure_can_view(actor, user_id)
    entries = await leaderboard_service.get_recent_activity(db, user_id=user_id, limit=limit)
    return ActivityResponse(entries=entries)


@router.get("/users/{user_id}", response_model=LeaderboardEntry)
async def get_user_position(
    user_id: int,
    period: str = Query(default="all"),
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    _ensure_can_view(actor, user_id)
    position = await leaderboard_service.get_user_position(db, user_id, period)
    if position is None:
        raise HTTPException(status_code=404, detail="User not found on leaderboard")
    return position


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def get_user_achievements(
    user_id: int,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    _ensure_can_view(actor, user_id)
    return await leaderboard_service.get_user_achievements(db, user_id)


@router.get("/departments/{department}", response_model=LeaderboardResponse)
async def get_department_leaderboard(
    department: str,
    period: str = Query(default="all"),
    limit: int = Query(default=20, ge=1),
    _actor: Actor = Depends(get_current_actor),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    entries = await leaderboard_service.get_leaderboard(db, period, _clamp_limit(limit), department)
    return LeaderboardResponse(period=period, department=department, entries=entries)


@router.post("/award", response_model=AwardResponse)
async def award_points(
    body: AwardRequest,
    actor: Actor = Depends(require_privileged),  # noqa: B008
    coordinator: AwardCoordinator = Depends(get_award_coordinator),  # noqa: B008
):
    """Manually grant points. Admins and managers only."""
    max_points = get_settings().manual_award_max
    if body.points > max_points:
        raise AwardValidationError(f"Points must be between 1 and {max_points}")
    if body.points_type in SYSTEM_POINT_TYPES:
        raise AwardValidationError(f"Points type {body.points_type!r} cannot be granted manually")

    result = await coordinator.award_points(
        body.user_id,
        body.points_type,
        body.points,
        source_id=body.source_id,
        source_type=MANUAL_SOURCE_TYPE,
        description=body.reason or f"Manual points awarded by user {actor.user_id}",
        dedupe=body.source_id is not None,
    )
    return AwardResponse(
        success=result.success,
        user_id=result.user_id,
        points_awarded=result.points_awarded,
        total_points=result.total_points,
        duplicate=result.duplicate,
        achievements_unlocked=result.achievements_unlocked,
    )
