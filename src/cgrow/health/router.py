"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.config import get_settings
from cgrow.database import get_session
from cgrow.db.models import Achievement
from cgrow.dependencies import get_redis_dep
from cgrow.leaderboard.ranking_scheduler import get_scheduler

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: object | None = Depends(get_redis_dep),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: database, achievement catalog, Redis and the ranking consumer."""
    checks: dict[str, object] = {}

    try:
        await db.execute(text("SELECT 1"))
        catalog = await db.execute(select(func.count()).select_from(Achievement))
        checks["database"] = "ok"
        checks["achievements"] = catalog.scalar_one()
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()  # type: ignore[union-attr]
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    scheduler = get_scheduler()
    checks["ranking"] = get_settings().ranking_mode if scheduler is None else "scheduler"

    ok = checks["database"] == "ok" and checks["redis"] in ("ok", "disabled")
    return {"status": "ready" if ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
