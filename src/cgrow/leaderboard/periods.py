"""Calendar period helpers: month, quarter and ISO week boundaries in UTC."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from cgrow.leaderboard.constants import PERIOD_FIELDS
from cgrow.leaderboard.exceptions import UnknownPeriodError


@dataclass(frozen=True)
class PeriodStamp:
    """The month/quarter/year a stats row was last computed for."""

    month: int
    quarter: int
    year: int


def quarter_of(month: int) -> int:
    """Quarter number (1-4) for a calendar month (1-12)."""
    return (month + 2) // 3


def current_period(now: datetime | None = None) -> PeriodStamp:
    """Get the period stamp for now (UTC)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return PeriodStamp(month=now.month, quarter=quarter_of(now.month), year=now.year)


def _first_of_month(year: int, month: int) -> datetime:
    # Months past December roll into the next year
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def month_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return [first of current month, first of next month) in UTC."""
    stamp = current_period(now)
    return _first_of_month(stamp.year, stamp.month), _first_of_month(stamp.year, stamp.month + 1)


def quarter_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return [first of current quarter, first of next quarter) in UTC."""
    stamp = current_period(now)
    start_month = (stamp.quarter - 1) * 3 + 1
    return _first_of_month(stamp.year, start_month), _first_of_month(stamp.year, start_month + 3)


def get_week_iso(dt: datetime | date) -> str:
    """Get ISO week string e.g. '2026-W09'. Uses %G-W%V (ISO year + ISO week)."""
    return dt.strftime("%G-W%V")


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = dt.date() if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def week_start(now: datetime | None = None) -> datetime:
    """Monday 00:00 UTC of the ISO week containing now."""
    if now is None:
        now = datetime.now(timezone.utc)
    monday = get_monday(now)
    return datetime(monday.year, monday.month, monday.day, tzinfo=timezone.utc)


def utc_date(dt: datetime) -> date:
    """Calendar date of a timestamp in UTC. Naive timestamps are taken as UTC."""
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(timezone.utc).date()


def period_field(period: str) -> str:
    """Map a leaderboard period name to its UserStats column."""
    try:
        return PERIOD_FIELDS[period]
    except KeyError:
        raise UnknownPeriodError(f"Unknown period: {period}") from None
