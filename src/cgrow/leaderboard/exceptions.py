"""Leaderboard engine exceptions."""


class LeaderboardError(Exception):
    """Base class for leaderboard engine errors."""


class AwardValidationError(LeaderboardError, ValueError):
    """An award request was rejected before anything was written."""


class UnknownPeriodError(LeaderboardError, ValueError):
    """A leaderboard period other than all/monthly/quarterly was requested."""
