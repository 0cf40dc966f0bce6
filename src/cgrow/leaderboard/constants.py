"""Point types, periods and achievement types known to the leaderboard engine."""

from __future__ import annotations

# --- Point types (ledger category tags) ---
ACHIEVEMENT_BONUS = "achievement_bonus"
MANUAL_AWARD = "manual_award"

POINT_TYPES: frozenset[str] = frozenset({
    "registration_bonus",
    "course_enrollment",
    "course_started",
    "course_progress",
    "course_completion",
    "project_assignment",
    "project_completion",
    "badge_earned",
    "skill_added",
    "skill_verified",
    "skill_improvement",
    "skill_mastery",
    "skill_removed",
    "profile_update",
    "daily_activity",
    "peer_review",
    "mentoring",
    "knowledge_sharing",
    "team_collaboration",
    "idea_submission",
    "community_participation",
    "weekly_learning_bonus",
    "leadership_activity",
    "event_participation",
    ACHIEVEMENT_BONUS,
    MANUAL_AWARD,
})

# Written only by the engine itself; never grantable by hand
SYSTEM_POINT_TYPES: frozenset[str] = frozenset({ACHIEVEMENT_BONUS, "weekly_learning_bonus"})

# --- Leaderboard periods → UserStats column ---
PERIOD_FIELDS: dict[str, str] = {
    "all": "total_points",
    "monthly": "monthly_points",
    "quarterly": "quarterly_points",
}

RANKABLE_FIELDS: frozenset[str] = frozenset(PERIOD_FIELDS.values())

# --- Achievement types ---
POINTS_MILESTONE = "points_milestone"
STREAK = "streak"
RANKING = "ranking"
COMPLETION = "completion"  # legacy, dispatches on the achievement name
COURSE_COMPLETION_COUNT = "course_completion_count"
PROJECT_COMPLETION_COUNT = "project_completion_count"
SKILL_COUNT = "skill_count"
VERIFIED_SKILLS = "verified_skills"
SKILL_MASTERY = "skill_mastery"

# --- Roles allowed to grant points and view other users ---
PRIVILEGED_ROLES: frozenset[str] = frozenset({"admin", "manager"})

# --- Redis keys / channels ---
RANKING_DIRTY_KEY = "leaderboard:ranking_dirty"
RANKING_LOCK_KEY = "lock:leaderboard:rankings"
CHANNEL_POINTS_AWARDED = "pubsub:points_awarded"
CHANNEL_ACHIEVEMENT_UNLOCKED = "pubsub:achievement_unlocked"
CHANNEL_LEADERBOARD_UPDATE = "pubsub:leaderboard_update"
