"""Pydantic request/response models for leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Leaderboard ---


class LeaderboardUser(BaseModel):
    id: int
    name: str | None = None
    department: str | None = None
    position: str | None = None
    profile_image: str | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    user: LeaderboardUser
    points: int
    total_points: int
    monthly_points: int
    quarterly_points: int
    courses_completed: int
    projects_completed: int
    badges_earned: int
    current_streak: int
    longest_streak: int


class LeaderboardResponse(BaseModel):
    period: str
    department: str | None = None
    entries: list[LeaderboardEntry]
    user_position: LeaderboardEntry | None = None


# --- Achievements ---


class AchievementResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    achievement_type: str
    criteria_value: int
    points_reward: int
    badge_image: str | None = None


class UnlockedAchievementResponse(AchievementResponse):
    unlocked_at: datetime


class AchievementProgress(BaseModel):
    unlocked_count: int
    total_count: int
    completion_percentage: float


class UserAchievementsResponse(BaseModel):
    unlocked: list[UnlockedAchievementResponse]
    locked: list[AchievementResponse]
    progress: AchievementProgress


# --- Stats ---


class StatsOverview(BaseModel):
    total_users: int
    active_users: int
    participation_rate: float
    total_points_awarded: int
    average_points: int


class TopPerformer(BaseModel):
    user_id: int
    name: str | None = None
    department: str | None = None
    points: int
    streak: int


class PopularAchievement(BaseModel):
    name: str
    unlock_count: int


class LeaderboardStatsResponse(BaseModel):
    overview: StatsOverview
    top_performer: TopPerformer | None = None
    popular_achievements: list[PopularAchievement]


# --- Activity ---


class ActivityEntry(BaseModel):
    id: int
    user_id: int
    points_type: str
    points_earned: int
    source_id: str | None = None
    source_type: str | None = None
    description: str | None = None
    created_at: datetime


class ActivityResponse(BaseModel):
    entries: list[ActivityEntry]


# --- Manual award ---


class AwardRequest(BaseModel):
    user_id: int = Field(gt=0)
    points: int = Field(ge=1)
    points_type: str = "manual_award"
    reason: str | None = Field(default=None, max_length=500)
    source_id: str | None = Field(default=None, max_length=128)


class AwardResponse(BaseModel):
    success: bool
    user_id: int
    points_awarded: int
    total_points: int
    duplicate: bool = False
    achievements_unlocked: list[str] = []
