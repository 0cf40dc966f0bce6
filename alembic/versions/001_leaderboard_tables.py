"""Leaderboard tables.

Creates leaderboard_points, user_leaderboard_stats, leaderboard_achievements
and user_achievements. The users, course_enrollments, project_assignments,
user_badges and user_skills tables belong to other CompanyGrow services.

Revision ID: 001_leaderboard_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_leaderboard_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Points ledger (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS leaderboard_points (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            points_type VARCHAR(50) NOT NULL,
            points_earned INTEGER NOT NULL,
            source_id VARCHAR(128),
            source_type VARCHAR(50),
            description TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_leaderboard_points_user_created "
        "ON leaderboard_points(user_id, created_at)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_leaderboard_points_source "
        "ON leaderboard_points(user_id, source_type, source_id)"
    )

    # --- Per-user stats ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_leaderboard_stats (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            total_points BIGINT NOT NULL DEFAULT 0,
            monthly_points BIGINT NOT NULL DEFAULT 0,
            quarterly_points BIGINT NOT NULL DEFAULT 0,
            courses_completed INTEGER NOT NULL DEFAULT 0,
            projects_completed INTEGER NOT NULL DEFAULT 0,
            badges_earned INTEGER NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_activity_date DATE,
            current_month INTEGER,
            current_quarter INTEGER,
            current_year INTEGER,
            ranking_position INTEGER,
            last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_user_leaderboard_stats_total "
        "ON user_leaderboard_stats(total_points DESC)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_user_leaderboard_stats_monthly "
        "ON user_leaderboard_stats(monthly_points DESC)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_user_leaderboard_stats_quarterly "
        "ON user_leaderboard_stats(quarterly_points DESC)"
    )

    # --- Achievement catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS leaderboard_achievements (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(100) UNIQUE NOT NULL,
            description TEXT,
            achievement_type VARCHAR(50) NOT NULL,
            criteria_value INTEGER NOT NULL DEFAULT 0,
            badge_image VARCHAR(500),
            points_reward INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Unlocks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id BIGINT NOT NULL REFERENCES leaderboard_achievements(id) ON DELETE CASCADE,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_id_achievement_id_key UNIQUE (user_id, achievement_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_achievements")
    op.execute("DROP TABLE IF EXISTS leaderboard_achievements")
    op.execute("DROP TABLE IF EXISTS user_leaderboard_stats")
    op.execute("DROP TABLE IF EXISTS leaderboard_points")
