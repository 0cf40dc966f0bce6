"""Default achievement catalog, inserted once and then owned by admins."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import Achievement
from cgrow.leaderboard import constants

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Points milestones
    {
        "name": "Getting Started",
        "description": "Earn your first 100 points",
        "achievement_type": constants.POINTS_MILESTONE,
        "criteria_value": 100,
        "points_reward": 25,
    },
    {
        "name": "Rising Star",
        "description": "Earn 1,000 points",
        "achievement_type": constants.POINTS_MILESTONE,
        "criteria_value": 1000,
        "points_reward": 100,
    },
    {
        "name": "Point Master",
        "description": "Earn 5,000 points",
        "achievement_type": constants.POINTS_MILESTONE,
        "criteria_value": 5000,
        "points_reward": 250,
    },
    # Streaks
    {
        "name": "On a Roll",
        "description": "Stay active 3 days in a row",
        "achievement_type": constants.STREAK,
        "criteria_value": 3,
        "points_reward": 30,
    },
    {
        "name": "Week Warrior",
        "description": "Stay active 7 days in a row",
        "achievement_type": constants.STREAK,
        "criteria_value": 7,
        "points_reward": 75,
    },
    {
        "name": "Unstoppable",
        "description": "Stay active 30 days in a row",
        "achievement_type": constants.STREAK,
        "criteria_value": 30,
        "points_reward": 300,
    },
    # Completions
    {
        "name": "First Course Completed",
        "description": "Complete your first course",
        "achievement_type": constants.COURSE_COMPLETION_COUNT,
        "criteria_value": 1,
        "points_reward": 50,
    },
    {
        "name": "Lifelong Learner",
        "description": "Complete 10 courses",
        "achievement_type": constants.COURSE_COMPLETION_COUNT,
        "criteria_value": 10,
        "points_reward": 200,
    },
    {
        "name": "Project Finisher",
        "description": "Complete your first project",
        "achievement_type": constants.PROJECT_COMPLETION_COUNT,
        "criteria_value": 1,
        "points_reward": 50,
    },
    {
        "name": "Delivery Expert",
        "description": "Complete 5 projects",
        "achievement_type": constants.PROJECT_COMPLETION_COUNT,
        "criteria_value": 5,
        "points_reward": 150,
    },
    # Skills
    {
        "name": "Skill Collector",
        "description": "Add 5 skills to your profile",
        "achievement_type": constants.SKILL_COUNT,
        "criteria_value": 5,
        "points_reward": 50,
    },
    {
        "name": "Verified Expert",
        "description": "Have 3 skills verified by a manager",
        "achievement_type": constants.VERIFIED_SKILLS,
        "criteria_value": 3,
        "points_reward": 75,
    },
    {
        "name": "Master of One",
        "description": "Reach mastery level in a skill",
        "achievement_type": constants.SKILL_MASTERY,
        "criteria_value": 1,
        "points_reward": 100,
    },
    # Ranking
    {
        "name": "Top Ten",
        "description": "Reach the top 10 of the leaderboard",
        "achievement_type": constants.RANKING,
        "criteria_value": 10,
        "points_reward": 150,
    },
]


async def seed_achievements(db: AsyncSession) -> int:
    """Insert catalog entries missing by name. Existing rows are left untouched. Returns rows inserted."""
    result = await db.execute(select(Achievement.name))
    existing = set(result.scalars())

    inserted = 0
    for data in ACHIEVEMENT_SEED_DATA:
        if data["name"] in existing:
            continue
        db.add(Achievement(is_active=True, **data))
        inserted += 1

    await db.commit()
    logger.info("Seeded %d achievement definitions (%d already present)", inserted, len(existing))
    return inserted
