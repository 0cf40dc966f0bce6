"""Activity hooks: the point values awarded for each trackable activity.

Other subsystems call these after the underlying action has succeeded. Each
hook is a thin call into ``AwardCoordinator.award_points``; errors propagate
to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from cgrow.leaderboard import ledger
from cgrow.leaderboard.award_service import AwardCoordinator, AwardResult
from cgrow.leaderboard.periods import get_week_iso, week_start

logger = logging.getLogger(__name__)

REGISTRATION_POINTS = 50
COURSE_ENROLLED_POINTS = 25
COURSE_STARTED_POINTS = 25
COURSE_PROGRESS_POINTS: dict[int, int] = {25: 25, 50: 50, 75: 75}
COURSE_COMPLETED_POINTS = 150
PROJECT_ASSIGNED_POINTS = 50
PROJECT_COMPLETED_POINTS = 200
BADGE_EARNED_POINTS = 75
SKILL_ADDED_BASE_POINTS = 20
SKILL_ADDED_PER_LEVEL = 5
SKILL_VERIFIED_POINTS = 30
SKILL_IMPROVED_PER_LEVEL = 15
SKILL_MASTERY_POINTS = 100
SKILL_REMOVED_POINTS = -10
PROFILE_UPDATED_POINTS = 20
DAILY_LOGIN_POINTS = 10
PEER_REVIEW_POINTS = 40
MENTORING_POINTS = 60
IDEA_SUBMISSION_POINTS = 50

KNOWLEDGE_SHARING_POINTS: dict[str, int] = {
    "blog_post": 80,
    "tutorial": 100,
    "documentation": 60,
    "presentation": 70,
    "workshop": 120,
}
KNOWLEDGE_SHARING_DEFAULT = 50

TEAM_COLLABORATION_POINTS: dict[str, int] = {
    "code_review": 25,
    "pair_programming": 40,
    "team_meeting": 15,
    "brainstorming": 30,
    "problem_solving": 35,
}
TEAM_COLLABORATION_DEFAULT = 20

COMMUNITY_PARTICIPATION_POINTS: dict[str, int] = {
    "forum_post": 10,
    "helpful_answer": 25,
    "question_asked": 15,
    "event_attendance": 30,
    "volunteer_work": 50,
}
COMMUNITY_PARTICIPATION_DEFAULT = 15

LEADERSHIP_BASE_POINTS: dict[str, int] = {
    "team_management": 40,
    "performance_review": 30,
    "goal_setting": 25,
    "conflict_resolution": 50,
    "strategic_planning": 60,
}
LEADERSHIP_DEFAULT = 30
LEADERSHIP_PER_TEAM_MEMBER = 5

EVENT_PARTICIPATION_POINTS: dict[str, int] = {
    "hackathon": 150,
    "conference": 100,
    "workshop": 75,
    "webinar": 40,
    "company_event": 50,
    "training_session": 60,
}
EVENT_PARTICIPATION_DEFAULT = 50

WEEKLY_LEARNING_BONUS_POINTS = 100
WEEKLY_LEARNING_THRESHOLD = 3
LEARNING_POINT_TYPES = ["course_completion", "project_completion", "skill_verified"]


def _humanize(kind: str) -> str:
    return kind.replace("_", " ")


async def on_user_registered(coordinator: AwardCoordinator, user_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "registration_bonus", REGISTRATION_POINTS,
        source_id=user_id, source_type="registration",
        description="Welcome bonus for joining CompanyGrow!",
        dedupe=True,
    )


async def on_course_enrolled(coordinator: AwardCoordinator, user_id: int, course_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "course_enrollment", COURSE_ENROLLED_POINTS,
        source_id=course_id, source_type="course",
        description="Enrolled in a new course",
    )


async def on_course_started(coordinator: AwardCoordinator, user_id: int, course_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "course_started", COURSE_STARTED_POINTS,
        source_id=course_id, source_type="course",
        description="Started learning a course",
    )


async def on_course_progress(
    coordinator: AwardCoordinator,
    user_id: int,
    course_id: int,
    percentage: int,
) -> AwardResult | None:
    """Milestones at 25/50/75%. Any other percentage awards nothing."""
    points = COURSE_PROGRESS_POINTS.get(percentage)
    if points is None:
        return None
    return await coordinator.award_points(
        user_id, "course_progress", points,
        source_id=f"{course_id}:{percentage}", source_type="course",
        description=f"Reached {percentage}% progress in course",
        dedupe=True,
    )


async def on_course_completed(coordinator: AwardCoordinator, user_id: int, course_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "course_completion", COURSE_COMPLETED_POINTS,
        source_id=course_id, source_type="course",
        description="Course completed successfully",
        dedupe=True,
    )


async def on_project_assigned(coordinator: AwardCoordinator, user_id: int, project_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "project_assignment", PROJECT_ASSIGNED_POINTS,
        source_id=project_id, source_type="project",
        description="Assigned to a new project",
    )


async def on_project_completed(coordinator: AwardCoordinator, user_id: int, project_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "project_completion", PROJECT_COMPLETED_POINTS,
        source_id=project_id, source_type="project",
        description="Project completed successfully",
        dedupe=True,
    )


async def on_badge_earned(coordinator: AwardCoordinator, user_id: int, badge_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "badge_earned", BADGE_EARNED_POINTS,
        source_id=badge_id, source_type="badge",
        description="Badge earned",
        dedupe=True,
    )


async def on_skill_added(
    coordinator: AwardCoordinator,
    user_id: int,
    skill_id: int,
    proficiency_level: int,
) -> AwardResult:
    points = SKILL_ADDED_BASE_POINTS + proficiency_level * SKILL_ADDED_PER_LEVEL
    return await coordinator.award_points(
        user_id, "skill_added", points,
        source_id=skill_id, source_type="skill",
        description=f"Added new skill (Level {proficiency_level})",
    )


async def on_skill_verified(coordinator: AwardCoordinator, user_id: int, skill_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "skill_verified", SKILL_VERIFIED_POINTS,
        source_id=skill_id, source_type="skill",
        description="Skill verified by manager",
        dedupe=True,
    )


async def on_skill_improved(
    coordinator: AwardCoordinator,
    user_id: int,
    skill_id: int,
    improvement: int,
) -> AwardResult | None:
    if improvement <= 0:
        return None
    plural = "s" if improvement > 1 else ""
    return await coordinator.award_points(
        user_id, "skill_improvement", improvement * SKILL_IMPROVED_PER_LEVEL,
        source_id=skill_id, source_type="skill",
        description=f"Improved skill by {improvement} level{plural}",
    )


async def on_skill_mastery(coordinator: AwardCoordinator, user_id: int, skill_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "skill_mastery", SKILL_MASTERY_POINTS,
        source_id=skill_id, source_type="skill",
        description=f"Achieved skill mastery (Level {coordinator.settings.skill_mastery_level})",
        dedupe=True,
    )


async def on_skill_removed(coordinator: AwardCoordinator, user_id: int, skill_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "skill_removed", SKILL_REMOVED_POINTS,
        source_id=skill_id, source_type="skill",
        description="Skill removed from profile",
    )


async def on_profile_updated(coordinator: AwardCoordinator, user_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "profile_update", PROFILE_UPDATED_POINTS,
        source_type="profile",
        description="Profile information updated",
    )


async def on_daily_login(
    coordinator: AwardCoordinator,
    user_id: int,
    now: datetime | None = None,
) -> AwardResult:
    """Once per UTC day; repeated logins the same day are duplicates."""
    if now is None:
        now = datetime.now(timezone.utc)
    return await coordinator.award_points(
        user_id, "daily_activity", DAILY_LOGIN_POINTS,
        source_id=now.date().isoformat(), source_type="activity",
        description="Daily login activity",
        dedupe=True,
        now=now,
    )


async def on_peer_review_completed(coordinator: AwardCoordinator, user_id: int, reviewee_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "peer_review", PEER_REVIEW_POINTS,
        source_id=reviewee_id, source_type="review",
        description="Completed peer review",
    )


async def on_mentoring_session(coordinator: AwardCoordinator, user_id: int, mentee_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "mentoring", MENTORING_POINTS,
        source_id=mentee_id, source_type="mentoring",
        description="Conducted mentoring session",
    )


async def on_knowledge_sharing(
    coordinator: AwardCoordinator,
    user_id: int,
    content_type: str,
    content_id: int | str | None = None,
) -> AwardResult:
    points = KNOWLEDGE_SHARING_POINTS.get(content_type, KNOWLEDGE_SHARING_DEFAULT)
    return await coordinator.award_points(
        user_id, "knowledge_sharing", points,
        source_id=content_id, source_type=content_type,
        description=f"Created {_humanize(content_type)} for knowledge sharing",
    )


async def on_team_collaboration(
    coordinator: AwardCoordinator,
    user_id: int,
    collaboration_type: str,
    related_id: int | str | None = None,
) -> AwardResult:
    points = TEAM_COLLABORATION_POINTS.get(collaboration_type, TEAM_COLLABORATION_DEFAULT)
    return await coordinator.award_points(
        user_id, "team_collaboration", points,
        source_id=related_id, source_type="collaboration",
        description=f"Participated in {_humanize(collaboration_type)}",
    )


async def on_idea_submission(coordinator: AwardCoordinator, user_id: int, idea_id: int) -> AwardResult:
    return await coordinator.award_points(
        user_id, "idea_submission", IDEA_SUBMISSION_POINTS,
        source_id=idea_id, source_type="innovation",
        description="Submitted innovative idea",
    )


async def on_community_participation(
    coordinator: AwardCoordinator,
    user_id: int,
    activity_type: str,
    activity_id: int | str | None = None,
) -> AwardResult:
    points = COMMUNITY_PARTICIPATION_POINTS.get(activity_type, COMMUNITY_PARTICIPATION_DEFAULT)
    return await coordinator.award_points(
        user_id, "community_participation", points,
        source_id=activity_id, source_type="community",
        description=f"Participated in {_humanize(activity_type)}",
    )


async def on_leadership_activity(
    coordinator: AwardCoordinator,
    user_id: int,
    activity_type: str,
    team_size: int = 1,
) -> AwardResult:
    points = LEADERSHIP_BASE_POINTS.get(activity_type, LEADERSHIP_DEFAULT) + team_size * LEADERSHIP_PER_TEAM_MEMBER
    return await coordinator.award_points(
        user_id, "leadership_activity", points,
        source_type="leadership",
        description=f"Leadership activity: {_humanize(activity_type)}",
    )


async def on_event_participation(
    coordinator: AwardCoordinator,
    user_id: int,
    event_type: str,
    event_id: int | str | None = None,
) -> AwardResult:
    points = EVENT_PARTICIPATION_POINTS.get(event_type, EVENT_PARTICIPATION_DEFAULT)
    return await coordinator.award_points(
        user_id, "event_participation", points,
        source_id=event_id, source_type="event",
        description=f"Participated in {_humanize(event_type)}",
    )


async def check_weekly_learning_bonus(
    coordinator: AwardCoordinator,
    user_id: int,
    now: datetime | None = None,
) -> AwardResult | None:
    """Award the weekly bonus once per ISO week after enough learning events."""
    if now is None:
        now = datetime.now(timezone.utc)

    activities = await ledger.count_events(
        coordinator.db, user_id, LEARNING_POINT_TYPES, from_time=week_start(now)
    )
    if activities < WEEKLY_LEARNING_THRESHOLD:
        return None

    logger.debug("User %d has %d learning activities this week", user_id, activities)
    return await coordinator.award_points(
        user_id, "weekly_learning_bonus", WEEKLY_LEARNING_BONUS_POINTS,
        source_id=get_week_iso(now), source_type="bonus",
        description=f"Weekly learning streak bonus ({activities} activities)",
        dedupe=True,
        now=now,
    )
