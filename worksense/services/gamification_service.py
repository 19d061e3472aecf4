"""
Points and badges for finished work.

A backlog item pays out once, the first time it reaches ``done`` on a sprint
board or in the backlog. The award goes to the project leaderboard (points and
badges per project) and to the user's global total, which sets their level.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.backlog import BacklogItem
from ..models.gamification import PointAward, ProjectScore, UserGamification
from ..models.user import User
from ..schemas.common import BacklogItemType, BacklogStatus
from ..schemas.gamification import GamificationStats, LeaderboardEntry, UserGamificationResponse
from ..utils.logging import get_logger

logger = get_logger(__name__)

BASE_POINTS: Dict[str, int] = {
    BacklogItemType.EPIC.value: 50,
    BacklogItemType.STORY.value: 25,
    BacklogItemType.BUG.value: 15,
    BacklogItemType.TECH_TASK.value: 20,
    BacklogItemType.KNOWLEDGE.value: 10,
}
DEFAULT_POINTS = 15

# T-shirt size to story points, then story points to a payout multiplier
SIZE_STORY_POINTS: Dict[str, int] = {"XS": 1, "S": 2, "M": 3, "L": 5, "XL": 8}
FIBONACCI_MULTIPLIERS: Dict[int, float] = {1: 0.5, 2: 0.8, 3: 1.0, 5: 1.3, 8: 1.8, 13: 2.5, 21: 3.5}

BADGE_THRESHOLDS = [
    {"name": "First Steps", "points": 10, "icon": "Rocket"},
    {"name": "Getting Started", "points": 50, "icon": "Star"},
    {"name": "Rising Star", "points": 100, "icon": "TrendingUp"},
    {"name": "Productive", "points": 250, "icon": "Award"},
    {"name": "Expert", "points": 500, "icon": "ShieldCheck"},
    {"name": "Master", "points": 1000, "icon": "Crown"},
]

POINTS_PER_LEVEL = 100


def calculate_task_points(item_type: Optional[str], size: Optional[str] = None) -> int:
    """Base points for the item type scaled by its size; unsized items count as 3 story points."""
    base = BASE_POINTS.get(item_type or "", DEFAULT_POINTS)
    story_points = SIZE_STORY_POINTS.get(size or "", 3)
    return int(base * FIBONACCI_MULTIPLIERS.get(story_points, 1.0))


def level_for(total_points: int) -> int:
    return total_points // POINTS_PER_LEVEL + 1


class GamificationService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def award_completion(
        self,
        project_id: int,
        item: BacklogItem,
        user_id: Optional[int],
        action: str
    ) -> Optional[PointAward]:
        """
        Credit ``user_id`` for finishing ``item``.

        Changes are flushed, not committed: the caller's status change and the
        award land in the same transaction.

        Returns:
            The new award, or None when nobody can be credited or the item
            already paid out
        """
        if user_id is None:
            logger.debug("No one to credit for item %d in project %d", item.id, project_id)
            return None

        stmt = select(PointAward).where(
            PointAward.project_id == project_id,
            PointAward.item_id == item.id
        )
        if (await self.db.execute(stmt)).scalar_one_or_none() is not None:
            logger.debug("Item %d in project %d already awarded", item.id, project_id)
            return None

        points = calculate_task_points(item.type, item.size)
        award = PointAward(
            project_id=project_id,
            item_id=item.id,
            user_id=user_id,
            item_type=item.type,
            action=action,
            points=points
        )
        self.db.add(award)

        score = await self._project_score(project_id, user_id)
        score.points += points
        new_badges = self._earn_badges(score)

        profile = await self._user_profile(user_id)
        profile.total_points += points
        profile.level = level_for(profile.total_points)

        await self.db.flush()

        logger.info(
            "Awarded %d points to user %d in project %d for %s (badges: %s)",
            points, user_id, project_id, action, [b["name"] for b in new_badges] or "none"
        )
        return award

    async def get_leaderboard(self, project_id: int) -> List[LeaderboardEntry]:
        """Project members with points, highest first."""
        stmt = (
            select(ProjectScore, User.full_name)
            .join(User, User.id == ProjectScore.user_id)
            .where(ProjectScore.project_id == project_id)
            .order_by(ProjectScore.points.desc(), ProjectScore.user_id)
        )
        rows = (await self.db.execute(stmt)).all()

        return [
            LeaderboardEntry(
                rank=rank,
                user_id=score.user_id,
                name=full_name,
                points=score.points,
                badges=score.badges or [],
                last_update=score.updated_at
            )
            for rank, (score, full_name) in enumerate(rows, start=1)
        ]

    async def get_stats(self, project_id: int) -> GamificationStats:
        leaderboard = await self.get_leaderboard(project_id)
        total_points = sum(entry.points for entry in leaderboard)

        stmt = (
            select(BacklogItem.type, BacklogItem.status, func.count())
            .where(BacklogItem.project_id == project_id)
            .group_by(BacklogItem.type, BacklogItem.status)
        )
        by_type: Dict[str, int] = {}
        by_status: Dict[str, int] = {}
        for item_type, status, count in (await self.db.execute(stmt)).all():
            by_type[item_type] = by_type.get(item_type, 0) + count
            by_status[status] = by_status.get(status, 0) + count

        total_items = sum(by_type.values())
        completed = by_status.get(BacklogStatus.DONE.value, 0)

        return GamificationStats(
            total_users=len(leaderboard),
            total_points=total_points,
            average_points=round(total_points / len(leaderboard)) if leaderboard else 0,
            top_performer=leaderboard[0] if leaderboard else None,
            total_backlog_items=total_items,
            completed_tasks=completed,
            in_progress_tasks=(
                by_status.get(BacklogStatus.IN_PROGRESS.value, 0)
                + by_status.get(BacklogStatus.IN_REVIEW.value, 0)
            ),
            todo_tasks=by_status.get(BacklogStatus.NEW.value, 0) + by_status.get(BacklogStatus.TO_DO.value, 0),
            completion_rate=round(completed / total_items * 100) if total_items else 0,
            epics=by_type.get(BacklogItemType.EPIC.value, 0),
            stories=by_type.get(BacklogItemType.STORY.value, 0),
            bugs=by_type.get(BacklogItemType.BUG.value, 0),
            tech_tasks=by_type.get(BacklogItemType.TECH_TASK.value, 0)
        )

    async def get_user_summary(self, user_id: int) -> UserGamificationResponse:
        stmt = select(UserGamification).where(UserGamification.user_id == user_id)
        profile = (await self.db.execute(stmt)).scalar_one_or_none()

        if profile is None:
            return UserGamificationResponse(user_id=user_id)
        return UserGamificationResponse(
            user_id=user_id,
            total_points=profile.total_points,
            level=profile.level
        )

    async def _project_score(self, project_id: int, user_id: int) -> ProjectScore:
        stmt = select(ProjectScore).where(
            ProjectScore.project_id == project_id,
            ProjectScore.user_id == user_id
        )
        score = (await self.db.execute(stmt)).scalar_one_or_none()
        if score is None:
            score = ProjectScore(project_id=project_id, user_id=user_id, points=0, badges=[])
            self.db.add(score)
        return score

    async def _user_profile(self, user_id: int) -> UserGamification:
        stmt = select(UserGamification).where(UserGamification.user_id == user_id)
        profile = (await self.db.execute(stmt)).scalar_one_or_none()
        if profile is None:
            profile = UserGamification(user_id=user_id, total_points=0, level=1)
            self.db.add(profile)
        return profile

    def _earn_badges(self, score: ProjectScore) -> List[dict]:
        current = list(score.badges or [])
        owned = {badge["name"] for badge in current}
        earned_at = datetime.now(timezone.utc).isoformat()

        new_badges = [
            {**threshold, "earned_at": earned_at}
            for threshold in BADGE_THRESHOLDS
            if score.points >= threshold["points"] and threshold["name"] not in owned
        ]
        if new_badges:
            # Reassign so the JSON column is flagged dirty
            score.badges = current + new_badges
        return new_badges
