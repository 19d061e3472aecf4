from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import get_current_user
from ...database import get_db
from ...models.project import Project
from ...models.user import User
from ...schemas.gamification import GamificationStats, LeaderboardEntry, UserGamificationResponse
from ...services.gamification_service import GamificationService
from ..deps import get_member_project

router = APIRouter()


@router.get("/projects/{project_id}/leaderboard", response_model=List[LeaderboardEntry])
async def get_project_leaderboard(
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    """Members ranked by the points they earned in this project"""

    return await GamificationService(db).get_leaderboard(project.id)


@router.get("/projects/{project_id}/gamification/stats", response_model=GamificationStats)
async def get_project_gamification_stats(
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    return await GamificationService(db).get_stats(project.id)


@router.get("/gamification/users/{user_id}", response_model=UserGamificationResponse)
async def get_user_gamification(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Global points and level of a user"""

    return await GamificationService(db).get_user_summary(user_id)
