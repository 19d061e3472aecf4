from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import get_current_user
from ..database import get_db
from ..models.project import Project
from ..models.user import User
from ..services.project_service import ProjectService


async def get_member_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Project:
    """Resolve ``project_id`` from the path; the caller must be a member."""
    return await ProjectService(db).require_member(current_user.id, project_id)
