from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ...models.project import Project
from ...schemas.common import SprintStatus
from ...schemas.sprint import SprintCreate, SprintResponse, SprintStatusUpdate
from ...services.sprint_service import SprintService
from ..deps import get_member_project

router = APIRouter()


@router.post(
    "/{project_id}/sprints",
    response_model=SprintResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_sprint(
    request: SprintCreate,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    """Create a sprint; it starts active when no other sprint is"""

    return await SprintService(db).create_sprint(project.id, request)


@router.get("/{project_id}/sprints", response_model=List[SprintResponse])
async def list_sprints(
    sprint_status: Optional[SprintStatus] = Query(None, alias="status"),
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    return await SprintService(db).list_sprints(project.id, status=sprint_status)


@router.get("/{project_id}/sprints/{sprint_id}", response_model=SprintResponse)
async def get_sprint(
    sprint_id: int,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    return await SprintService(db).get_sprint(project.id, sprint_id)


@router.put("/{project_id}/sprints/{sprint_id}/status", response_model=SprintResponse)
async def update_sprint_status(
    sprint_id: int,
    request: SprintStatusUpdate,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    """Move a sprint through planned, active and completed"""

    return await SprintService(db).update_sprint_status(project.id, sprint_id, request.status)
