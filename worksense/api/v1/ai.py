from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import get_current_user
from ...database import get_db
from ...models.project import Project
from ...models.user import User
from ...schemas.ai import (
    ConfirmEpicsRequest,
    ConfirmResponse,
    ConfirmStoriesRequest,
    GenerateEpicsResponse,
    GenerateStoriesRequest,
    GenerateStoriesResponse,
)
from ...services.ai_backlog_service import AIBacklogService
from ...services.generator import BacklogGenerator, get_generator
from ..deps import get_member_project

router = APIRouter()


@router.get("/project/{project_id}/generate-epics", response_model=GenerateEpicsResponse)
async def generate_epics(
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    generator: BacklogGenerator = Depends(get_generator)
):
    """Suggest epics the project backlog does not have yet"""

    service = AIBacklogService(db, generator)
    epics = await service.generate_epics(project.id)
    return GenerateEpicsResponse(epics=epics)


@router.post(
    "/project/{project_id}/confirm-epics",
    response_model=ConfirmResponse,
    status_code=status.HTTP_201_CREATED
)
async def confirm_epics(
    request: ConfirmEpicsRequest,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    generator: BacklogGenerator = Depends(get_generator),
    current_user: User = Depends(get_current_user)
):
    """Save the epics a user picked from the suggestions"""

    service = AIBacklogService(db, generator)
    return await service.confirm_epics(project.id, request.epics, author_id=current_user.id)


@router.post("/project/{project_id}/stories/generate-stories", response_model=GenerateStoriesResponse)
async def generate_stories(
    request: GenerateStoriesRequest,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    generator: BacklogGenerator = Depends(get_generator)
):
    service = AIBacklogService(db, generator)
    stories = await service.generate_stories(project.id, request.epic_id)
    return GenerateStoriesResponse(stories=stories)


@router.post(
    "/project/{project_id}/stories/confirm-stories",
    response_model=ConfirmResponse,
    status_code=status.HTTP_201_CREATED
)
async def confirm_stories(
    request: ConfirmStoriesRequest,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    generator: BacklogGenerator = Depends(get_generator),
    current_user: User = Depends(get_current_user)
):
    service = AIBacklogService(db, generator)
    return await service.confirm_stories(
        project.id, request.epic_id, request.stories, author_id=current_user.id
    )
