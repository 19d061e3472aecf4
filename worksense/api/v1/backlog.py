from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import get_current_user
from ...database import get_db
from ...models.project import Project
from ...models.user import User
from ...schemas.backlog import BacklogItemCreate, BacklogItemResponse, BacklogItemUpdate
from ...schemas.common import BacklogItemType, BacklogStatus, MessageResponse
from ...services.backlog_service import BacklogService
from ..deps import get_member_project

router = APIRouter()


@router.get("/{project_id}/backlog/items", response_model=List[BacklogItemResponse])
async def list_backlog_items(
    item_type: Optional[BacklogItemType] = Query(None, alias="type"),
    item_status: Optional[BacklogStatus] = Query(None, alias="status"),
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    """Top-level backlog items of a project"""

    return await BacklogService(db).list_items(
        project.id,
        item_type=item_type.value if item_type else None,
        status=item_status.value if item_status else None
    )


@router.post(
    "/{project_id}/backlog/items",
    response_model=BacklogItemResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_backlog_item(
    request: BacklogItemCreate,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await BacklogService(db).create_item(project.id, request, author_id=current_user.id)


@router.get("/{project_id}/backlog/items/{item_id}", response_model=BacklogItemResponse)
async def get_backlog_item(
    item_id: int,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    return await BacklogService(db).get_item(project.id, item_id)


@router.patch("/{project_id}/backlog/items/{item_id}", response_model=BacklogItemResponse)
async def update_backlog_item(
    item_id: int,
    request: BacklogItemUpdate,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await BacklogService(db).update_item(project.id, item_id, request, actor_id=current_user.id)


@router.delete("/{project_id}/backlog/items/{item_id}", response_model=MessageResponse)
async def delete_backlog_item(
    item_id: int,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    """Delete an item together with its sub-items"""

    await BacklogService(db).delete_item(project.id, item_id)
    return MessageResponse(message="Backlog item deleted")


@router.get(
    "/{project_id}/backlog/items/{epic_id}/subitems",
    response_model=List[BacklogItemResponse]
)
async def list_subitems(
    epic_id: int,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    service = BacklogService(db)
    epic = await service.get_epic(project.id, epic_id)
    return await service.list_items(project.id, parent_id=epic.id)


@router.post(
    "/{project_id}/backlog/items/{epic_id}/subitems",
    response_model=BacklogItemResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_subitem(
    epic_id: int,
    request: BacklogItemCreate,
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a story (or other non-epic item) under an epic"""

    service = BacklogService(db)
    epic = await service.get_epic(project.id, epic_id)
    return await service.create_item(project.id, request, author_id=current_user.id, parent=epic)
