from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import get_current_user
from ...database import get_db
from ...models.project import Project
from ...models.user import User
from ...schemas.sprint import (
    SprintBoard,
    SprintItemCreate,
    SprintItemMove,
    SprintItemRemoved,
    SprintItemResponse,
    SprintItemUpdate,
)
from ...services.sprint_board_service import SprintBoardService
from ..deps import get_member_project

router = APIRouter()


def get_board_service(request: Request, db: AsyncSession = Depends(get_db)) -> SprintBoardService:
    return SprintBoardService(db, order_gap=request.app.state.settings.sprint_order_gap)


@router.post(
    "/{project_id}/sprints/{sprint_id}/items",
    response_model=SprintItemResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_item_to_sprint(
    sprint_id: int,
    request: SprintItemCreate,
    project: Project = Depends(get_member_project),
    service: SprintBoardService = Depends(get_board_service)
):
    """Add a backlog item to the bottom of the sprint's todo column"""

    return await service.add_item(project.id, sprint_id, request)


@router.get(
    "/{project_id}/sprints/{sprint_id}/board",
    response_model=SprintBoard,
    response_model_by_alias=True
)
async def get_sprint_board(
    sprint_id: int,
    project: Project = Depends(get_member_project),
    service: SprintBoardService = Depends(get_board_service)
):
    board = await service.get_board(project.id, sprint_id)
    return SprintBoard.model_validate({
        status_name: [SprintItemResponse.model_validate(item) for item in items]
        for status_name, items in board.items()
    })


@router.patch(
    "/{project_id}/sprints/{sprint_id}/items/{item_id}",
    response_model=SprintItemResponse
)
async def update_sprint_item(
    sprint_id: int,
    item_id: int,
    request: SprintItemUpdate,
    project: Project = Depends(get_member_project),
    service: SprintBoardService = Depends(get_board_service),
    current_user: User = Depends(get_current_user)
):
    return await service.update_item(project.id, sprint_id, item_id, request, actor_id=current_user.id)


@router.post(
    "/{project_id}/sprints/{sprint_id}/items/{item_id}/move",
    response_model=SprintItemResponse
)
async def move_sprint_item(
    sprint_id: int,
    item_id: int,
    request: SprintItemMove,
    project: Project = Depends(get_member_project),
    service: SprintBoardService = Depends(get_board_service),
    current_user: User = Depends(get_current_user)
):
    """Drop a card at a position in a column; landing in done awards points"""

    return await service.move_item(project.id, sprint_id, item_id, request, actor_id=current_user.id)


@router.delete(
    "/{project_id}/sprints/{sprint_id}/items/{item_id}",
    response_model=SprintItemRemoved
)
async def remove_sprint_item(
    sprint_id: int,
    item_id: int,
    project: Project = Depends(get_member_project),
    service: SprintBoardService = Depends(get_board_service)
):
    removed_id = await service.remove_item(project.id, sprint_id, item_id)
    return SprintItemRemoved(message="Item removed from sprint", id=removed_id)
