from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import get_current_user
from ...database import get_db
from ...models.project import Project
from ...models.user import User
from ...schemas.common import MessageResponse
from ...schemas.project import (
    MemberAdd,
    MemberResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
)
from ...services.project_service import ProjectService
from ..deps import get_member_project

router = APIRouter()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a project owned by the caller"""
    return await ProjectService(db).create_project(request, current_user)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Projects the caller is a member of"""
    return await ProjectService(db).list_projects(current_user.id)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project: Project = Depends(get_member_project)):
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    request: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await ProjectService(db).update_project(project_id, request, current_user.id)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ProjectService(db).delete_project(project_id, current_user.id)
    return MessageResponse(message="Project deleted")


@router.get("/{project_id}/members", response_model=List[MemberResponse])
async def list_members(
    project: Project = Depends(get_member_project),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).list_members(project.id)


@router.post(
    "/{project_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_member(
    project_id: int,
    request: MemberAdd,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Add an existing user to the project (owner only)"""
    return await ProjectService(db).add_member(project_id, request, current_user.id)
