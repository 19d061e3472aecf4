from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError
from ..models.backlog import BacklogItem
from ..models.gamification import PointAward, ProjectScore
from ..models.project import Project, ProjectMember
from ..models.sprint import Sprint, SprintItem
from ..models.user import User
from ..schemas.common import MemberRole
from ..schemas.project import MemberAdd, ProjectCreate, ProjectUpdate
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ProjectService:
    """Projects and their member lists"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_project(self, data: ProjectCreate, owner: User) -> Project:
        project = Project(
            name=data.name,
            description=data.description,
            owner_id=owner.id
        )
        self.db.add(project)
        await self.db.flush()

        self.db.add(ProjectMember(
            project_id=project.id,
            user_id=owner.id,
            role=MemberRole.OWNER.value
        ))
        await self.db.commit()
        await self.db.refresh(project)

        logger.info("Created project %d for user %d", project.id, owner.id)
        return project

    async def list_projects(self, user_id: int) -> List[Project]:
        """Projects the user is a member of."""
        stmt = (
            select(Project)
            .join(ProjectMember, ProjectMember.project_id == Project.id)
            .where(ProjectMember.user_id == user_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_project(self, project_id: int) -> Project:
        stmt = select(Project).where(Project.id == project_id)
        result = await self.db.execute(stmt)
        project = result.scalar_one_or_none()

        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def user_has_access(self, user_id: int, project_id: int) -> bool:
        """Check if user is a member of the project."""
        stmt = select(ProjectMember.id).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def require_member(self, user_id: int, project_id: int) -> Project:
        project = await self.get_project(project_id)
        if not await self.user_has_access(user_id, project_id):
            raise PermissionDeniedError("Not a member of this project")
        return project

    async def require_owner(self, user_id: int, project_id: int) -> Project:
        project = await self.get_project(project_id)
        if project.owner_id != user_id:
            raise PermissionDeniedError("Only the project owner can do this")
        return project

    async def update_project(self, project_id: int, data: ProjectUpdate, user_id: int) -> Project:
        project = await self.require_owner(user_id, project_id)
        changes = data.model_dump(exclude_unset=True)

        if not changes:
            raise InvalidRequestError("No valid fields provided")

        if "status" in changes and changes["status"] is None:
            raise InvalidRequestError("status cannot be null")

        if "name" in changes:
            if changes["name"] is None:
                raise InvalidRequestError("name cannot be null")
            name = changes["name"].strip()
            if not name:
                raise InvalidRequestError("Project name must not be empty")
            changes["name"] = name

        for field, value in changes.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(project, field, value)

        await self.db.commit()
        await self.db.refresh(project)

        logger.info("Updated project %d: %s", project_id, sorted(changes))
        return project

    async def delete_project(self, project_id: int, user_id: int) -> None:
        """Delete a project with everything hanging off it; global user points stay."""
        await self.require_owner(user_id, project_id)

        sprint_ids = select(Sprint.id).where(Sprint.project_id == project_id)
        await self.db.execute(delete(SprintItem).where(SprintItem.sprint_id.in_(sprint_ids)))
        # Sub-items first: they reference their epic
        await self.db.execute(
            delete(BacklogItem).where(
                BacklogItem.project_id == project_id,
                BacklogItem.parent_id.is_not(None)
            )
        )
        await self.db.execute(delete(BacklogItem).where(BacklogItem.project_id == project_id))
        await self.db.execute(delete(Sprint).where(Sprint.project_id == project_id))
        await self.db.execute(delete(PointAward).where(PointAward.project_id == project_id))
        await self.db.execute(delete(ProjectScore).where(ProjectScore.project_id == project_id))
        await self.db.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
        await self.db.execute(delete(Project).where(Project.id == project_id))
        await self.db.commit()

        logger.info("Deleted project %d", project_id)

    async def add_member(self, project_id: int, data: MemberAdd, user_id: int) -> ProjectMember:
        await self.require_owner(user_id, project_id)

        user = (await self.db.execute(
            select(User).where(User.id == data.user_id)
        )).scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", data.user_id)

        if await self.user_has_access(data.user_id, project_id):
            raise ConflictError("User is already a member of this project")

        member = ProjectMember(
            project_id=project_id,
            user_id=data.user_id,
            role=data.role.value
        )
        self.db.add(member)
        await self.db.commit()
        await self.db.refresh(member)

        logger.info("Added user %d to project %d as %s", data.user_id, project_id, member.role)
        return member

    async def list_members(self, project_id: int) -> List[ProjectMember]:
        stmt = (
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.joined_at, ProjectMember.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
