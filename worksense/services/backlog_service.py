from typing import Any, Dict, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, InvalidRequestError, NotFoundError, WorksenseError
from ..models.backlog import BacklogItem, TOP_LEVEL_SCOPE, scope_key_for
from ..models.project import Project
from ..models.sprint import Sprint, SprintItem
from ..schemas.backlog import BacklogItemCreate, BacklogItemUpdate
from ..schemas.common import BacklogItemType, BacklogStatus
from ..utils.logging import get_logger
from .gamification_service import GamificationService

logger = get_logger(__name__)

_SCOPE_COLUMNS = ["project_id", "scope_key", "name"]
_REQUIRED_FIELDS = ("name", "priority", "status")


class BacklogService:
    """Service for backlog items: top-level items and an epic's sub-items"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_project(self, project_id: int) -> Project:
        stmt = select(Project).where(Project.id == project_id)
        result = await self.db.execute(stmt)
        project = result.scalar_one_or_none()

        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def get_item(self, project_id: int, item_id: int) -> BacklogItem:
        stmt = select(BacklogItem).where(
            BacklogItem.id == item_id,
            BacklogItem.project_id == project_id
        )
        result = await self.db.execute(stmt)
        item = result.scalar_one_or_none()

        if item is None:
            raise NotFoundError("Backlog item", item_id)
        return item

    async def get_epic(self, project_id: int, epic_id: int) -> BacklogItem:
        stmt = select(BacklogItem).where(
            BacklogItem.id == epic_id,
            BacklogItem.project_id == project_id,
            BacklogItem.type == BacklogItemType.EPIC.value
        )
        result = await self.db.execute(stmt)
        epic = result.scalar_one_or_none()

        if epic is None:
            raise NotFoundError("Epic", epic_id)
        return epic

    async def existing_titles(self, project_id: int, scope_key: str = TOP_LEVEL_SCOPE) -> Set[str]:
        """Names already used in one duplicate-name scope."""
        stmt = select(BacklogItem.name).where(
            BacklogItem.project_id == project_id,
            BacklogItem.scope_key == scope_key
        )
        result = await self.db.execute(stmt)
        return {name for name in result.scalars().all() if name}

    async def list_items(
        self,
        project_id: int,
        parent_id: Optional[int] = None,
        item_type: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[BacklogItem]:
        stmt = select(BacklogItem).where(
            BacklogItem.project_id == project_id,
            BacklogItem.scope_key == scope_key_for(parent_id)
        )

        if item_type:
            stmt = stmt.where(BacklogItem.type == item_type)

        if status:
            stmt = stmt.where(BacklogItem.status == status)

        stmt = stmt.order_by(BacklogItem.created_at, BacklogItem.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_item(
        self,
        project_id: int,
        data: BacklogItemCreate,
        author_id: Optional[int],
        parent: Optional[BacklogItem] = None
    ) -> BacklogItem:
        """Create a top-level item, or a sub-item when ``parent`` is given."""

        if parent is not None and data.type == BacklogItemType.EPIC:
            raise InvalidRequestError("Epics cannot be nested under another epic")

        await self.validate_sprint_reference(project_id, data.sprint_id)

        parent_id = parent.id if parent is not None else None
        scope_key = scope_key_for(parent_id)

        if data.name in await self.existing_titles(project_id, scope_key):
            raise ConflictError(f"An item named '{data.name}' already exists here")

        item = BacklogItem(
            project_id=project_id,
            parent_id=parent_id,
            scope_key=scope_key,
            type=data.type.value,
            name=data.name,
            description=data.description,
            priority=data.priority.value,
            status=data.status.value,
            size=data.size.value if data.size else None,
            acceptance_criteria=data.acceptance_criteria,
            assignee_id=data.assignee_id,
            cover_image=data.cover_image,
            sprint_id=data.sprint_id,
            author_id=author_id
        )

        self.db.add(item)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(f"An item named '{data.name}' already exists here") from e

        await self.db.refresh(item)
        logger.info("Created %s %d in project %d", item.type, item.id, project_id)
        return item

    async def update_item(
        self,
        project_id: int,
        item_id: int,
        data: BacklogItemUpdate,
        actor_id: Optional[int] = None
    ) -> BacklogItem:
        item = await self.get_item(project_id, item_id)
        previous_status = item.status
        changes = data.model_dump(exclude_unset=True)

        if not changes:
            raise InvalidRequestError("No valid fields provided")

        for field in _REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise InvalidRequestError(f"{field} cannot be null")

        if "sprint_id" in changes:
            await self.validate_sprint_reference(project_id, changes["sprint_id"])

        for field, value in changes.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(item, field, value)

        try:
            if item.status == BacklogStatus.DONE.value and previous_status != BacklogStatus.DONE.value:
                await GamificationService(self.db).award_completion(
                    project_id, item, item.assignee_id or actor_id, action="backlog_done"
                )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(f"An item named '{changes.get('name')}' already exists here") from e

        await self.db.refresh(item)
        logger.info("Updated backlog item %d: %s", item_id, sorted(changes))
        return item

    async def delete_item(self, project_id: int, item_id: int) -> None:
        """Delete an item, its sub-items and any sprint cards pointing at them."""
        item = await self.get_item(project_id, item_id)

        child_ids = (await self.db.execute(
            select(BacklogItem.id).where(BacklogItem.parent_id == item.id)
        )).scalars().all()
        doomed = [item.id, *child_ids]

        sprint_ids = select(Sprint.id).where(Sprint.project_id == project_id)
        await self.db.execute(
            delete(SprintItem).where(
                SprintItem.sprint_id.in_(sprint_ids),
                SprintItem.original_id.in_(doomed)
            )
        )
        await self.db.execute(delete(BacklogItem).where(BacklogItem.parent_id == item.id))
        await self.db.execute(delete(BacklogItem).where(BacklogItem.id == item.id))
        await self.db.commit()

        logger.info("Deleted backlog item %d and %d sub-items", item_id, len(child_ids))

    async def validate_sprint_reference(self, project_id: int, sprint_id: Optional[int]) -> None:
        if sprint_id is None:
            return
        stmt = select(Sprint.id).where(Sprint.id == sprint_id, Sprint.project_id == project_id)
        if (await self.db.execute(stmt)).scalar_one_or_none() is None:
            raise InvalidRequestError(f"Sprint {sprint_id} does not belong to project {project_id}")

    async def insert_if_absent(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert backlog rows in a single transaction, skipping any row whose
        (project, scope, name) already exists.

        Returns:
            Number of rows actually written
        """
        if not rows:
            return 0

        insert = self._conditional_insert()
        created = 0

        try:
            for row in rows:
                stmt = insert(BacklogItem).values(**row).on_conflict_do_nothing(
                    index_elements=_SCOPE_COLUMNS
                )
                result = await self.db.execute(stmt)
                created += max(result.rowcount or 0, 0)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return created

    def _conditional_insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise WorksenseError(f"Conditional inserts are not supported on the {dialect} database")
