from __future__ import annotations

from typing import (
    Any,
    Dict,
    List,
    Optional,
)
from datetime import date, datetime, timezone
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc

from ..core.exceptions import InvalidRequestError, NotFoundError
from ..models.sprint import Sprint, SprintItem
from ..schemas.common import SprintItemStatus, SprintStatus
from ..schemas.sprint import SprintCreate

# Type aliases
ProjectId = int
SprintId = int


# Custom exceptions
class SprintServiceError(InvalidRequestError):
    def __init__(self, message: str, sprint_id: Optional[SprintId] = None) -> None:
        super().__init__(message)
        self.sprint_id = sprint_id


class SprintValidationError(SprintServiceError):
    pass


class SprintNotFoundError(NotFoundError):
    def __init__(self, sprint_id: SprintId) -> None:
        super().__init__("Sprint", sprint_id)
        self.sprint_id = sprint_id


class InvalidStatusTransitionError(SprintServiceError):
    def __init__(self, current: str, new: str) -> None:
        super().__init__(f"Invalid transition from {current} to {new}")


VALID_TRANSITIONS: Dict[SprintStatus, List[SprintStatus]] = {
    SprintStatus.PLANNED: [SprintStatus.ACTIVE],
    SprintStatus.ACTIVE: [SprintStatus.PLANNED, SprintStatus.COMPLETED],
    SprintStatus.COMPLETED: [],
}


class SprintService:
    """
    Sprint lifecycle for a project.

    A project has at most one active sprint; a new sprint starts active when
    none is, otherwise it is planned.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._logger = logging.getLogger(__name__)

    async def create_sprint(self, project_id: ProjectId, data: SprintCreate) -> Sprint:
        """Create a new sprint with validation."""

        self._validate_sprint_dates(data.start_date, data.end_date)
        await self._validate_no_overlapping_sprints(project_id, data.start_date, data.end_date)

        active = await self.get_active_sprint(project_id)
        status = SprintStatus.PLANNED if active is not None else SprintStatus.ACTIVE

        sprint = Sprint(
            project_id=project_id,
            name=data.name or f"Sprint {data.start_date.isoformat()}",
            goal=data.goal,
            start_date=data.start_date,
            end_date=data.end_date,
            status=status.value
        )

        self.db.add(sprint)
        await self.db.commit()
        await self.db.refresh(sprint)

        self._logger.info("Created sprint %d (%s) for project %d", sprint.id, sprint.status, project_id)
        return sprint

    async def get_sprint(self, project_id: ProjectId, sprint_id: SprintId) -> Sprint:
        """Get sprint by ID within a project."""

        stmt = select(Sprint).where(
            Sprint.id == sprint_id,
            Sprint.project_id == project_id
        )

        result = await self.db.execute(stmt)
        sprint = result.scalar_one_or_none()

        if sprint is None:
            raise SprintNotFoundError(sprint_id)

        return sprint

    async def get_active_sprint(self, project_id: ProjectId) -> Optional[Sprint]:
        stmt = select(Sprint).where(
            Sprint.project_id == project_id,
            Sprint.status == SprintStatus.ACTIVE.value
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_sprints(
        self,
        project_id: ProjectId,
        status: Optional[SprintStatus] = None
    ) -> List[Sprint]:
        """Get sprints for a project, newest end date first."""

        stmt = select(Sprint).where(Sprint.project_id == project_id)

        if status is not None:
            stmt = stmt.where(Sprint.status == status.value)

        stmt = stmt.order_by(desc(Sprint.end_date), desc(Sprint.id))

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_sprint_status(
        self,
        project_id: ProjectId,
        sprint_id: SprintId,
        status: SprintStatus
    ) -> Sprint:
        """Update sprint status with validation."""

        sprint = await self.get_sprint(project_id, sprint_id)
        current_status = SprintStatus(sprint.status)

        if current_status == status:
            return sprint

        if not self._is_valid_status_transition(current_status, status):
            raise InvalidStatusTransitionError(current_status.value, status.value)

        if status == SprintStatus.ACTIVE:
            active = await self.get_active_sprint(project_id)
            if active is not None and active.id != sprint.id:
                raise SprintValidationError(
                    f"Sprint '{active.name}' is already active in this project", sprint_id
                )

        if status == SprintStatus.COMPLETED:
            sprint.completion_metrics = await self._calculate_completion_metrics(sprint)
            sprint.completed_at = datetime.now(timezone.utc)

        sprint.status = status.value

        await self.db.commit()
        await self.db.refresh(sprint)

        self._logger.info("Updated sprint %d status to %s", sprint_id, status.value)
        return sprint

    # Private methods

    def _validate_sprint_dates(self, start_date: date, end_date: date) -> None:
        if start_date >= end_date:
            raise SprintValidationError("startDate must be before endDate")

    async def _validate_no_overlapping_sprints(
        self,
        project_id: ProjectId,
        start_date: date,
        end_date: date
    ) -> None:
        """Validate no overlapping open sprints."""

        stmt = select(Sprint).where(
            and_(
                Sprint.project_id == project_id,
                Sprint.status.in_([SprintStatus.PLANNED.value, SprintStatus.ACTIVE.value]),
                Sprint.start_date < end_date,
                Sprint.end_date > start_date
            )
        ).limit(1)

        result = await self.db.execute(stmt)
        existing = result.scalar_one_or_none()

        if existing is not None:
            raise SprintValidationError(f"Overlapping sprint exists: {existing.name}")

    def _is_valid_status_transition(self, current: SprintStatus, new: SprintStatus) -> bool:
        return new in VALID_TRANSITIONS.get(current, [])

    async def _calculate_completion_metrics(self, sprint: Sprint) -> Dict[str, Any]:
        stmt = (
            select(SprintItem.status, func.count())
            .where(SprintItem.sprint_id == sprint.id)
            .group_by(SprintItem.status)
        )
        result = await self.db.execute(stmt)
        by_status = {status: count for status, count in result.all()}

        return {
            "total_items": sum(by_status.values()),
            "completed_items": by_status.get(SprintItemStatus.DONE.value, 0),
            "items_by_status": {
                status.value: by_status.get(status.value, 0) for status in SprintItemStatus
            }
        }
