"""
Sprint board: cards referencing backlog items, laid out in four status
columns and ordered by a sparse integer index.

New cards go to the bottom of ``todo`` with ``max(order) + gap`` so that later
moves can land between two neighbours without touching the rest of the
column. Only when two neighbours are adjacent integers is the column
renumbered.
"""
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRequestError, NotFoundError
from ..models.backlog import BacklogItem
from ..models.sprint import SprintItem
from ..schemas.common import SprintItemStatus
from ..schemas.sprint import SprintItemCreate, SprintItemMove, SprintItemUpdate
from ..utils.logging import get_logger
from .gamification_service import GamificationService
from .sprint_service import SprintService

logger = get_logger(__name__)


class SprintBoardService:

    def __init__(self, db: AsyncSession, order_gap: int = 1000):
        self.db = db
        self.order_gap = order_gap
        self.sprints = SprintService(db)
        self.gamification = GamificationService(db)

    async def add_item(self, project_id: int, sprint_id: int, data: SprintItemCreate) -> SprintItem:
        """Put a backlog item on the board at the bottom of the todo column."""
        await self.sprints.get_sprint(project_id, sprint_id)

        stmt = select(BacklogItem).where(
            BacklogItem.id == data.original_id,
            BacklogItem.project_id == project_id,
            BacklogItem.type == data.original_type.value
        )
        if (await self.db.execute(stmt)).scalar_one_or_none() is None:
            raise NotFoundError("Backlog item", data.original_id)

        if await self._find_item(sprint_id, data.original_id) is not None:
            raise InvalidRequestError("Item already exists in this sprint")

        item = SprintItem(
            sprint_id=sprint_id,
            original_id=data.original_id,
            original_type=data.original_type.value,
            type=(data.type or data.original_type).value,
            status=SprintItemStatus.TODO.value,
            sprint_assignee_id=data.sprint_assignee_id,
            order=await self._next_order(sprint_id, SprintItemStatus.TODO)
        )

        self.db.add(item)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent add of the same item
            await self.db.rollback()
            raise InvalidRequestError("Item already exists in this sprint") from e

        await self.db.refresh(item)
        logger.info("Added item %d to sprint %d with order %d", item.original_id, sprint_id, item.order)
        return item

    async def get_board(self, project_id: int, sprint_id: int) -> Dict[str, List[SprintItem]]:
        await self.sprints.get_sprint(project_id, sprint_id)

        stmt = (
            select(SprintItem)
            .where(SprintItem.sprint_id == sprint_id)
            .order_by(SprintItem.order, SprintItem.original_id)
        )
        result = await self.db.execute(stmt)

        board: Dict[str, List[SprintItem]] = {status.value: [] for status in SprintItemStatus}
        for item in result.scalars().all():
            board.setdefault(item.status, []).append(item)
        return board

    async def update_item(
        self,
        project_id: int,
        sprint_id: int,
        item_id: int,
        data: SprintItemUpdate,
        actor_id: Optional[int] = None
    ) -> SprintItem:
        """Patch a card in place. Siblings keep their order."""
        await self.sprints.get_sprint(project_id, sprint_id)
        item = await self._get_item(sprint_id, item_id)
        previous_status = item.status

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise InvalidRequestError("No valid fields provided")

        for field, value in changes.items():
            if field in ("status", "order") and value is None:
                raise InvalidRequestError(f"{field} cannot be null")
            if isinstance(value, SprintItemStatus):
                value = value.value
            setattr(item, field, value)

        await self._award_if_finished(project_id, item, previous_status, actor_id)
        await self.db.commit()
        await self.db.refresh(item)

        logger.info("Updated sprint item %d in sprint %d: %s", item_id, sprint_id, sorted(changes))
        return item

    async def move_item(
        self,
        project_id: int,
        sprint_id: int,
        item_id: int,
        data: SprintItemMove,
        actor_id: Optional[int] = None
    ) -> SprintItem:
        """Move a card to ``data.position`` (0-based) within the ``data.status`` column."""
        await self.sprints.get_sprint(project_id, sprint_id)
        item = await self._get_item(sprint_id, item_id)

        stmt = (
            select(SprintItem)
            .where(
                SprintItem.sprint_id == sprint_id,
                SprintItem.status == data.status.value,
                SprintItem.original_id != item_id
            )
            .order_by(SprintItem.order, SprintItem.original_id)
        )
        column = list((await self.db.execute(stmt)).scalars().all())
        position = min(data.position, len(column))

        new_order = self._order_between(column, position)
        if new_order is None:
            self._renumber(column)
            new_order = self._order_between(column, position)
            logger.info("Renumbered %s column of sprint %d", data.status.value, sprint_id)

        previous_status = item.status
        item.status = data.status.value
        item.order = new_order

        await self._award_if_finished(project_id, item, previous_status, actor_id)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def remove_item(self, project_id: int, sprint_id: int, item_id: int) -> int:
        await self.sprints.get_sprint(project_id, sprint_id)
        item = await self._get_item(sprint_id, item_id)

        await self.db.delete(item)
        await self.db.commit()

        logger.info("Removed item %d from sprint %d", item_id, sprint_id)
        return item_id

    async def _find_item(self, sprint_id: int, item_id: int) -> Optional[SprintItem]:
        stmt = select(SprintItem).where(
            SprintItem.sprint_id == sprint_id,
            SprintItem.original_id == item_id
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def _get_item(self, sprint_id: int, item_id: int) -> SprintItem:
        item = await self._find_item(sprint_id, item_id)
        if item is None:
            raise NotFoundError("Item in sprint", item_id)
        return item

    async def _next_order(self, sprint_id: int, status: SprintItemStatus) -> int:
        stmt = select(func.max(SprintItem.order)).where(
            SprintItem.sprint_id == sprint_id,
            SprintItem.status == status.value
        )
        highest = (await self.db.execute(stmt)).scalar()
        return self.order_gap if highest is None else highest + self.order_gap

    def _order_between(self, column: List[SprintItem], position: int) -> Optional[int]:
        """Integer order strictly between the neighbours at ``position``, or None."""
        if not column:
            return self.order_gap
        if position >= len(column):
            return column[-1].order + self.order_gap

        upper = column[position].order
        lower = column[position - 1].order if position > 0 else 0
        candidate = (lower + upper) // 2
        if lower < candidate < upper:
            return candidate
        return None

    def _renumber(self, column: List[SprintItem]) -> None:
        for index, card in enumerate(column, start=1):
            card.order = index * self.order_gap

    async def _award_if_finished(
        self,
        project_id: int,
        item: SprintItem,
        previous_status: str,
        actor_id: Optional[int]
    ) -> None:
        """Pay out when a card enters ``done``. The sprint assignee has first claim on the points."""
        if item.status != SprintItemStatus.DONE.value or previous_status == SprintItemStatus.DONE.value:
            return

        stmt = select(BacklogItem).where(
            BacklogItem.id == item.original_id,
            BacklogItem.project_id == project_id
        )
        backlog_item = (await self.db.execute(stmt)).scalar_one_or_none()
        if backlog_item is None:
            return

        user_id = item.sprint_assignee_id or backlog_item.assignee_id or actor_id
        await self.gamification.award_completion(project_id, backlog_item, user_id, action="board_done")
