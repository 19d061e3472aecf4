from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from .common import (
    BacklogItemType,
    CamelModel,
    SprintItemStatus,
    SprintStatus,
)


class SprintCreate(CamelModel):
    name: Optional[str] = None
    goal: Optional[str] = None
    start_date: date
    end_date: date


class SprintStatusUpdate(CamelModel):
    status: SprintStatus


class SprintResponse(CamelModel):
    id: int
    project_id: int
    name: str
    goal: Optional[str] = None
    start_date: date
    end_date: date
    status: str
    completed_at: Optional[datetime] = None
    completion_metrics: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SprintItemCreate(CamelModel):
    original_id: int
    original_type: BacklogItemType
    type: Optional[BacklogItemType] = None
    sprint_assignee_id: Optional[int] = None


class SprintItemUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[SprintItemStatus] = None
    sprint_assignee_id: Optional[int] = None
    order: Optional[int] = None


class SprintItemMove(CamelModel):
    status: SprintItemStatus
    position: int = Field(..., ge=0)


class SprintItemResponse(CamelModel):
    id: int
    original_id: int
    original_type: str
    type: str
    status: str
    order: int
    sprint_assignee_id: Optional[int] = None
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SprintBoard(CamelModel):
    todo: List[SprintItemResponse] = []
    in_progress: List[SprintItemResponse] = Field(default_factory=list, alias="in-progress")
    review: List[SprintItemResponse] = []
    done: List[SprintItemResponse] = []


class SprintItemRemoved(CamelModel):
    message: str
    id: int
