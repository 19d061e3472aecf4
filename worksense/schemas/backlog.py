from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from .common import (
    BacklogItemType,
    BacklogStatus,
    CamelModel,
    ItemSize,
    Priority,
)


class BacklogItemCreate(CamelModel):
    type: BacklogItemType
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    status: BacklogStatus = BacklogStatus.NEW
    size: Optional[ItemSize] = None
    acceptance_criteria: Optional[List[str]] = None
    assignee_id: Optional[int] = None
    cover_image: Optional[str] = None
    sprint_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class BacklogItemUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[BacklogStatus] = None
    size: Optional[ItemSize] = None
    acceptance_criteria: Optional[List[str]] = None
    assignee_id: Optional[int] = None
    cover_image: Optional[str] = None
    sprint_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class BacklogItemResponse(CamelModel):
    id: int
    project_id: int
    parent_id: Optional[int] = None
    type: str
    name: str
    description: Optional[str] = None
    priority: str
    status: str
    size: Optional[str] = None
    acceptance_criteria: Optional[List[str]] = None
    assignee_id: Optional[int] = None
    author_id: Optional[int] = None
    cover_image: Optional[str] = None
    sprint_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
