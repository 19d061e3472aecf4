from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire format is camelCase; snake_case field names are accepted on input too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Priority(str, Enum):
    LOWEST = "lowest"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    HIGHEST = "highest"


class BacklogItemType(str, Enum):
    EPIC = "epic"
    STORY = "story"
    BUG = "bug"
    TECH_TASK = "techTask"
    KNOWLEDGE = "knowledge"


class BacklogStatus(str, Enum):
    NEW = "new"
    TO_DO = "toDo"
    IN_PROGRESS = "inProgress"
    IN_REVIEW = "inReview"
    DONE = "done"


class ItemSize(str, Enum):
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class MemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class SprintStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class SprintItemStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class MessageResponse(BaseModel):
    message: str
