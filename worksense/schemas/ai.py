from typing import List, Literal, Optional

from pydantic import BaseModel

from .common import (
    BacklogStatus,
    CamelModel,
    ItemSize,
    Priority,
)


class AiSuggestion(CamelModel):
    """Unpersisted backlog item candidate produced from generator output."""
    name: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM


class GenerateEpicsResponse(BaseModel):
    epics: List[AiSuggestion]


class GenerateStoriesRequest(CamelModel):
    epic_id: Optional[int] = None


class GenerateStoriesResponse(BaseModel):
    stories: List[AiSuggestion]


class ConfirmedEpic(CamelModel):
    name: str = ""
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    acceptance_criteria: Optional[List[str]] = None
    assignee_id: Optional[int] = None
    cover_image: Optional[str] = None
    status: Optional[BacklogStatus] = None
    size: Optional[ItemSize] = None
    sprint: Optional[int] = None
    type: Optional[Literal["epic"]] = None


class ConfirmedStory(CamelModel):
    name: str = ""
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    acceptance_criteria: Optional[List[str]] = None
    size: Optional[ItemSize] = None
    type: Optional[Literal["story"]] = None


class ConfirmEpicsRequest(CamelModel):
    epics: List[ConfirmedEpic] = []


class ConfirmStoriesRequest(CamelModel):
    epic_id: Optional[int] = None
    stories: List[ConfirmedStory] = []


class ConfirmResponse(BaseModel):
    message: str
    created: int
    skipped: int
