from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from .common import CamelModel, MemberRole, ProjectStatus


class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class ProjectUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None


class ProjectResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    status: str
    owner_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberAdd(CamelModel):
    user_id: int
    role: MemberRole = MemberRole.MEMBER


class MemberResponse(CamelModel):
    user_id: int
    role: str
    joined_at: Optional[datetime] = None
