"""
ORM models. Importing this package registers every table on ``Base.metadata``.
"""

from .base import Base, BaseModel
from .user import User
from .project import Project, ProjectMember
from .backlog import BacklogItem, scope_key_for, TOP_LEVEL_SCOPE
from .sprint import Sprint, SprintItem
from .gamification import UserGamification, ProjectScore, PointAward

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Project",
    "ProjectMember",
    "BacklogItem",
    "scope_key_for",
    "TOP_LEVEL_SCOPE",
    "Sprint",
    "SprintItem",
    "UserGamification",
    "ProjectScore",
    "PointAward",
]
