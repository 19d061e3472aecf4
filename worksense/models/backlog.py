from sqlalchemy import Column, String, Integer, Text, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel

TOP_LEVEL_SCOPE = "backlog"


def scope_key_for(parent_id=None) -> str:
    """Deterministic duplicate-name scope: the project backlog or one epic's sub-items."""
    if parent_id is None:
        return TOP_LEVEL_SCOPE
    return f"epic:{parent_id}"


class BacklogItem(BaseModel):
    __tablename__ = "backlog_items"
    __table_args__ = (
        UniqueConstraint("project_id", "scope_key", "name", name="uq_backlog_scope_name"),
    )

    # Core fields
    type = Column(String, nullable=False)  # epic, story, bug, techTask, knowledge
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="new")  # new, toDo, inProgress, inReview, done
    priority = Column(String, default="medium")  # lowest, low, medium, high, highest
    size = Column(String, nullable=True)  # XS, S, M, L, XL
    acceptance_criteria = Column(JSON, nullable=True)
    cover_image = Column(String, nullable=True)

    # Hierarchy
    scope_key = Column(String, nullable=False, default=TOP_LEVEL_SCOPE)
    parent_id = Column(Integer, ForeignKey("backlog_items.id", ondelete="CASCADE"), nullable=True, index=True)

    # Relationships
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    sprint_id = Column(Integer, ForeignKey("sprints.id", ondelete="SET NULL"), nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    project = relationship("Project", back_populates="backlog_items")
    subitems = relationship("BacklogItem", passive_deletes=True)
