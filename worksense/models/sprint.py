from sqlalchemy import Column, String, Integer, Text, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base, BaseModel


class Sprint(BaseModel):
    __tablename__ = "sprints"

    name = Column(String, nullable=False)
    goal = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, default="planned")  # planned, active, completed

    # Filled in when the sprint is completed
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completion_metrics = Column(JSON, nullable=True)

    # Foreign keys
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    project = relationship("Project", back_populates="sprints")
    items = relationship("SprintItem", back_populates="sprint", passive_deletes=True)


class SprintItem(Base):
    """Board card wrapping a backlog item; keyed by the backlog item id inside its sprint."""
    __tablename__ = "sprint_items"

    sprint_id = Column(Integer, ForeignKey("sprints.id", ondelete="CASCADE"), primary_key=True)
    original_id = Column(Integer, primary_key=True)
    original_type = Column(String, nullable=False)
    type = Column(String, nullable=False)

    status = Column(String, nullable=False, default="todo")  # todo, in-progress, review, done
    order = Column(Integer, nullable=False)
    sprint_assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    added_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sprint = relationship("Sprint", back_populates="items")

    @property
    def id(self) -> int:
        return self.original_id
