from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
from .base import Base


class UserGamification(Base):
    """Points a user has collected across every project, and the level they give."""
    __tablename__ = "user_gamification"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    total_points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ProjectScore(Base):
    """One leaderboard row: a member's points and badges inside a project."""
    __tablename__ = "project_scores"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_score"),
    )

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    points = Column(Integer, nullable=False, default=0)
    badges = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PointAward(Base):
    """Ledger of completed work; a backlog item pays out at most once per project."""
    __tablename__ = "point_awards"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    item_id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    item_type = Column(String, nullable=False)
    action = Column(String, nullable=False)  # board_done, backlog_done
    points = Column(Integer, nullable=False)
    awarded_at = Column(DateTime(timezone=True), server_default=func.now())
