from datetime import datetime
from typing import List, Optional

from .common import CamelModel


class Badge(CamelModel):
    name: str
    points: int
    icon: str
    earned_at: Optional[str] = None


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: int
    name: str
    points: int
    badges: List[Badge] = []
    last_update: Optional[datetime] = None


class UserGamificationResponse(CamelModel):
    user_id: int
    total_points: int = 0
    level: int = 1


class GamificationStats(CamelModel):
    total_users: int
    total_points: int
    average_points: int
    top_performer: Optional[LeaderboardEntry] = None

    total_backlog_items: int
    completed_tasks: int
    in_progress_tasks: int
    todo_tasks: int
    completion_rate: int

    epics: int
    stories: int
    bugs: int
    tech_tasks: int
