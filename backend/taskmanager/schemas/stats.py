"""Statistics schemas."""

from datetime import datetime

from taskmanager.schemas.common import CamelModel


class TaskStats(CamelModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    total_estimated_hours: float = 0
    total_actual_hours: float = 0
    avg_progression: float = 0
    completion_rate: int = 0


class UserStats(TaskStats):
    productivity_score: int = 0


class CategoryStats(TaskStats):
    avg_completion_time: float = 0  # days, completed tasks only


class StatsUser(CamelModel):
    id: int
    name: str
    email: str


class StatsCategory(CamelModel):
    id: int
    name: str
    color: str
    icon: str


class TaskStatsResponse(CamelModel):
    stats: TaskStats
    generated_at: datetime


class UserStatsResponse(CamelModel):
    user: StatsUser
    stats: UserStats
    generated_at: datetime


class CategoryStatsResponse(CamelModel):
    category: StatsCategory
    stats: CategoryStats
    generated_at: datetime
