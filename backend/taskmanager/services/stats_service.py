"""Statistics service: per-user and per-category task rollups."""

from datetime import datetime

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.models.base import as_utc, utcnow
from taskmanager.models.category import Category
from taskmanager.models.task import Task
from taskmanager.models.user import User
from taskmanager.schemas.stats import CategoryStats, TaskStats, UserStats
from taskmanager.utils.numbers import safe_percentage

SECONDS_PER_DAY = 60 * 60 * 24


def completion_rate(completed: int, total: int) -> int:
    return safe_percentage(completed, total)


def productivity_score(actual_hours: float, estimated_hours: float) -> int:
    return safe_percentage(actual_hours, estimated_hours)


def average_completion_days(spans: list[tuple[datetime | None, datetime | None]]) -> float:
    """Mean of ``completed_at - start_date`` in days; pairs with a gap are skipped."""
    durations = [
        (as_utc(completed_at) - as_utc(start_date)).total_seconds() / SECONDS_PER_DAY
        for start_date, completed_at in spans
        if start_date is not None and completed_at is not None
    ]
    if not durations:
        return 0
    return sum(durations) / len(durations)


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_filters(self, user_id: int, category_id: int | None = None) -> list:
        """Stats only ever look at the owner's non-archived tasks."""
        clauses = [
            Task.user_id == user_id,
            Task.is_archived.is_(False),
        ]
        if category_id is not None:
            clauses.append(Task.category_id == category_id)
        return clauses

    async def _aggregate(self, clauses: list) -> dict:
        """Run the rollup as a single aggregate query.

        ``coalesce`` keeps every field at zero when nothing matches, so an
        empty task set still produces a complete result.
        """
        now = utcnow()
        is_overdue = and_(
            Task.deadline.is_not(None),
            Task.deadline < now,
            Task.status != "completed",
        )

        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        query = select(
            func.count(Task.id).label("total_tasks"),
            count_where(Task.status == "completed").label("completed_tasks"),
            count_where(Task.status == "in-progress").label("in_progress_tasks"),
            count_where(Task.status == "pending").label("pending_tasks"),
            count_where(is_overdue).label("overdue_tasks"),
            func.coalesce(func.sum(Task.estimated_hours), 0).label("total_estimated_hours"),
            func.coalesce(func.sum(Task.actual_hours), 0).label("total_actual_hours"),
            func.coalesce(func.avg(Task.progression), 0).label("avg_progression"),
        ).where(*clauses)

        row = (await self.db.execute(query)).one()
        stats = {
            "total_tasks": int(row.total_tasks or 0),
            "completed_tasks": int(row.completed_tasks or 0),
            "in_progress_tasks": int(row.in_progress_tasks or 0),
            "pending_tasks": int(row.pending_tasks or 0),
            "overdue_tasks": int(row.overdue_tasks or 0),
            "total_estimated_hours": float(row.total_estimated_hours or 0),
            "total_actual_hours": float(row.total_actual_hours or 0),
            "avg_progression": float(row.avg_progression or 0),
        }
        stats["completion_rate"] = completion_rate(stats["completed_tasks"], stats["total_tasks"])
        return stats

    async def task_stats(self, user: User) -> TaskStats:
        """Rollup over all of the user's non-archived tasks."""
        stats = await self._aggregate(self._base_filters(user.id))
        return TaskStats(**stats)

    async def user_stats(self, user: User) -> UserStats:
        """Task rollup plus the actual/estimated hours productivity score."""
        stats = await self._aggregate(self._base_filters(user.id))
        stats["productivity_score"] = productivity_score(
            stats["total_actual_hours"], stats["total_estimated_hours"]
        )
        return UserStats(**stats)

    async def category_stats(self, category: Category) -> CategoryStats:
        """Rollup over one category, with the mean completion time in days."""
        clauses = self._base_filters(category.user_id, category.id)
        stats = await self._aggregate(clauses)

        result = await self.db.execute(
            select(Task.start_date, Task.completed_at).where(
                *clauses, Task.status == "completed"
            )
        )
        stats["avg_completion_time"] = average_completion_days(
            [(r.start_date, r.completed_at) for r in result.all()]
        )
        return CategoryStats(**stats)
