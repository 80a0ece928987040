"""Refresh of the denormalized ``Category.task_count`` cache.

The count is written with a bare UPDATE so unrelated column state on the
category cannot block the refresh. Nothing ties the refresh to the task write
that triggered it beyond the request session; a stale count is fixed by
calling the refresh again (``PUT /api/categories/{id}/update-count``).
"""

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.models.category import Category
from taskmanager.models.task import Task

logger = structlog.get_logger()


async def count_category_tasks(db: AsyncSession, category_id: int, user_id: int) -> int:
    result = await db.execute(
        select(func.count(Task.id)).where(
            Task.category_id == category_id,
            Task.user_id == user_id,
            Task.is_archived.is_(False),
        )
    )
    return result.scalar_one()


async def refresh_task_count(db: AsyncSession, category_id: int, user_id: int) -> int:
    """Recount the owner's non-archived tasks in a category and store it."""
    await db.flush()
    count = await count_category_tasks(db, category_id, user_id)
    await db.execute(
        update(Category)
        .where(Category.id == category_id, Category.user_id == user_id)
        .values(task_count=count)
    )
    logger.debug("Category task count refreshed", category_id=category_id, task_count=count)
    return count


async def refresh_task_counts(db: AsyncSession, user_id: int, *category_ids: int | None) -> None:
    """Refresh every distinct, non-null category ID given (old and new after a move)."""
    for category_id in dict.fromkeys(c for c in category_ids if c is not None):
        await refresh_task_count(db, category_id, user_id)
