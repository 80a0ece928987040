"""Task API routes."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.api.deps import get_current_user, get_db
from taskmanager.config import settings
from taskmanager.models.base import utcnow
from taskmanager.models.user import User
from taskmanager.schemas.common import ensure_utc
from taskmanager.schemas.stats import TaskStatsResponse
from taskmanager.schemas.task import (
    CommentAddedResponse,
    CommentCreate,
    OverdueTasksResponse,
    TaskArchiveResponse,
    TaskCreate,
    TaskDeletedResponse,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from taskmanager.services.filters import Page, TaskFilterParams, parse_flag
from taskmanager.services.stats_service import StatsService
from taskmanager.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    page_number: str | None = Query(None, alias="pageNumber"),
    page_size: str | None = Query(None, alias="pageSize"),
    keyword: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    category: int | None = None,
    due_before: datetime | None = Query(None, alias="dueBefore"),
    due_after: datetime | None = Query(None, alias="dueAfter"),
    include_archived: str | None = Query(None, alias="includeArchived"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's tasks with filters and pagination.

    Archived tasks are left out unless ``includeArchived=true``.
    """
    params = TaskFilterParams(
        keyword=keyword,
        status=status,
        priority=priority,
        category_id=category,
        include_archived=parse_flag(include_archived) is True,
        due_before=ensure_utc(due_before),
        due_after=ensure_utc(due_after),
    )
    page = Page.from_query(
        page_number, page_size, settings.default_page_size, settings.max_page_size
    )
    service = TaskService(db)
    return await service.list_tasks(current_user, params, page)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    data: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a task."""
    service = TaskService(db)
    return await service.create_task(data, current_user)


@router.get("/overdue", response_model=OverdueTasksResponse)
async def list_overdue_tasks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Overdue tasks, earliest deadline first."""
    service = TaskService(db)
    tasks = await service.list_overdue(current_user)
    return {"tasks": tasks, "count": len(tasks)}


@router.get("/stats", response_model=TaskStatsResponse)
async def get_task_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Status counts, hours and completion rate over non-archived tasks."""
    service = StatsService(db)
    stats = await service.task_stats(current_user)
    return {"stats": stats, "generated_at": utcnow()}


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = TaskService(db)
    return await service.get_task(task_id, current_user)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a task; moving it between categories refreshes both counts."""
    service = TaskService(db)
    return await service.update_task(task_id, data, current_user)


@router.delete("/{task_id}", response_model=TaskDeletedResponse)
async def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = TaskService(db)
    deleted = await service.delete_task(task_id, current_user)
    return {"message": "Task removed successfully", "deleted_task": deleted}


@router.post("/{task_id}/comments", response_model=CommentAddedResponse, status_code=201)
async def add_task_comment(
    task_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = TaskService(db)
    comment = await service.add_comment(task_id, data, current_user)
    return {"message": "Comment added successfully", "comment": comment}


@router.put("/{task_id}/archive", response_model=TaskArchiveResponse)
async def toggle_task_archive(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Flip the archive flag."""
    service = TaskService(db)
    task = await service.toggle_archive(task_id, current_user)
    state = "archived" if task.is_archived else "unarchived"
    return {"message": f"Task {state} successfully", "task": task}
