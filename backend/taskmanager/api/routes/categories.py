"""Category API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.api.deps import get_current_user, get_db
from taskmanager.config import settings
from taskmanager.models.base import utcnow
from taskmanager.models.user import User
from taskmanager.schemas.category import (
    CategoryCreate,
    CategoryDeletedResponse,
    CategoryListResponse,
    CategoryResponse,
    CategoryTaskCountResponse,
    CategoryToggleResponse,
    CategoryUpdate,
    DefaultCategoriesResponse,
)
from taskmanager.schemas.stats import CategoryStatsResponse
from taskmanager.schemas.task import CategoryTaskListResponse
from taskmanager.services.category_service import CategoryService
from taskmanager.services.filters import CategoryFilterParams, Page, TaskFilterParams, parse_flag
from taskmanager.services.stats_service import StatsService
from taskmanager.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    page_number: str | None = Query(None, alias="pageNumber"),
    page_size: str | None = Query(None, alias="pageSize"),
    keyword: str | None = None,
    is_active: str | None = Query(None, alias="isActive"),
    is_default: str | None = Query(None, alias="isDefault"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's categories by sort order, one page at a time."""
    params = CategoryFilterParams(
        keyword=keyword,
        is_active=parse_flag(is_active),
        is_default=parse_flag(is_default),
    )
    page = Page.from_query(
        page_number, page_size, settings.default_page_size, settings.max_page_size
    )
    service = CategoryService(db)
    return await service.list_categories(current_user, params, page)


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a category; names are unique per user, ignoring case."""
    service = CategoryService(db)
    return await service.create_category(data, current_user)


@router.post("/create-defaults", response_model=DefaultCategoriesResponse, status_code=201)
async def create_default_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create Personal, Work, Shopping, Health and Learning for the current user."""
    service = CategoryService(db)
    categories = await service.create_default_categories(current_user)
    return {
        "message": "Default categories created successfully",
        "categories": categories,
        "total": len(categories),
    }


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = CategoryService(db)
    return await service.get_category(category_id, current_user)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = CategoryService(db)
    return await service.update_category(category_id, data, current_user)


@router.delete("/{category_id}", response_model=CategoryDeletedResponse)
async def delete_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a category. Its tasks are kept and lose their category."""
    service = CategoryService(db)
    deleted = await service.delete_category(category_id, current_user)
    return {"message": "Category removed successfully", "deleted_category": deleted}


@router.get("/{category_id}/stats", response_model=CategoryStatsResponse)
async def get_category_stats(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).get_category(category_id, current_user)
    stats = await StatsService(db).category_stats(category)
    return {"category": category, "stats": stats, "generated_at": utcnow()}


@router.get("/{category_id}/tasks", response_model=CategoryTaskListResponse)
async def list_category_tasks(
    category_id: int,
    page_number: str | None = Query(None, alias="pageNumber"),
    page_size: str | None = Query(None, alias="pageSize"),
    status: str | None = None,
    priority: str | None = None,
    include_archived: str | None = Query(None, alias="includeArchived"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Paginated tasks of one category."""
    category = await CategoryService(db).get_category(category_id, current_user)
    params = TaskFilterParams(
        status=status,
        priority=priority,
        category_id=category.id,
        include_archived=parse_flag(include_archived) is True,
    )
    page = Page.from_query(
        page_number, page_size, settings.default_page_size, settings.max_page_size
    )
    listing = await TaskService(db).list_tasks(current_user, params, page)
    return {"category": category, **listing}


@router.put("/{category_id}/update-count", response_model=CategoryTaskCountResponse)
async def update_category_task_count(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recount the category's non-archived tasks."""
    service = CategoryService(db)
    category = await service.update_task_count(category_id, current_user)
    return {"message": "Category task count updated successfully", "category": category}


@router.put("/{category_id}/toggle-active", response_model=CategoryToggleResponse)
async def toggle_category_active(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = CategoryService(db)
    category = await service.toggle_active(category_id, current_user)
    state = "activated" if category.is_active else "deactivated"
    return {"message": f"Category {state} successfully", "category": category}
