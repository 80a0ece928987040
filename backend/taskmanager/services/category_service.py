"""Category management service."""

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from taskmanager.models.category import DEFAULT_CATEGORY_SETTINGS, Category
from taskmanager.models.task import Task
from taskmanager.models.user import User
from taskmanager.schemas.category import CategoryCreate, CategoryUpdate
from taskmanager.services.filters import CategoryFilterParams, Page, build_category_filters, paginate
from taskmanager.services.task_count import refresh_task_count

logger = structlog.get_logger()

DEFAULT_CATEGORIES = [
    {"name": "Personal", "description": "Personal tasks and activities", "color": "#e74c3c", "icon": "user"},
    {"name": "Work", "description": "Work-related tasks and projects", "color": "#3498db", "icon": "briefcase"},
    {"name": "Shopping", "description": "Shopping lists and purchases", "color": "#f39c12", "icon": "shopping-cart"},
    {"name": "Health", "description": "Health and fitness related tasks", "color": "#27ae60", "icon": "heart"},
    {"name": "Learning", "description": "Educational and skill development tasks", "color": "#9b59b6", "icon": "graduation-cap"},
]


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self, user: User, params: CategoryFilterParams, page: Page) -> dict:
        """List the user's categories by sort order, newest first within a sort slot."""
        query = select(Category).where(*build_category_filters(user.id, params))
        categories, total = await paginate(
            self.db,
            query,
            page,
            order_by=(Category.sort_order.asc(), Category.created_at.desc(), Category.id.desc()),
        )
        return {"categories": categories, **page.meta(total)}

    async def get_category(self, category_id: int, user: User) -> Category:
        return await self._get_user_category(category_id, user)

    async def create_category(self, data: CategoryCreate, user: User) -> Category:
        await self._ensure_unique_name(data.name, user)

        category = Category(
            user_id=user.id,
            name=data.name,
            description=data.description,
            color=data.color,
            icon=data.icon,
            is_default=data.is_default,
            is_active=True,
            sort_order=data.sort_order,
            task_count=0,
            settings=data.settings.model_dump(by_alias=True) if data.settings else None,
        )
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate, user: User) -> Category:
        category = await self._get_user_category(category_id, user)
        updates = data.model_dump(exclude_unset=True, exclude={"settings"})

        new_name = updates.get("name")
        if new_name and new_name != category.name:
            await self._ensure_unique_name(new_name, user, exclude_id=category.id)

        for key, value in updates.items():
            if value is not None:
                setattr(category, key, value)

        if data.settings is not None:
            # partial settings are merged over what is stored
            category.settings = {
                **DEFAULT_CATEGORY_SETTINGS,
                **(category.settings or {}),
                **data.settings.model_dump(by_alias=True, exclude_none=True),
            }

        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: int, user: User) -> dict:
        """Delete a category and detach (not delete) its tasks."""
        category = await self._get_user_category(category_id, user)
        if category.is_default:
            raise ValidationError("Cannot delete default category")

        result = await self.db.execute(
            select(func.count(Task.id)).where(
                Task.category_id == category.id, Task.user_id == user.id
            )
        )
        tasks_affected = result.scalar_one()

        await self.db.execute(
            update(Task).where(Task.category_id == category.id).values(category_id=None)
        )
        deleted = {"id": category.id, "name": category.name, "tasks_affected": tasks_affected}
        await self.db.delete(category)
        await self.db.flush()

        logger.info(
            "Category deleted",
            category_id=deleted["id"],
            user_id=user.id,
            tasks_detached=tasks_affected,
        )
        return deleted

    async def update_task_count(self, category_id: int, user: User) -> Category:
        category = await self._get_user_category(category_id, user)
        await refresh_task_count(self.db, category.id, user.id)
        await self.db.refresh(category)
        return category

    async def toggle_active(self, category_id: int, user: User) -> Category:
        category = await self._get_user_category(category_id, user)
        category.is_active = not category.is_active
        await self.db.flush()
        return category

    async def create_default_categories(self, user: User) -> list[Category]:
        """Create the five starter categories; refused once the user has any default."""
        result = await self.db.execute(
            select(Category.id).where(Category.user_id == user.id, Category.is_default.is_(True)).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            raise ValidationError("Default categories already exist for this user")

        existing = await self.db.execute(
            select(func.lower(Category.name)).where(Category.user_id == user.id)
        )
        taken = set(existing.scalars().all())
        clashes = [d["name"] for d in DEFAULT_CATEGORIES if d["name"].lower() in taken]
        if clashes:
            raise AlreadyExistsError(
                f"Category with this name already exists: {', '.join(clashes)}"
            )

        categories = [
            Category(
                user_id=user.id,
                is_default=True,
                is_active=True,
                sort_order=position,
                task_count=0,
                **definition,
            )
            for position, definition in enumerate(DEFAULT_CATEGORIES, start=1)
        ]
        self.db.add_all(categories)
        await self.db.flush()
        for category in categories:
            await self.db.refresh(category)

        logger.info("Default categories created", user_id=user.id, count=len(categories))
        return categories

    async def _ensure_unique_name(self, name: str, user: User, exclude_id: int | None = None) -> None:
        """Category names are unique per user, ignoring case."""
        query = select(Category.id).where(
            Category.user_id == user.id,
            func.lower(Category.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        if (await self.db.execute(query.limit(1))).scalar_one_or_none() is not None:
            raise AlreadyExistsError("Category with this name already exists")

    async def _get_user_category(self, category_id: int, user: User) -> Category:
        """Fetch a category owned by the user; other users' categories are reported as missing."""
        result = await self.db.execute(
            select(Category).where(Category.id == category_id, Category.user_id == user.id)
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category")
        return category
