"""Task management service."""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskmanager.config import settings
from taskmanager.core.exceptions import NotFoundError, ValidationError
from taskmanager.models.base import utcnow
from taskmanager.models.category import Category
from taskmanager.models.task import Subtask, Task, TaskComment
from taskmanager.models.user import User
from taskmanager.schemas.task import CommentCreate, SubtaskIn, TaskCreate, TaskUpdate
from taskmanager.services.filters import Page, TaskFilterParams, build_task_filters, paginate
from taskmanager.services.lifecycle import apply_archive_flag, apply_status_transition, set_subtask_completion
from taskmanager.services.task_count import refresh_task_counts

logger = structlog.get_logger()

TASK_LOAD_OPTIONS = (
    selectinload(Task.category),
    selectinload(Task.comments),
    selectinload(Task.subtasks),
)

NEWEST_FIRST = (Task.created_at.desc(), Task.id.desc())


class TaskService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tasks(self, user: User, params: TaskFilterParams, page: Page) -> dict:
        """List the user's tasks matching ``params``, newest first, one page at a time."""
        query = select(Task).where(*build_task_filters(user.id, params))
        tasks, total = await paginate(
            self.db, query, page, order_by=NEWEST_FIRST, options=TASK_LOAD_OPTIONS
        )
        return {"tasks": tasks, **page.meta(total)}

    async def list_overdue(self, user: User) -> list[Task]:
        """Most overdue first: past deadline, not completed, not archived."""
        result = await self.db.execute(
            select(Task)
            .where(
                Task.user_id == user.id,
                Task.deadline.is_not(None),
                Task.deadline < utcnow(),
                Task.status != "completed",
                Task.is_archived.is_(False),
            )
            .options(*TASK_LOAD_OPTIONS)
            .order_by(Task.deadline.asc())
            .limit(settings.overdue_list_limit)
        )
        return list(result.scalars().all())

    async def get_task(self, task_id: int, user: User) -> Task:
        return await self._get_user_task(task_id, user)

    async def create_task(self, data: TaskCreate, user: User) -> Task:
        category = None
        if data.category is not None:
            category = await self._get_user_category(data.category, user)
        if data.assigned_to is not None:
            await self._check_assignee(data.assigned_to)

        now = utcnow()
        priority = data.priority
        estimated_hours = data.estimated_hours
        # Only settings stored on the category act as task defaults
        category_settings = (category.settings or {}) if category else {}
        if "priority" not in data.model_fields_set and "defaultPriority" in category_settings:
            priority = category_settings["defaultPriority"]
        if estimated_hours is None:
            estimated_hours = category_settings.get("defaultEstimatedHours", 0)

        task = Task(
            user_id=user.id,
            title=data.title,
            description=data.description,
            status="pending",
            priority=priority,
            category_id=category.id if category else None,
            assigned_to_id=data.assigned_to,
            deadline=data.deadline,
            start_date=now,
            completed_at=None,
            estimated_hours=estimated_hours,
            actual_hours=0,
            progression=data.progression or 0,
            tags=data.tags,
            attachments=self._dump_attachments(data.attachments, now),
            reminders=[r.model_dump(by_alias=True, mode="json") for r in data.reminders],
            is_archived=False,
        )
        task.subtasks = self._build_subtasks(data.subtasks, now)
        apply_status_transition(task, data.status, now)

        self.db.add(task)
        await self.db.flush()
        await refresh_task_counts(self.db, user.id, task.category_id)

        logger.info("Task created", task_id=task.id, user_id=user.id, category_id=task.category_id)
        return await self._get_user_task(task.id, user)

    async def update_task(self, task_id: int, data: TaskUpdate, user: User) -> Task:
        task = await self._get_user_task(task_id, user)
        updates = data.model_dump(exclude_unset=True)
        old_category_id = task.category_id
        now = utcnow()

        if "category" in updates:
            new_category_id = updates["category"]
            if new_category_id is not None and new_category_id != old_category_id:
                await self._get_user_category(new_category_id, user)
            task.category_id = new_category_id
        if "assigned_to" in updates:
            if updates["assigned_to"] is not None:
                await self._check_assignee(updates["assigned_to"])
            task.assigned_to_id = updates["assigned_to"]
        if "deadline" in updates:
            task.deadline = data.deadline

        # None means "leave unchanged" for the non-nullable fields
        for field in ("title", "description", "priority", "estimated_hours", "actual_hours", "progression", "tags"):
            value = getattr(data, field)
            if field in updates and value is not None:
                setattr(task, field, value)

        if data.attachments is not None:
            task.attachments = self._dump_attachments(data.attachments, now)
        if data.reminders is not None:
            task.reminders = [r.model_dump(by_alias=True, mode="json") for r in data.reminders]
        if data.subtasks is not None:
            task.subtasks = self._merge_subtasks(task.subtasks, data.subtasks, now)

        # Status goes last so completion bookkeeping wins over an explicit progression
        if data.status is not None:
            changes = apply_status_transition(task, data.status, now)
            if changes:
                logger.info("Task status transition", task_id=task.id, changes=list(changes))

        await self.db.flush()
        await refresh_task_counts(self.db, user.id, old_category_id, task.category_id)
        return await self._get_user_task(task.id, user)

    async def delete_task(self, task_id: int, user: User) -> dict:
        task = await self._get_user_task(task_id, user)
        category_id = task.category_id
        deleted = {"id": task.id, "title": task.title}

        await self.db.delete(task)
        await self.db.flush()
        await refresh_task_counts(self.db, user.id, category_id)

        logger.info("Task deleted", task_id=deleted["id"], user_id=user.id)
        return deleted

    async def add_comment(self, task_id: int, data: CommentCreate, user: User) -> TaskComment:
        task = await self._get_user_task(task_id, user)
        comment = TaskComment(task_id=task.id, user=user, text=data.text)
        self.db.add(comment)
        await self.db.flush()
        return comment

    async def toggle_archive(self, task_id: int, user: User) -> Task:
        task = await self._get_user_task(task_id, user)
        apply_archive_flag(task, not task.is_archived)
        await self.db.flush()
        # archived tasks drop out of the category count
        await refresh_task_counts(self.db, user.id, task.category_id)
        return task

    # ── Helpers ───────────────────────────────────────
    async def _get_user_task(self, task_id: int, user: User) -> Task:
        """Fetch a task owned by the user; other users' tasks are reported as missing."""
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id, Task.user_id == user.id)
            .options(*TASK_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        task = result.scalar_one_or_none()
        if not task:
            raise NotFoundError("Task")
        return task

    async def _get_user_category(self, category_id: int, user: User) -> Category:
        result = await self.db.execute(
            select(Category).where(Category.id == category_id, Category.user_id == user.id)
        )
        category = result.scalar_one_or_none()
        if not category:
            raise ValidationError("Category not found")
        return category

    async def _check_assignee(self, user_id: int) -> None:
        result = await self.db.execute(
            select(User.id).where(User.id == user_id, User.is_active.is_(True))
        )
        if result.scalar_one_or_none() is None:
            raise ValidationError("Assigned user not found")

    @staticmethod
    def _dump_attachments(attachments, now) -> list[dict]:
        dumped = []
        for attachment in attachments:
            item = attachment.model_dump(by_alias=True, mode="json")
            item["uploadedAt"] = item.get("uploadedAt") or now.isoformat()
            dumped.append(item)
        return dumped

    @staticmethod
    def _build_subtasks(items: list[SubtaskIn], now) -> list[Subtask]:
        subtasks = []
        for position, item in enumerate(items):
            subtask = Subtask(title=item.title, position=position, completed_at=None)
            set_subtask_completion(subtask, item.is_completed, now)
            subtasks.append(subtask)
        return subtasks

    @staticmethod
    def _merge_subtasks(existing: list[Subtask], items: list[SubtaskIn], now) -> list[Subtask]:
        """Replace the subtask list, keeping completion timestamps of titles already done."""
        by_title = {s.title: s for s in existing}
        merged = []
        for position, item in enumerate(items):
            subtask = by_title.pop(item.title, None)
            if subtask is None:
                subtask = Subtask(title=item.title, completed_at=None)
            subtask.position = position
            set_subtask_completion(subtask, item.is_completed, now)
            merged.append(subtask)
        return merged
