"""Task schemas for request/response validation."""

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from taskmanager.models.base import utcnow
from taskmanager.schemas.common import CamelModel, ensure_utc

TaskStatus = Literal["pending", "in-progress", "completed", "cancelled"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


def _normalize_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    normalized = []
    for tag in tags:
        tag = tag.strip().lower()
        if not tag:
            continue
        if len(tag) > 30:
            raise ValueError("Tag cannot exceed 30 characters")
        if tag not in normalized:
            normalized.append(tag)
    return normalized


def _future_deadline(value: datetime | None) -> datetime | None:
    value = ensure_utc(value)
    if value is not None and value <= utcnow():
        raise ValueError("Deadline must be in the future")
    return value


class SubtaskIn(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    is_completed: bool = False

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Subtask title is required")
        return v.strip()


class SubtaskResponse(CamelModel):
    id: int
    title: str
    is_completed: bool
    completed_at: datetime | None = None


class AttachmentIn(CamelModel):
    file_name: str = Field(min_length=1)
    file_url: str = Field(min_length=1)
    file_size: int = Field(ge=0)
    uploaded_at: datetime | None = None


class ReminderIn(CamelModel):
    date: datetime
    message: str | None = Field(default=None, max_length=200)
    is_sent: bool = False

    @field_validator("date")
    @classmethod
    def utc_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    category: int | None = None
    assigned_to: int | None = None
    deadline: datetime | None = None
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    progression: int | None = Field(default=None, ge=0, le=100)
    tags: list[str] = Field(default_factory=list)
    subtasks: list[SubtaskIn] = Field(default_factory=list)
    attachments: list[AttachmentIn] = Field(default_factory=list)
    reminders: list[ReminderIn] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Task title is required")
        return v.strip()

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v: datetime | None) -> datetime | None:
        return _future_deadline(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class TaskUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: int | None = None
    assigned_to: int | None = None
    deadline: datetime | None = None
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    actual_hours: float | None = Field(default=None, ge=0)
    progression: int | None = Field(default=None, ge=0, le=100)
    tags: list[str] | None = None
    subtasks: list[SubtaskIn] | None = None
    attachments: list[AttachmentIn] | None = None
    reminders: list[ReminderIn] | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Task title cannot be empty")
        return v.strip() if v is not None else None

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v: datetime | None) -> datetime | None:
        return _future_deadline(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class CommentCreate(CamelModel):
    text: str = Field(max_length=500)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment text is required")
        return v.strip()


class CommentAuthor(CamelModel):
    id: int
    name: str
    avatar: str | None = None


class CommentResponse(CamelModel):
    id: int
    text: str
    created_at: datetime
    user: CommentAuthor


class TaskCategoryRef(CamelModel):
    id: int
    name: str
    color: str
    icon: str


class TaskResponse(CamelModel):
    id: int
    title: str
    description: str | None = ""
    status: str
    priority: str
    category: TaskCategoryRef | None = None
    user_id: int
    assigned_to_id: int | None = None
    deadline: datetime | None = None
    start_date: datetime | None = None
    completed_at: datetime | None = None
    estimated_hours: float = 0
    actual_hours: float = 0
    progression: int = 0
    tags: list[str] = Field(default_factory=list)
    attachments: list[dict] = Field(default_factory=list)
    reminders: list[dict] = Field(default_factory=list)
    comments: list[CommentResponse] = Field(default_factory=list)
    subtasks: list[SubtaskResponse] = Field(default_factory=list)
    is_archived: bool = False
    archived_at: datetime | None = None
    is_overdue: bool = False
    days_until_deadline: int | None = None
    subtask_completion_rate: int = 0
    created_at: datetime
    updated_at: datetime


class TaskListResponse(CamelModel):
    tasks: list[TaskResponse]
    page: int
    pages: int
    total: int
    has_more: bool


class CategoryTaskListResponse(TaskListResponse):
    category: TaskCategoryRef


class OverdueTasksResponse(CamelModel):
    tasks: list[TaskResponse]
    count: int


class CommentAddedResponse(CamelModel):
    message: str
    comment: CommentResponse


class TaskArchiveState(CamelModel):
    id: int
    title: str
    is_archived: bool


class TaskArchiveResponse(CamelModel):
    message: str
    task: TaskArchiveState


class DeletedTask(CamelModel):
    id: int
    title: str


class TaskDeletedResponse(CamelModel):
    message: str
    deleted_task: DeletedTask
