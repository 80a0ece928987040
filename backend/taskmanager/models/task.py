"""Task, TaskComment and Subtask models."""

import math
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.models.base import Base, TimestampMixin, as_utc, utcnow
from taskmanager.utils.numbers import safe_percentage

TASK_STATUSES = ("pending", "in-progress", "completed", "cancelled")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(Base, TimestampMixin):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, in-progress, completed, cancelled
    priority: Mapped[str] = mapped_column(String(10), default="medium")  # low, medium, high, urgent
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    assigned_to_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    estimated_hours: Mapped[float] = mapped_column(Float, default=0)
    actual_hours: Mapped[float] = mapped_column(Float, default=0)
    progression: Mapped[int] = mapped_column(Integer, default=0)  # 0-100

    tags: Mapped[list] = mapped_column(JSON, default=list)
    attachments: Mapped[list] = mapped_column(JSON, default=list)  # [{fileName, fileUrl, fileSize, uploadedAt}]
    reminders: Mapped[list] = mapped_column(JSON, default=list)  # [{date, message, isSent}]

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="tasks", foreign_keys=[user_id])
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    category = relationship("Category", back_populates="tasks")
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.created_at",
    )
    subtasks = relationship(
        "Subtask",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Subtask.position",
    )

    __table_args__ = (
        Index("idx_tasks_user_status", "user_id", "status"),
        Index("idx_tasks_user_deadline", "user_id", "deadline"),
        Index("idx_tasks_user_priority", "user_id", "priority"),
        Index("idx_tasks_user_category", "user_id", "category_id"),
        Index("idx_tasks_created_at", "created_at"),
    )

    # ── Read-time fields (never persisted) ────────────
    @property
    def is_overdue(self) -> bool:
        deadline = as_utc(self.deadline)
        return bool(deadline and utcnow() > deadline and self.status != "completed")

    @property
    def days_until_deadline(self) -> int | None:
        deadline = as_utc(self.deadline)
        if deadline is None:
            return None
        remaining = (deadline - utcnow()).total_seconds() / 86400
        return math.ceil(remaining)

    @property
    def subtask_completion_rate(self) -> int:
        done = sum(1 for s in self.subtasks if s.is_completed)
        return safe_percentage(done, len(self.subtasks))


class TaskComment(Base):
    __tablename__ = "task_comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    task = relationship("Task", back_populates="comments")
    user = relationship("User", lazy="joined")


class Subtask(Base):
    __tablename__ = "subtasks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    task = relationship("Task", back_populates="subtasks")

