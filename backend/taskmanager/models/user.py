"""User model."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.models.base import Base, TimestampMixin

DEFAULT_PREFERENCES = {
    "theme": "light",
    "notifications": {
        "email": True,
        "deadlineReminders": True,
        "taskUpdates": True,
    },
    "dateFormat": "DD/MM/YYYY",
    "timezone": "UTC",
}


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[str] = mapped_column(String(500), default="")
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    preferences: Mapped[dict | None] = mapped_column(JSON, default=None, nullable=True)

    # Relationships
    categories = relationship("Category", back_populates="user", lazy="select")
    tasks = relationship(
        "Task",
        back_populates="user",
        foreign_keys="Task.user_id",
        lazy="select",
    )
