"""Category model."""

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.models.base import Base, TimestampMixin

DEFAULT_CATEGORY_SETTINGS = {
    "defaultPriority": "medium",
    "defaultEstimatedHours": 1,
    "autoArchive": False,
    "autoArchiveDays": 30,
}


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(200), default="")
    color: Mapped[str] = mapped_column(String(7), default="#3498db")  # hex color
    icon: Mapped[str] = mapped_column(String(30), default="folder")
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    # Denormalized count of non-archived tasks, refreshed by services.task_count
    task_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    settings: Mapped[dict | None] = mapped_column(JSON, default=None, nullable=True)

    # Relationships
    user = relationship("User", back_populates="categories")
    tasks = relationship("Task", back_populates="category")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        Index("idx_categories_user_sort", "user_id", "sort_order"),
        Index("idx_categories_user_active", "user_id", "is_active"),
    )
