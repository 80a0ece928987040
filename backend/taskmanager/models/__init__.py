"""SQLAlchemy models."""

from taskmanager.models.base import Base
from taskmanager.models.category import Category
from taskmanager.models.task import Subtask, Task, TaskComment
from taskmanager.models.user import User

__all__ = [
    "Base",
    "User",
    "Category",
    "Task",
    "TaskComment",
    "Subtask",
]
