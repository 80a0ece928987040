"""Category schemas."""

import re
from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from taskmanager.models.category import DEFAULT_CATEGORY_SETTINGS
from taskmanager.schemas.common import CamelModel

HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


def _validate_color(v: str | None) -> str | None:
    if v is not None and not HEX_COLOR.match(v):
        raise ValueError("Please enter a valid hex color")
    return v


class CategorySettings(CamelModel):
    default_priority: Literal["low", "medium", "high", "urgent"] = "medium"
    default_estimated_hours: float = Field(default=1, ge=0)
    auto_archive: bool = False
    auto_archive_days: int = Field(default=30, ge=1)


class CategorySettingsUpdate(CamelModel):
    default_priority: Literal["low", "medium", "high", "urgent"] | None = None
    default_estimated_hours: float | None = Field(default=None, ge=0)
    auto_archive: bool | None = None
    auto_archive_days: int | None = Field(default=None, ge=1)


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=200)
    color: str = "#3498db"
    icon: str = Field(default="folder", max_length=30)
    is_default: bool = False
    sort_order: int = 0
    settings: CategorySettings | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category name is required")
        return v.strip()

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return _validate_color(v)


class CategoryUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)
    color: str | None = None
    icon: str | None = Field(default=None, max_length=30)
    is_default: bool | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    settings: CategorySettingsUpdate | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Category name cannot be empty")
        return v.strip() if v is not None else None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return _validate_color(v)


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: str | None = ""
    color: str
    icon: str
    user_id: int
    is_default: bool
    is_active: bool
    sort_order: int
    task_count: int
    settings: CategorySettings
    created_at: datetime
    updated_at: datetime

    @field_validator("settings", mode="before")
    @classmethod
    def fill_settings(cls, v):
        return {**DEFAULT_CATEGORY_SETTINGS, **(v or {})}


class CategoryListResponse(CamelModel):
    categories: list[CategoryResponse]
    page: int
    pages: int
    total: int
    has_more: bool


class DeletedCategory(CamelModel):
    id: int
    name: str
    tasks_affected: int


class CategoryDeletedResponse(CamelModel):
    message: str
    deleted_category: DeletedCategory


class CategoryTaskCount(CamelModel):
    id: int
    name: str
    task_count: int


class CategoryTaskCountResponse(CamelModel):
    message: str
    category: CategoryTaskCount


class CategoryActiveState(CamelModel):
    id: int
    name: str
    is_active: bool


class CategoryToggleResponse(CamelModel):
    message: str
    category: CategoryActiveState


class DefaultCategoriesResponse(CamelModel):
    message: str
    categories: list[CategoryResponse]
    total: int
