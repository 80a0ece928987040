"""User schemas for request/response validation."""

from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from taskmanager.models.user import DEFAULT_PREFERENCES
from taskmanager.schemas.common import CamelModel


class NotificationPreferences(CamelModel):
    email: bool = True
    deadline_reminders: bool = True
    task_updates: bool = True


class Preferences(CamelModel):
    theme: Literal["light", "dark", "system"] = "light"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    date_format: Literal["MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD"] = "DD/MM/YYYY"
    timezone: str = "UTC"


class NotificationPreferencesUpdate(CamelModel):
    email: bool | None = None
    deadline_reminders: bool | None = None
    task_updates: bool | None = None


class PreferencesUpdate(CamelModel):
    theme: Literal["light", "dark", "system"] | None = None
    notifications: NotificationPreferencesUpdate | None = None
    date_format: Literal["MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD"] | None = None
    timezone: str | None = None


class UserRegister(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    avatar: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please enter your full name")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class UserLogin(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class UserProfileUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    email: EmailStr | None = None
    avatar: str | None = None
    password: str | None = Field(default=None, min_length=6)
    preferences: PreferencesUpdate | None = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v


class AdminUserUpdate(UserProfileUpdate):
    is_admin: bool | None = None
    is_active: bool | None = None


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    is_admin: bool
    is_active: bool
    avatar: str | None = ""
    is_email_verified: bool = False
    preferences: Preferences
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("preferences", mode="before")
    @classmethod
    def fill_preferences(cls, v):
        return {**DEFAULT_PREFERENCES, **(v or {})}


class AuthResponse(UserResponse):
    """Returned on register and login: user info plus the access token."""

    token: str


class UserListResponse(CamelModel):
    users: list[UserResponse]
    page: int
    pages: int
    total: int
    has_more: bool


class PreferencesResponse(CamelModel):
    message: str
    preferences: Preferences


class UserDeactivatedResponse(CamelModel):
    message: str
    user_id: int
    deactivated_at: datetime


class UserReactivatedResponse(CamelModel):
    message: str
    user_id: int
    reactivated_at: datetime


class AvatarVariation(CamelModel):
    id: int
    name: str
    url: str
    background_color: str


class AvatarVariationsResponse(CamelModel):
    name: str
    variations: list[AvatarVariation]
    total_count: int
