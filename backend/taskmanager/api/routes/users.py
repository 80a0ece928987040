"""User API routes: authentication, profile and admin management."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.api.deps import get_current_user, get_db, require_admin
from taskmanager.config import settings
from taskmanager.core.exceptions import ValidationError
from taskmanager.models.base import utcnow
from taskmanager.models.user import User
from taskmanager.schemas.common import MessageResponse
from taskmanager.schemas.stats import UserStatsResponse
from taskmanager.schemas.user import (
    AdminUserUpdate,
    AuthResponse,
    AvatarVariationsResponse,
    PreferencesResponse,
    PreferencesUpdate,
    UserDeactivatedResponse,
    UserListResponse,
    UserLogin,
    UserProfileUpdate,
    UserReactivatedResponse,
    UserRegister,
    UserResponse,
)
from taskmanager.services.filters import Page
from taskmanager.services.stats_service import StatsService
from taskmanager.services.user_service import UserService
from taskmanager.utils.avatars import avatar_variations

router = APIRouter()


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        max_age=settings.jwt_access_token_expire_days * 24 * 60 * 60,
    )


def _auth_payload(user: User, token: str) -> dict:
    return {**UserResponse.model_validate(user).model_dump(), "token": token}


# ── Authentication ────────────────────────────────
@router.post("", response_model=AuthResponse, status_code=201)
async def register(data: UserRegister, response: Response, db: AsyncSession = Depends(get_db)):
    """Register a new user, set the auth cookie and return the user with its token."""
    service = UserService(db)
    user, token = await service.register(data)
    _set_auth_cookie(response, token)
    return _auth_payload(user, token)


@router.post("/auth", response_model=AuthResponse)
async def login(data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    """Authenticate with email and password."""
    service = UserService(db)
    user, token = await service.authenticate(data)
    _set_auth_cookie(response, token)
    return _auth_payload(user, token)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    response.delete_cookie(settings.auth_cookie_name, httponly=True, samesite="strict")
    return {"message": "Logged out successfully"}


# ── Current user ──────────────────────────────────
@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = UserService(db)
    return await service.update_profile(current_user, data)


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    data: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = UserService(db)
    preferences = await service.update_preferences(current_user, data)
    return {"message": "Preferences updated successfully", "preferences": preferences}


@router.get("/stats", response_model=UserStatsResponse)
async def get_user_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Task rollup for the current user, including the productivity score."""
    service = StatsService(db)
    stats = await service.user_stats(current_user)
    return {"user": current_user, "stats": stats, "generated_at": utcnow()}


@router.get("/avatar-variations", response_model=AvatarVariationsResponse)
async def get_avatar_variations(
    name: str | None = Query(None),
    current_user: User = Depends(get_current_user),
):
    """Six initials avatars in different colors; defaults to the user's own name."""
    user_name = (name or current_user.name or "").strip()
    if not user_name:
        raise ValidationError("Name is required to generate avatar variations")
    variations = avatar_variations(user_name)
    return {"name": user_name, "variations": variations, "total_count": len(variations)}


# ── Admin ─────────────────────────────────────────
@router.get("", response_model=UserListResponse)
async def list_users(
    page_number: str | None = Query(None, alias="pageNumber"),
    page_size: str | None = Query(None, alias="pageSize"),
    keyword: str | None = None,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    page = Page.from_query(
        page_number, page_size, settings.default_page_size, settings.max_page_size
    )
    service = UserService(db)
    return await service.list_users(page, keyword)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = UserService(db)
    return await service.get_user(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: AdminUserUpdate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = UserService(db)
    return await service.admin_update(user_id, data)


@router.delete("/{user_id}", response_model=UserDeactivatedResponse)
async def deactivate_user(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the account is deactivated, never removed."""
    service = UserService(db)
    user = await service.deactivate(user_id)
    return {
        "message": "User account deactivated",
        "user_id": user.id,
        "deactivated_at": utcnow(),
    }


@router.put("/{user_id}/activate", response_model=UserReactivatedResponse)
async def reactivate_user(
    user_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = UserService(db)
    user = await service.reactivate(user_id)
    return {
        "message": "User account reactivated",
        "user_id": user.id,
        "reactivated_at": utcnow(),
    }
