"""User accounts service: registration, login, profile and admin management."""

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.core.exceptions import AlreadyExistsError, NotFoundError, UnauthorizedError, ValidationError
from taskmanager.core.security import create_access_token, hash_password, verify_password
from taskmanager.models.base import utcnow
from taskmanager.models.user import DEFAULT_PREFERENCES, User
from taskmanager.schemas.user import (
    AdminUserUpdate,
    PreferencesUpdate,
    UserLogin,
    UserProfileUpdate,
    UserRegister,
)
from taskmanager.services.filters import Page, paginate
from taskmanager.utils.avatars import generate_avatar

logger = structlog.get_logger()


def merge_preferences(current: dict | None, update: PreferencesUpdate) -> dict:
    """Overlay the provided preference fields on the stored ones (notifications merge per key)."""
    merged = {**DEFAULT_PREFERENCES, **(current or {})}
    changes = update.model_dump(by_alias=True, exclude_none=True)
    notifications = changes.pop("notifications", None)
    merged.update(changes)
    if notifications:
        merged["notifications"] = {**merged.get("notifications", {}), **notifications}
    return merged


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, data: UserRegister) -> tuple[User, str]:
        """Register a new user and issue an access token."""
        if await self._find_by_email(data.email):
            raise AlreadyExistsError("User already exists")

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            avatar=generate_avatar(data.avatar, data.name, theme="light"),
            is_admin=False,
            is_active=True,
            is_email_verified=False,
            preferences=dict(DEFAULT_PREFERENCES),
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("User registered", user_id=user.id)
        return user, create_access_token(user.id)

    async def authenticate(self, data: UserLogin) -> tuple[User, str]:
        """Check credentials, stamp ``last_login`` and issue an access token."""
        user = await self._find_by_email(data.email)
        if not user or not verify_password(data.password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.is_active:
            raise UnauthorizedError("Account has been deactivated")

        user.last_login = utcnow()
        await self.db.flush()
        await self.db.refresh(user)
        return user, create_access_token(user.id)

    async def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        return await self._apply_update(user, data)

    async def update_preferences(self, user: User, data: PreferencesUpdate) -> dict:
        user.preferences = merge_preferences(user.preferences, data)
        await self.db.flush()
        return user.preferences

    # ── Admin ─────────────────────────────────────────
    async def list_users(self, page: Page, keyword: str | None = None) -> dict:
        query = select(User)
        keyword = (keyword or "").strip()
        if keyword:
            query = query.where(
                or_(
                    User.name.icontains(keyword, autoescape=True),
                    User.email.icontains(keyword, autoescape=True),
                )
            )
        users, total = await paginate(
            self.db, query, page, order_by=(User.created_at.desc(), User.id.desc())
        )
        return {"users": users, **page.meta(total)}

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User")
        return user

    async def admin_update(self, user_id: int, data: AdminUserUpdate) -> User:
        user = await self.get_user(user_id)
        if data.is_admin is not None:
            user.is_admin = data.is_admin
        if data.is_active is not None:
            user.is_active = data.is_active
        return await self._apply_update(user, data)

    async def deactivate(self, user_id: int) -> User:
        """Soft delete: admins are never deactivated."""
        user = await self.get_user(user_id)
        if user.is_admin:
            raise ValidationError("Cannot delete admin user")
        user.is_active = False
        await self.db.flush()
        logger.info("User deactivated", user_id=user.id)
        return user

    async def reactivate(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        user.is_active = True
        await self.db.flush()
        logger.info("User reactivated", user_id=user.id)
        return user

    # ── Helpers ───────────────────────────────────────
    async def _apply_update(self, user: User, data: UserProfileUpdate) -> User:
        if data.email and data.email != user.email:
            existing = await self._find_by_email(data.email)
            if existing and existing.id != user.id:
                raise AlreadyExistsError("Email already in use")
            user.email = data.email

        old_name = user.name
        if data.name:
            user.name = data.name.strip()

        # a new avatar URL or a renamed user regenerates the avatar
        if data.avatar or user.name != old_name:
            theme = (user.preferences or {}).get("theme")
            user.avatar = generate_avatar(data.avatar, user.name, theme=theme)

        if data.preferences is not None:
            user.preferences = merge_preferences(user.preferences, data.preferences)

        if data.password:
            user.password_hash = hash_password(data.password)

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()
