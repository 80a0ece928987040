"""Security utilities: password hashing, JWT issuing/validation and auth dependencies."""

from datetime import datetime, timedelta, timezone

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.config import settings
from taskmanager.core.database import get_db
from taskmanager.core.exceptions import ForbiddenError, UnauthorizedError

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ── Passwords ─────────────────────────────────────
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


# ── Tokens ────────────────────────────────────────
def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Issue an HS256 access token whose subject is the user ID."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.jwt_access_token_expire_days)
    )
    payload = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and validate an access token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise UnauthorizedError("Not authorized, token failed") from e

    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedError("Not authorized, token failed")
    return payload


# ── Auth Dependencies ─────────────────────────────
security_scheme = HTTPBearer(auto_error=False)


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """An explicit Bearer header wins over the auth cookie."""
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return request.cookies.get(settings.auth_cookie_name) or None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    db: AsyncSession = Depends(get_db),
):
    """FastAPI dependency: resolve the request token to an active local user."""
    from taskmanager.models.user import User

    token = _extract_token(request, credentials)
    if not token:
        raise UnauthorizedError("Not authorized, no token provided")

    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise UnauthorizedError("Not authorized, token failed") from e

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthorizedError("Not authorized, user not found")
    if not user.is_active:
        logger.info("Rejected token for deactivated account", user_id=user.id)
        raise UnauthorizedError("Account has been deactivated")

    return user


async def require_admin(user=Depends(get_current_user)):
    """FastAPI dependency: the current user must be an active admin."""
    if not (user.is_admin and user.is_active):
        raise ForbiddenError("Not authorized as an admin")
    return user
