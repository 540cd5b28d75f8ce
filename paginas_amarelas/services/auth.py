"""Password hashing, session tokens and the current-user dependency.

Passwords are pre-hashed with SHA-256 before bcrypt so that inputs longer
than bcrypt's 72-byte limit are fully considered.
"""

import base64
import hashlib
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paginas_amarelas.core.config import get_settings
from paginas_amarelas.core.database import get_db
from paginas_amarelas.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _prehash_password(password: str) -> bytes:
    sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(sha256_hash)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(_prehash_password(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_prehash_password(password), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: int, username: str) -> str:
    """
    Create a signed session token.

    Args:
        user_id: The user's id
        username: The user's username

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode a session token, returning None if it is invalid or expired."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("Session token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"Invalid session token: {e}")
        return None


async def authenticate(db: AsyncSession, username: str, password: str) -> User | None:
    """Return the user matching the credentials, or None."""
    result = await db.execute(select(User).where(func.lower(User.username) == username.lower()))
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency resolving the user from a bearer token or the session cookie."""
    token = credentials.credentials if credentials else None
    if token is None:
        token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        raise _unauthorized()

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired session")

    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError):
        raise _unauthorized("Invalid or expired session") from None

    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("User no longer exists")
    return user
