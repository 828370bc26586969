# auth service: admin credentials, jwt tokens and bcrypt password hashing
# users live in the users table; token subject is the integer user id as a string

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from practice_admin.config import settings
from practice_admin.models.user import TokenResponse
from practice_admin.services.backend import BackendClient, eq

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(data: dict, expires_delta: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(data, expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES), "access")


def create_refresh_token(data: dict) -> str:
    return _encode(data, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS), "refresh")


def decode_token(token: str) -> Optional[dict]:
    """decode and validate a jwt token, returns payload or none"""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token decode failed: {e}")
        return None


def issue_tokens(user: dict) -> TokenResponse:
    claims = {"sub": str(user["id"]), "role": user.get("role", "admin")}
    return TokenResponse(
        accessToken=create_access_token(claims),
        refreshToken=create_refresh_token(claims),
    )


async def authenticate_user(backend: BackendClient, email: str, password: str) -> Optional[dict]:
    """user row for matching credentials, None otherwise"""
    rows = await backend.fetch("users", [eq("email", email.strip().lower())], limit=1)
    if not rows:
        logger.info(f"Login attempt for unknown email: {email}")
        return None
    user = rows[0]
    if not user.get("hashed_password") or not verify_password(password, user["hashed_password"]):
        logger.info(f"Invalid password for user {user['id']}")
        return None
    return user


async def get_user_by_id(backend: BackendClient, user_id: str) -> Optional[dict]:
    try:
        uid = int(user_id)
    except (TypeError, ValueError):
        return None
    rows = await backend.fetch("users", [eq("id", uid)], limit=1)
    return rows[0] if rows else None
