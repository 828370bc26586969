# auth router: admin login, token refresh, current user and password change

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from practice_admin.dependencies import get_current_user
from practice_admin.models.user import (
    PasswordChange,
    RefreshRequest,
    TokenResponse,
    UserLogin,
    UserResponse,
)
from practice_admin.services.auth_service import (
    authenticate_user,
    decode_token,
    get_user_by_id,
    hash_password,
    issue_tokens,
    verify_password,
)
from practice_admin.services.backend import BackendClient, get_backend

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _user_response(user: dict) -> UserResponse:
    return UserResponse(
        id=user["id"],
        email=user.get("email", ""),
        name=user.get("name", ""),
        role=user.get("role", "admin"),
        createdAt=user.get("created_at"),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: UserLogin, backend: BackendClient = Depends(get_backend)):
    user = await authenticate_user(backend, body.email, body.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    logger.info(f"User {user['id']} logged in")
    return issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, backend: BackendClient = Depends(get_backend)):
    """trade a refresh token for a new token pair"""
    payload = decode_token(body.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    user = await get_user_by_id(backend, payload.get("sub"))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return issue_tokens(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: dict = Depends(get_current_user)):
    return _user_response(current_user)


@router.patch("/password")
async def change_password(
    body: PasswordChange,
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    hashed = current_user.get("hashed_password")
    if not hashed or not verify_password(body.current_password, hashed):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    await backend.update_one("users", current_user["id"], {"hashed_password": hash_password(body.new_password)})
    logger.info(f"Password changed for user {current_user['id']}")
    return {"message": "Password updated"}
