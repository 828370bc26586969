# user models: admin login, tokens and profile

from typing import Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["admin", "assistant"]


# auth

class UserLogin(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")
    token_type: str = "bearer"

    model_config = {"populate_by_name": True}


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., alias="refreshToken")

    model_config = {"populate_by_name": True}


# user responses

class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: Role
    created_at: Optional[str] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}


# password change

class PasswordChange(BaseModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=8)

    model_config = {"populate_by_name": True}
