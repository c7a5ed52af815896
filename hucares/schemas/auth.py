"""Auth schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr

from hucares.schemas.common import GroupSummary


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    username: str
    password: str
    email: EmailStr | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UserMe(BaseModel):
    id: int
    username: str
    email: str | None
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserProfile(UserMe):
    groups: list[GroupSummary] = []


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserMe


class VerifyResponse(BaseModel):
    valid: bool = True
    user: UserMe
