"""Auth endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hucares.core.deps import get_current_user
from hucares.core.security import create_access_token, token_lifetime
from hucares.db.session import get_db
from hucares.models.user import User
from hucares.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserMe,
    UserProfile,
    VerifyResponse,
)
from hucares.schemas.common import GroupSummary, MessageResponse
from hucares.services.auth_service import authenticate_user, change_password, create_user, deactivate_user
from hucares.services.group_service import list_user_memberships

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.username),
        expires_in=int(token_lifetime().total_seconds()),
        user=UserMe.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Register a new user and sign them in."""
    user = create_user(db, data)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """Login and return access token."""
    user = authenticate_user(db, data.username, data.password)
    return _token_response(user)


@router.get("/me", response_model=UserProfile)
def me(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get current authenticated user with their groups."""
    groups = [GroupSummary.model_validate(g) for _, g in list_user_memberships(db, current_user)]
    return UserProfile(**UserMe.model_validate(current_user).model_dump(), groups=groups)


@router.put("/change-password", response_model=MessageResponse)
def update_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    change_password(db, current_user, data.current_password, data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logout successful")


@router.delete("/account", response_model=MessageResponse)
def deactivate_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deactivate_user(db, current_user)
    return MessageResponse(message="Account deactivated successfully")


@router.get("/verify", response_model=VerifyResponse)
def verify(current_user: User = Depends(get_current_user)):
    return VerifyResponse(user=UserMe.model_validate(current_user))
