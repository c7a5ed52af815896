"""FastAPI dependencies."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hucares.core.errors import UnauthorizedError
from hucares.core.security import user_id_from_token
from hucares.db.session import get_db
from hucares.models.user import User

security = HTTPBearer(auto_error=False)


def get_now() -> datetime:
    """Current instant. Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> User:
    """Resolve the bearer token to an active user, or fail with 401."""
    if not credentials:
        raise UnauthorizedError("Access token is required")
    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise UnauthorizedError("Invalid or expired token")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user
