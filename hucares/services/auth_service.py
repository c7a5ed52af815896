"""Auth service."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hucares.core.errors import ConflictError, UnauthorizedError, ValidationError
from hucares.core.security import hash_password, verify_password
from hucares.models.user import User
from hucares.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
RESERVED_USERNAMES = frozenset({"admin", "root", "api", "www", "mail", "support", "help", "info"})
PASSWORD_MIN_LENGTH = 8


def username_errors(username: str) -> list[str]:
    errors = []
    if not 3 <= len(username) <= 20:
        errors.append("Username must be between 3 and 20 characters")
    if not USERNAME_PATTERN.match(username):
        errors.append("Username can only contain letters, numbers, hyphens, and underscores")
    if username.lower() in RESERVED_USERNAMES:
        errors.append("This username is reserved")
    return errors


def password_errors(password: str, label: str = "Password") -> list[str]:
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"{label} must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        errors.append(f"{label} must contain at least one uppercase letter, one lowercase letter, and one number")
    return errors


def get_user_by_username(db: Session, username: str) -> User | None:
    """Get user by username (case-insensitive)."""
    return db.execute(select(User).where(User.username == username.lower())).scalar_one_or_none()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email."""
    return db.execute(select(User).where(func.lower(User.email) == email.lower())).scalar_one_or_none()


def create_user(db: Session, data: RegisterRequest) -> User:
    """Validate and create a new user."""
    logger.info("Registration attempt for username=%s", data.username)
    errors = username_errors(data.username) + password_errors(data.password)
    if errors:
        raise ValidationError(errors)
    if get_user_by_username(db, data.username):
        raise ConflictError("Username already exists")
    if data.email and get_user_by_email(db, data.email):
        raise ConflictError("Email already registered")

    user = User(
        username=data.username.lower(),
        password_hash=hash_password(data.password),
        email=data.email.lower() if data.email else None,
        last_login_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered: %s", user.username)
    return user


def authenticate_user(db: Session, username: str, password: str) -> User:
    """Authenticate by username and password and stamp the login time."""
    logger.info("Login attempt for username=%s", username)
    user = get_user_by_username(db, username.strip())
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid username or password")
    if not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for user=%s", username)
        raise UnauthorizedError("Invalid username or password")
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info("User logged in: %s", user.username)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    logger.info("Password change attempt for user=%s", user.username)
    errors = password_errors(new_password, label="New password")
    if errors:
        raise ValidationError(errors)
    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed for user=%s", user.username)


def deactivate_user(db: Session, user: User) -> None:
    """Soft-delete the account. Rows are never removed."""
    user.is_active = False
    db.commit()
    logger.info("Account deactivated for user=%s", user.username)
