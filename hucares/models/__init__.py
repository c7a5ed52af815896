"""SQLAlchemy models."""

from __future__ import annotations

from hucares.models.check_in import CheckIn
from hucares.models.group import Group
from hucares.models.group_membership import GroupMembership
from hucares.models.user import User

__all__ = [
    "User",
    "Group",
    "GroupMembership",
    "CheckIn",
]
