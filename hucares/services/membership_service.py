"""Group membership lookups and guards."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hucares.core.errors import ForbiddenError, ValidationError
from hucares.models.group import Group
from hucares.models.group_membership import ROLE_ADMIN, GroupMembership

NOT_A_MEMBER = "You are not a member of this group or group is inactive"


def get_active_membership(db: Session, user_id: int, group_id: int) -> GroupMembership | None:
    """Active membership row for (user, group), regardless of group state."""
    return db.execute(
        select(GroupMembership).where(
            GroupMembership.user_id == user_id,
            GroupMembership.group_id == group_id,
            GroupMembership.is_active.is_(True),
        )
    ).scalar_one_or_none()


def assert_active_member(db: Session, user_id: int, group_id: int) -> GroupMembership:
    """Require an active membership in an active group.

    Both failure reasons share one message.
    """
    membership = get_active_membership(db, user_id, group_id)
    if membership is None:
        raise ForbiddenError(NOT_A_MEMBER)
    group = db.get(Group, group_id)
    if group is None or not group.is_active:
        raise ForbiddenError(NOT_A_MEMBER)
    return membership


def assert_group_admin(db: Session, user_id: int, group_id: int, message: str) -> GroupMembership:
    membership = get_active_membership(db, user_id, group_id)
    if membership is None or membership.role != ROLE_ADMIN:
        raise ForbiddenError(message)
    return membership


def count_active_members(db: Session, group_id: int, role: str | None = None, exclude_user_id: int | None = None) -> int:
    stmt = select(func.count()).select_from(GroupMembership).where(
        GroupMembership.group_id == group_id,
        GroupMembership.is_active.is_(True),
    )
    if role is not None:
        stmt = stmt.where(GroupMembership.role == role)
    if exclude_user_id is not None:
        stmt = stmt.where(GroupMembership.user_id != exclude_user_id)
    return db.execute(stmt).scalar_one()


def ensure_admin_remains(
    db: Session,
    membership: GroupMembership,
    message: str,
    allow_if_alone: bool = False,
) -> None:
    """Refuse to drop the last active admin of a group.

    With ``allow_if_alone`` a sole admin who is also the only active member
    may go, leaving the group empty.
    """
    if membership.role != ROLE_ADMIN:
        return
    if allow_if_alone:
        others = count_active_members(db, membership.group_id, exclude_user_id=membership.user_id)
        if others == 0:
            return
    other_admins = count_active_members(
        db, membership.group_id, role=ROLE_ADMIN, exclude_user_id=membership.user_id
    )
    if other_admins == 0:
        raise ValidationError(message)
