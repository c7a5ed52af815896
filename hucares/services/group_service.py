"""Group service."""

from __future__ import annotations

import logging
import secrets
import string

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from hucares.core.config import settings
from hucares.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hucares.models.group import Group
from hucares.models.group_membership import ROLE_ADMIN, ROLE_MEMBER, GroupMembership
from hucares.models.user import User
from hucares.schemas.group import GroupCreateRequest, GroupUpdateRequest
from hucares.services.membership_service import (
    assert_group_admin,
    count_active_members,
    ensure_admin_remains,
    get_active_membership,
)

logger = logging.getLogger(__name__)

ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits
ACCESS_CODE_ATTEMPTS = 10
SOLE_ADMIN_MESSAGE = "Cannot leave group as the only admin. Promote another member to admin first."


def generate_access_code(length: int | None = None) -> str:
    """Random uppercase alphanumeric access code."""
    length = length or settings.access_code_length
    return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


def get_group_by_access_code(db: Session, access_code: str) -> Group | None:
    return db.execute(select(Group).where(Group.access_code == access_code.upper())).scalar_one_or_none()


def _unique_access_code(db: Session) -> str:
    for _ in range(ACCESS_CODE_ATTEMPTS):
        code = generate_access_code()
        if get_group_by_access_code(db, code) is None:
            return code
    raise RuntimeError("Unable to generate unique access code")


def create_group(db: Session, creator: User, data: GroupCreateRequest) -> tuple[Group, GroupMembership]:
    """Create a group; the creator becomes its first admin."""
    logger.info("Group creation attempt by user=%s", creator.username)
    group = Group(
        name=data.name,
        description=data.description,
        access_code=_unique_access_code(db),
        created_by=creator.id,
        max_members=data.max_members or settings.default_max_members,
    )
    db.add(group)
    db.flush()
    membership = GroupMembership(user_id=creator.id, group_id=group.id, role=ROLE_ADMIN)
    db.add(membership)
    db.commit()
    db.refresh(group)
    db.refresh(membership)
    logger.info("Group created: %s (%s)", group.name, group.access_code)
    return group, membership


def join_group(db: Session, user: User, access_code: str) -> tuple[Group, GroupMembership]:
    """Join an active group by access code, reactivating a past membership if any."""
    logger.info("Group join attempt by user=%s", user.username)
    group = get_group_by_access_code(db, access_code)
    if group is None or not group.is_active:
        raise NotFoundError("Invalid access code")

    membership = db.execute(
        select(GroupMembership).where(
            GroupMembership.user_id == user.id,
            GroupMembership.group_id == group.id,
        )
    ).scalar_one_or_none()
    if membership is not None and membership.is_active:
        raise ConflictError("You are already a member of this group")

    if count_active_members(db, group.id) >= group.max_members:
        raise ConflictError("This group is full")

    # a group left empty by its last admin is handed to whoever joins next
    role = ROLE_MEMBER if count_active_members(db, group.id, role=ROLE_ADMIN) else ROLE_ADMIN
    if membership is None:
        membership = GroupMembership(user_id=user.id, group_id=group.id, role=role)
        db.add(membership)
    else:
        membership.is_active = True
        membership.role = role
        membership.joined_at = func.now()
    db.commit()
    db.refresh(membership)
    logger.info("User %s joined group %s", user.username, group.name)
    return group, membership


def get_active_group(db: Session, group_id: int) -> Group:
    group = db.get(Group, group_id)
    if group is None or not group.is_active:
        raise NotFoundError("Group not found")
    return group


def get_group_for_member(db: Session, user: User, group_id: int) -> tuple[Group, GroupMembership]:
    membership = get_active_membership(db, user.id, group_id)
    if membership is None:
        raise ForbiddenError("You are not a member of this group")
    return get_active_group(db, group_id), membership


def list_user_memberships(db: Session, user: User) -> list[tuple[GroupMembership, Group]]:
    """User's active memberships in active groups, most recently joined first."""
    rows = db.execute(
        select(GroupMembership, Group)
        .join(Group, Group.id == GroupMembership.group_id)
        .where(
            GroupMembership.user_id == user.id,
            GroupMembership.is_active.is_(True),
            Group.is_active.is_(True),
        )
        .order_by(GroupMembership.joined_at.desc(), GroupMembership.id.desc())
    ).all()
    return [(m, g) for m, g in rows]


def list_active_members(db: Session, group_id: int) -> list[tuple[GroupMembership, User]]:
    """Active members, admins first, then by join order."""
    admin_first = case((GroupMembership.role == ROLE_ADMIN, 0), else_=1)
    rows = db.execute(
        select(GroupMembership, User)
        .join(User, User.id == GroupMembership.user_id)
        .where(GroupMembership.group_id == group_id, GroupMembership.is_active.is_(True))
        .order_by(admin_first, GroupMembership.joined_at.asc(), GroupMembership.id.asc())
    ).all()
    return [(m, u) for m, u in rows]


def update_group(db: Session, user: User, group_id: int, data: GroupUpdateRequest) -> tuple[Group, GroupMembership]:
    """Admin-only edit of name, description and member cap."""
    membership = assert_group_admin(db, user.id, group_id, "Only group admins can update group settings")
    group = get_active_group(db, group_id)

    if data.max_members is not None:
        current = count_active_members(db, group_id)
        if data.max_members < current:
            raise ValidationError(f"Cannot set max members below current member count ({current})")
        group.max_members = data.max_members
    if data.name:
        group.name = data.name
    if data.description is not None:
        group.description = data.description

    db.commit()
    db.refresh(group)
    logger.info("Group updated by %s: %s", user.username, group.name)
    return group, membership


def leave_group(db: Session, user: User, group_id: int) -> None:
    """Soft-leave a group. The last admin cannot leave while others remain."""
    membership = get_active_membership(db, user.id, group_id)
    if membership is None:
        raise NotFoundError("You are not a member of this group")

    ensure_admin_remains(db, membership, SOLE_ADMIN_MESSAGE, allow_if_alone=True)

    membership.is_active = False
    db.commit()
    logger.info("User %s left group %s", user.username, group_id)


def set_member_role(db: Session, user: User, group_id: int, member_id: int, role: str) -> GroupMembership:
    """Admin-only role change for another active member."""
    assert_group_admin(db, user.id, group_id, "Only group admins can change member roles")
    get_active_group(db, group_id)

    target = get_active_membership(db, member_id, group_id)
    if target is None:
        raise NotFoundError("Member not found")
    if role == ROLE_MEMBER:
        ensure_admin_remains(db, target, "Cannot demote the only admin of the group")

    target.role = role
    db.commit()
    db.refresh(target)
    logger.info("User %s set role of member %s in group %s to %s", user.username, member_id, group_id, role)
    return target


def deactivate_group(db: Session, user: User, group_id: int) -> None:
    """Admin-only soft deactivation. Memberships and check-ins are kept."""
    assert_group_admin(db, user.id, group_id, "Only group admins can deactivate the group")
    group = get_active_group(db, group_id)
    group.is_active = False
    db.commit()
    logger.info("Group %s deactivated by %s", group.name, user.username)
