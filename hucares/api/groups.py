"""Groups API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hucares.core.deps import get_current_user
from hucares.db.session import get_db
from hucares.models.group import Group
from hucares.models.group_membership import ROLE_ADMIN, GroupMembership
from hucares.models.user import User
from hucares.schemas.common import MessageResponse, UserSummary
from hucares.schemas.group import (
    GroupCreateRequest,
    GroupDetail,
    GroupDetailEnvelope,
    GroupEnvelope,
    GroupJoinRequest,
    GroupList,
    GroupMemberDetail,
    GroupMemberList,
    GroupResponse,
    GroupUpdateRequest,
    GroupWithMembers,
    MemberResponse,
    MemberRoleRequest,
)
from hucares.services import checkin_repository
from hucares.services.checkin_service import checkin_responses_with_users
from hucares.services.group_service import (
    create_group,
    deactivate_group,
    get_group_for_member,
    join_group,
    leave_group,
    list_active_members,
    list_user_memberships,
    set_member_role,
    update_group,
)

router = APIRouter(prefix="/groups", tags=["groups"])

RECENT_GROUP_CHECKINS = 10


def _group_fields(db: Session, group: Group, membership: GroupMembership | None = None) -> dict:
    """Common group fields plus the creator and the caller's role."""
    creator = db.get(User, group.created_by)
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "access_code": group.access_code,
        "max_members": group.max_members,
        "created_at": group.created_at,
        "creator": UserSummary.model_validate(creator) if creator else None,
        "user_role": membership.role if membership else None,
        "joined_at": membership.joined_at if membership else None,
    }


def _members(db: Session, group_id: int) -> list[MemberResponse]:
    return [
        MemberResponse(id=user.id, username=user.username, role=m.role, joined_at=m.joined_at)
        for m, user in list_active_members(db, group_id)
    ]


@router.post("", response_model=GroupEnvelope, status_code=status.HTTP_201_CREATED)
def create(
    data: GroupCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a group. The creator becomes its admin."""
    group, membership = create_group(db, current_user, data)
    return GroupEnvelope(
        message="Group created successfully",
        group=GroupResponse(**_group_fields(db, group, membership), member_count=1),
    )


@router.get("", response_model=GroupList)
def list_groups(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Groups the current user belongs to, most recently joined first."""
    groups = []
    for membership, group in list_user_memberships(db, current_user):
        members = _members(db, group.id)
        groups.append(
            GroupWithMembers(**_group_fields(db, group, membership), member_count=len(members), members=members)
        )
    return GroupList(groups=groups, total_groups=len(groups))


@router.post("/join", response_model=GroupEnvelope)
def join(
    data: GroupJoinRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Join a group with its access code."""
    group, membership = join_group(db, current_user, data.access_code)
    return GroupEnvelope(
        message="Successfully joined group",
        group=GroupResponse(**_group_fields(db, group, membership), member_count=len(_members(db, group.id))),
    )


@router.get("/{group_id}", response_model=GroupDetailEnvelope)
def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Group details with members and recent check-ins."""
    group, membership = get_group_for_member(db, current_user, group_id)
    members = _members(db, group.id)
    recent = checkin_repository.find_recent_group_checkins(db, group.id, RECENT_GROUP_CHECKINS)
    return GroupDetailEnvelope(
        group=GroupDetail(
            **_group_fields(db, group, membership),
            member_count=len(members),
            members=members,
            recent_checkins=checkin_responses_with_users(db, recent),
        )
    )


@router.put("/{group_id}", response_model=GroupEnvelope)
def update(
    group_id: int,
    data: GroupUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Admins update name, description or member cap."""
    group, membership = update_group(db, current_user, group_id, data)
    return GroupEnvelope(
        message="Group updated successfully",
        group=GroupResponse(**_group_fields(db, group, membership), member_count=len(_members(db, group.id))),
    )


@router.delete("/{group_id}", response_model=MessageResponse)
def deactivate(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Admins deactivate the group. Nothing is deleted."""
    deactivate_group(db, current_user, group_id)
    return MessageResponse(message="Group deactivated successfully")


@router.delete("/{group_id}/leave", response_model=MessageResponse)
def leave(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    leave_group(db, current_user, group_id)
    return MessageResponse(message="Successfully left group")


@router.get("/{group_id}/members", response_model=GroupMemberList)
def members(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Active members, admins first."""
    get_group_for_member(db, current_user, group_id)
    out = [
        GroupMemberDetail(
            id=user.id,
            username=user.username,
            email=user.email,
            role=m.role,
            joined_at=m.joined_at,
            last_login_at=user.last_login_at,
            is_current_user=user.id == current_user.id,
        )
        for m, user in list_active_members(db, group_id)
    ]
    return GroupMemberList(
        members=out,
        total_members=len(out),
        admin_count=sum(1 for m in out if m.role == ROLE_ADMIN),
    )


@router.put("/{group_id}/members/{member_id}/role", response_model=MemberResponse)
def change_role(
    group_id: int,
    member_id: int,
    data: MemberRoleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Admins promote or demote a member."""
    membership = set_member_role(db, current_user, group_id, member_id, data.role)
    user = db.get(User, membership.user_id)
    return MemberResponse(id=user.id, username=user.username, role=membership.role, joined_at=membership.joined_at)
