"""Group schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from hucares.schemas.check_in import CheckinResponse
from hucares.schemas.common import UserSummary


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    max_members: int | None = Field(default=None, ge=2, le=50)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class GroupUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    max_members: int | None = Field(default=None, ge=2, le=50)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class GroupJoinRequest(BaseModel):
    access_code: str = Field(min_length=6, max_length=10, pattern=r"^[A-Z0-9]+$")

    @field_validator("access_code", mode="before")
    @classmethod
    def _normalise(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class MemberRoleRequest(BaseModel):
    role: str = Field(..., pattern="^(ADMIN|MEMBER)$")


class MemberResponse(BaseModel):
    id: int
    username: str
    role: str
    joined_at: datetime


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str | None
    access_code: str
    max_members: int
    created_at: datetime
    creator: UserSummary | None = None
    user_role: str | None = None
    member_count: int | None = None
    joined_at: datetime | None = None


class GroupWithMembers(GroupResponse):
    members: list[MemberResponse] = []


class GroupDetail(GroupWithMembers):
    recent_checkins: list[CheckinResponse] = []


class GroupEnvelope(BaseModel):
    message: str | None = None
    group: GroupResponse


class GroupDetailEnvelope(BaseModel):
    group: GroupDetail


class GroupList(BaseModel):
    groups: list[GroupWithMembers]
    total_groups: int


class GroupMemberDetail(MemberResponse):
    email: str | None = None
    last_login_at: datetime | None = None
    is_current_user: bool = False


class GroupMemberList(BaseModel):
    members: list[GroupMemberDetail]
    total_members: int
    admin_count: int
