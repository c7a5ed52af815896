"""Check-in schemas."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel

from hucares.schemas.common import GroupSummary, Pagination, UserSummary, UtcDatetime


class CheckinSubmitRequest(BaseModel):
    """Weekly ratings, taken as sent.

    The service type- and range-checks every field so all violations are
    reported together.
    """

    group_id: Any = None
    productive_score: Any = None
    satisfied_score: Any = None
    body_score: Any = None
    care_score: Any = None
    week_start_date: Any = None


class CheckinResponse(BaseModel):
    id: int
    week_start_date: date
    productive_score: int
    satisfied_score: int
    body_score: int
    care_score: int
    hucares_score: int
    submitted_at: UtcDatetime
    user: UserSummary | None = None
    group: GroupSummary | None = None

    model_config = {"from_attributes": True}


class ExistingCheckin(BaseModel):
    """Enough of a stored check-in to show "already submitted: score X"."""

    id: int
    hucares_score: int
    submitted_at: UtcDatetime

    model_config = {"from_attributes": True}


class WeekCheckinEntry(BaseModel):
    id: int
    user: UserSummary
    hucares_score: int
    submitted_at: UtcDatetime


class GroupStats(BaseModel):
    total_checkins: int
    average_score: float
    highest_score: int
    lowest_score: int


class SubmitCheckinResponse(BaseModel):
    message: str = "Check-in submitted successfully"
    checkin: CheckinResponse
    group_stats: GroupStats
    weekly_checkins: list[WeekCheckinEntry]


class UserCheckinList(BaseModel):
    checkins: list[CheckinResponse]
    pagination: Pagination


class GroupCheckinList(BaseModel):
    group_name: str
    checkins: list[CheckinResponse]
    pagination: Pagination


class CurrentWeekGroup(BaseModel):
    group: GroupSummary
    user_submitted: bool
    user_checkin: ExistingCheckin | None = None
    group_stats: GroupStats
    recent_checkins: list[WeekCheckinEntry]


class CurrentWeekSummary(BaseModel):
    week_start_date: date
    total_groups: int
    submitted_count: int
    groups: list[CurrentWeekGroup]
