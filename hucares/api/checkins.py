"""Weekly check-ins API."""

from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hucares.core.deps import get_current_user, get_now
from hucares.db.session import get_db
from hucares.models.user import User
from hucares.schemas.check_in import (
    CheckinSubmitRequest,
    CurrentWeekSummary,
    GroupCheckinList,
    SubmitCheckinResponse,
    UserCheckinList,
)
from hucares.services.checkin_service import (
    current_week_summary,
    list_group_checkins,
    list_user_checkins,
    submit_checkin,
)

router = APIRouter(prefix="/checkins", tags=["checkins"])


@router.post("", response_model=SubmitCheckinResponse, status_code=status.HTTP_201_CREATED)
def create_checkin(
    data: CheckinSubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """Submit this week's check-in for a group. One per user, group and week."""
    return submit_checkin(db, current_user, data, now)


@router.get("", response_model=UserCheckinList)
def get_my_checkins(
    group_id: int | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Current user's check-ins, latest week first."""
    return list_user_checkins(db, current_user, group_id, limit, offset)


@router.get("/current", response_model=CurrentWeekSummary)
def get_current_week(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """This week's status across all of the user's groups."""
    return current_week_summary(db, current_user, now)


@router.get("/group/{group_id}", response_model=GroupCheckinList)
def get_group_checkins(
    group_id: int,
    week_start_date: date | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All members' check-ins for a group, optionally one week only."""
    return list_group_checkins(db, current_user, group_id, week_start_date, limit, offset)
