"""Weekly check-in workflows.

Submission runs as an ordered list of gates: input validation, membership
guard, week resolution, duplicate check, scoring, insert, then aggregation
over the group-week. Any gate can stop the request with a domain error.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hucares.core.errors import ConflictError, ForbiddenError, ValidationError
from hucares.models.check_in import CheckIn
from hucares.models.group import Group
from hucares.models.group_membership import GroupMembership
from hucares.models.user import User
from hucares.schemas.check_in import (
    CheckinResponse,
    CheckinSubmitRequest,
    CurrentWeekGroup,
    CurrentWeekSummary,
    ExistingCheckin,
    GroupCheckinList,
    GroupStats,
    SubmitCheckinResponse,
    UserCheckinList,
    WeekCheckinEntry,
)
from hucares.schemas.common import GroupSummary, Pagination, UserSummary
from hucares.services import checkin_repository as repo
from hucares.services.membership_service import assert_active_member, get_active_membership
from hucares.services.scoring import MAX_RATING, MIN_RATING, aggregate_scores, calculate_hucares_score, week_start

logger = logging.getLogger(__name__)

RECENT_CHECKINS_PER_GROUP = 5

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

_SCORE_FIELDS = (
    ("productive_score", "Productive score"),
    ("satisfied_score", "Satisfied score"),
    ("body_score", "Body score"),
    ("care_score", "Care score"),
)


@dataclass(frozen=True)
class ValidSubmission:
    group_id: int
    productive_score: int
    satisfied_score: int
    body_score: int
    care_score: int
    week_start_date: date | None


def _as_int(value: Any) -> int | None:
    """Integer value of a JSON number or numeric string; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def parse_week_start_date(value: str) -> date:
    """Parse an ISO date (or datetime, keeping its date part)."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value).date()


def _as_week(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return parse_week_start_date(value)
    except ValueError:
        return None


def validate_submission(data: CheckinSubmitRequest) -> ValidSubmission:
    """Check every submission rule and report all violations at once."""
    errors: list[str] = []

    group_id = _as_int(data.group_id)
    if data.group_id is None or data.group_id == "":
        errors.append("Group ID is required")
    elif group_id is None:
        errors.append("Group ID must be an integer")

    scores: dict[str, int] = {}
    for field, label in _SCORE_FIELDS:
        value = _as_int(getattr(data, field))
        if value is None or not MIN_RATING <= value <= MAX_RATING:
            errors.append(f"{label} must be between {MIN_RATING} and {MAX_RATING}")
        else:
            scores[field] = value

    explicit_week: date | None = None
    if data.week_start_date is not None:
        explicit_week = _as_week(data.week_start_date)
        if explicit_week is None:
            errors.append("Week start date must be a valid ISO date")

    if errors:
        raise ValidationError(errors)
    return ValidSubmission(group_id=group_id, week_start_date=explicit_week, **scores)


def group_stats(checkins: Iterable[CheckIn]) -> GroupStats:
    agg = aggregate_scores(c.hucares_score for c in checkins)
    return GroupStats(
        total_checkins=agg.count,
        average_score=agg.average,
        highest_score=agg.highest,
        lowest_score=agg.lowest,
    )


def _user_summaries(db: Session, user_ids: Iterable[int]) -> dict[int, UserSummary]:
    ids = set(user_ids)
    if not ids:
        return {}
    users = db.execute(select(User).where(User.id.in_(ids))).scalars().all()
    return {u.id: UserSummary.model_validate(u) for u in users}


def _group_summaries(db: Session, group_ids: Iterable[int]) -> dict[int, GroupSummary]:
    ids = set(group_ids)
    if not ids:
        return {}
    groups = db.execute(select(Group).where(Group.id.in_(ids))).scalars().all()
    return {g.id: GroupSummary.model_validate(g) for g in groups}


def to_checkin_response(
    checkin: CheckIn,
    user: UserSummary | None = None,
    group: GroupSummary | None = None,
) -> CheckinResponse:
    return CheckinResponse(
        id=checkin.id,
        week_start_date=checkin.week_start_date,
        productive_score=checkin.productive_score,
        satisfied_score=checkin.satisfied_score,
        body_score=checkin.body_score,
        care_score=checkin.care_score,
        hucares_score=checkin.hucares_score,
        submitted_at=checkin.submitted_at,
        user=user,
        group=group,
    )


def checkin_responses_with_users(db: Session, checkins: list[CheckIn]) -> list[CheckinResponse]:
    users = _user_summaries(db, (c.user_id for c in checkins))
    return [to_checkin_response(c, user=users.get(c.user_id)) for c in checkins]


def week_entries(db: Session, checkins: list[CheckIn]) -> list[WeekCheckinEntry]:
    """Compact (id, user, score, submitted_at) rows, keeping input order."""
    users = _user_summaries(db, (c.user_id for c in checkins))
    return [
        WeekCheckinEntry(
            id=c.id,
            user=users.get(c.user_id) or UserSummary(id=c.user_id, username=""),
            hucares_score=c.hucares_score,
            submitted_at=c.submitted_at,
        )
        for c in checkins
    ]


def _conflict(existing: CheckIn) -> ConflictError:
    return ConflictError(
        "You have already submitted a check-in for this week in this group",
        details={"existing_checkin": ExistingCheckin.model_validate(existing).model_dump(mode="json")},
    )


def submit_checkin(db: Session, user: User, data: CheckinSubmitRequest, now: datetime) -> SubmitCheckinResponse:
    """Record the user's weekly check-in for a group and return the group-week view."""
    valid = validate_submission(data)
    group_id = valid.group_id

    logger.info("Check-in submission by user=%s for group=%s", user.username, group_id)

    assert_active_member(db, user.id, group_id)

    week = valid.week_start_date if valid.week_start_date is not None else week_start(now)

    existing = repo.find_checkin(db, user.id, group_id, week)
    if existing is not None:
        raise _conflict(existing)

    score = calculate_hucares_score(
        valid.productive_score, valid.satisfied_score, valid.body_score, valid.care_score
    )

    try:
        checkin = repo.create_checkin(
            db,
            user_id=user.id,
            group_id=group_id,
            week_start_date=week,
            productive_score=valid.productive_score,
            satisfied_score=valid.satisfied_score,
            body_score=valid.body_score,
            care_score=valid.care_score,
            hucares_score=score,
            submitted_at=now,
        )
    except IntegrityError:
        # A concurrent request for the same user/group/week won the insert
        db.rollback()
        existing = repo.find_checkin(db, user.id, group_id, week)
        if existing is None:
            raise
        logger.info("Duplicate check-in rejected by constraint: user=%s group=%s week=%s", user.username, group_id, week)
        raise _conflict(existing)

    group = db.get(Group, group_id)
    logger.info("Check-in submitted: score=%s by %s in %s", score, user.username, group.name)

    weekly = repo.find_group_week_checkins(db, group_id, week)
    return SubmitCheckinResponse(
        checkin=to_checkin_response(
            checkin,
            user=UserSummary.model_validate(user),
            group=GroupSummary.model_validate(group),
        ),
        group_stats=group_stats(weekly),
        weekly_checkins=week_entries(db, weekly),
    )


def list_user_checkins(
    db: Session,
    user: User,
    group_id: int | None = None,
    limit: int = 20,
    offset: int = 0,
) -> UserCheckinList:
    """The user's own check-in history, optionally limited to one group."""
    if group_id is not None and get_active_membership(db, user.id, group_id) is None:
        raise ForbiddenError("You are not a member of this group")

    checkins, total = repo.find_user_checkins(db, user.id, group_id, limit, offset)
    groups = _group_summaries(db, (c.group_id for c in checkins))
    return UserCheckinList(
        checkins=[to_checkin_response(c, group=groups.get(c.group_id)) for c in checkins],
        pagination=Pagination.build(total, limit, offset),
    )


def list_group_checkins(
    db: Session,
    user: User,
    group_id: int,
    week_start_date: date | None = None,
    limit: int = 50,
    offset: int = 0,
) -> GroupCheckinList:
    """Every member's check-ins for a group the user belongs to."""
    assert_active_member(db, user.id, group_id)
    group = db.get(Group, group_id)

    checkins, total = repo.find_group_checkins(db, group_id, week_start_date, limit, offset)
    return GroupCheckinList(
        group_name=group.name,
        checkins=checkin_responses_with_users(db, checkins),
        pagination=Pagination.build(total, limit, offset),
    )


def current_week_summary(db: Session, user: User, now: datetime) -> CurrentWeekSummary:
    """Per-group status of the current week across all of the user's groups."""
    week = week_start(now)

    memberships = db.execute(
        select(GroupMembership, Group)
        .join(Group, Group.id == GroupMembership.group_id)
        .where(
            GroupMembership.user_id == user.id,
            GroupMembership.is_active.is_(True),
            Group.is_active.is_(True),
        )
        .order_by(GroupMembership.joined_at.desc(), GroupMembership.id.desc())
    ).all()
    groups = [group for _, group in memberships]

    checkins = repo.find_checkins_for_groups_week(db, [g.id for g in groups], week)

    summaries = []
    for group in groups:
        group_checkins = [c for c in checkins if c.group_id == group.id]
        mine = next((c for c in group_checkins if c.user_id == user.id), None)
        summaries.append(
            CurrentWeekGroup(
                group=GroupSummary.model_validate(group),
                user_submitted=mine is not None,
                user_checkin=ExistingCheckin.model_validate(mine) if mine else None,
                group_stats=group_stats(group_checkins),
                recent_checkins=week_entries(db, group_checkins[:RECENT_CHECKINS_PER_GROUP]),
            )
        )

    return CurrentWeekSummary(
        week_start_date=week,
        total_groups=len(groups),
        submitted_count=sum(1 for s in summaries if s.user_submitted),
        groups=summaries,
    )
