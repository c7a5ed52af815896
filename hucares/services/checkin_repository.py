"""Check-in queries.

Query shapes over the ``check_ins`` table. Check-ins are immutable once
stored, so there is no update or delete.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from hucares.models.check_in import CheckIn


def find_checkin(db: Session, user_id: int, group_id: int, week_start_date: date) -> CheckIn | None:
    """The user's check-in for a group-week, if any."""
    return db.execute(
        select(CheckIn).where(
            CheckIn.user_id == user_id,
            CheckIn.group_id == group_id,
            CheckIn.week_start_date == week_start_date,
        )
    ).scalar_one_or_none()


def find_group_week_checkins(db: Session, group_id: int, week_start_date: date) -> list[CheckIn]:
    """All check-ins for a group-week, newest submission first."""
    result = db.execute(
        select(CheckIn)
        .where(CheckIn.group_id == group_id, CheckIn.week_start_date == week_start_date)
        .order_by(desc(CheckIn.submitted_at), desc(CheckIn.id))
    )
    return list(result.scalars().all())


def find_checkins_for_groups_week(db: Session, group_ids: Sequence[int], week_start_date: date) -> list[CheckIn]:
    """Check-ins across several groups for one week, newest submission first."""
    if not group_ids:
        return []
    result = db.execute(
        select(CheckIn)
        .where(CheckIn.group_id.in_(group_ids), CheckIn.week_start_date == week_start_date)
        .order_by(desc(CheckIn.submitted_at), desc(CheckIn.id))
    )
    return list(result.scalars().all())


def count_checkins(
    db: Session,
    user_id: int | None = None,
    group_id: int | None = None,
    week_start_date: date | None = None,
) -> int:
    """Count check-ins matching the given filters."""
    stmt = select(func.count()).select_from(CheckIn)
    if user_id is not None:
        stmt = stmt.where(CheckIn.user_id == user_id)
    if group_id is not None:
        stmt = stmt.where(CheckIn.group_id == group_id)
    if week_start_date is not None:
        stmt = stmt.where(CheckIn.week_start_date == week_start_date)
    return db.execute(stmt).scalar_one()


def find_user_checkins(
    db: Session,
    user_id: int,
    group_id: int | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[CheckIn], int]:
    """A user's check-ins, latest week first, with the unpaginated total.

    Callers filtering by group must have checked membership already.
    """
    stmt = select(CheckIn).where(CheckIn.user_id == user_id)
    if group_id is not None:
        stmt = stmt.where(CheckIn.group_id == group_id)
    stmt = stmt.order_by(desc(CheckIn.week_start_date), desc(CheckIn.id)).limit(limit).offset(offset)
    checkins = list(db.execute(stmt).scalars().all())
    return checkins, count_checkins(db, user_id=user_id, group_id=group_id)


def find_group_checkins(
    db: Session,
    group_id: int,
    week_start_date: date | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[CheckIn], int]:
    """A group's check-ins, latest week then latest submission first."""
    stmt = select(CheckIn).where(CheckIn.group_id == group_id)
    if week_start_date is not None:
        stmt = stmt.where(CheckIn.week_start_date == week_start_date)
    stmt = (
        stmt.order_by(desc(CheckIn.week_start_date), desc(CheckIn.submitted_at), desc(CheckIn.id))
        .limit(limit)
        .offset(offset)
    )
    checkins = list(db.execute(stmt).scalars().all())
    return checkins, count_checkins(db, group_id=group_id, week_start_date=week_start_date)


def find_recent_group_checkins(db: Session, group_id: int, limit: int = 10) -> list[CheckIn]:
    checkins, _ = find_group_checkins(db, group_id, limit=limit)
    return checkins


def create_checkin(
    db: Session,
    *,
    user_id: int,
    group_id: int,
    week_start_date: date,
    productive_score: int,
    satisfied_score: int,
    body_score: int,
    care_score: int,
    hucares_score: int,
    submitted_at: datetime,
) -> CheckIn:
    """Insert a check-in and commit. IntegrityError propagates on duplicates."""
    checkin = CheckIn(
        user_id=user_id,
        group_id=group_id,
        week_start_date=week_start_date,
        productive_score=productive_score,
        satisfied_score=satisfied_score,
        body_score=body_score,
        care_score=care_score,
        hucares_score=hucares_score,
        submitted_at=submitted_at,
    )
    db.add(checkin)
    db.commit()
    db.refresh(checkin)
    return checkin
