"""Service-level check-in tests that need direct database access."""

from datetime import date, datetime, timezone

import pytest

from hucares.core.errors import ConflictError, ForbiddenError, ValidationError
from hucares.core.security import hash_password
from hucares.models.check_in import CheckIn
from hucares.models.group import Group
from hucares.models.group_membership import ROLE_ADMIN, ROLE_MEMBER, GroupMembership
from hucares.models.user import User
from hucares.schemas.check_in import CheckinSubmitRequest
from hucares.services import checkin_repository
from hucares.services.checkin_service import parse_week_start_date, submit_checkin, validate_submission
from hucares.services.membership_service import assert_active_member, ensure_admin_remains

NOW = datetime(2024, 6, 5, 10, 0, tzinfo=timezone.utc)
WEEK = date(2024, 6, 3)


def _user(db, username):
    user = User(username=username, password_hash=hash_password("Secret123"))
    db.add(user)
    db.commit()
    return user


def _group(db, creator, code="ABCD1234", is_active=True):
    group = Group(name="Tuesday Crew", access_code=code, created_by=creator.id, is_active=is_active)
    db.add(group)
    db.commit()
    return group


def _member(db, user, group, role=ROLE_MEMBER, is_active=True):
    membership = GroupMembership(user_id=user.id, group_id=group.id, role=role, is_active=is_active)
    db.add(membership)
    db.commit()
    return membership


def _request(group_id, scores=(8, 7, 6, 9), week=None):
    productive, satisfied, body, care = scores
    return CheckinSubmitRequest(
        group_id=group_id,
        productive_score=productive,
        satisfied_score=satisfied,
        body_score=body,
        care_score=care,
        week_start_date=week,
    )


def test_submit_checkin_stores_score_and_week(db):
    alice = _user(db, "alice")
    group = _group(db, alice)
    _member(db, alice, group, role=ROLE_ADMIN)

    result = submit_checkin(db, alice, _request(group.id), NOW)

    assert result.checkin.hucares_score == 12
    assert result.checkin.week_start_date == WEEK
    stored = checkin_repository.find_checkin(db, alice.id, group.id, WEEK)
    assert stored.submitted_at is not None
    assert stored.hucares_score == 12


def test_concurrent_insert_becomes_conflict(db, monkeypatch):
    """The unique constraint catches a duplicate the pre-insert lookup missed."""
    alice = _user(db, "alice")
    group = _group(db, alice)
    _member(db, alice, group, role=ROLE_ADMIN)
    winner = CheckIn(
        user_id=alice.id,
        group_id=group.id,
        week_start_date=WEEK,
        productive_score=5,
        satisfied_score=5,
        body_score=5,
        care_score=5,
        hucares_score=10,
        submitted_at=NOW,
    )
    db.add(winner)
    db.commit()
    winner_id = winner.id

    real_find = checkin_repository.find_checkin
    calls = []

    def racing_find(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real_find(*args, **kwargs)

    monkeypatch.setattr(checkin_repository, "find_checkin", racing_find)

    with pytest.raises(ConflictError) as exc_info:
        submit_checkin(db, alice, _request(group.id), NOW)

    assert exc_info.value.details["existing_checkin"]["id"] == winner_id
    assert exc_info.value.details["existing_checkin"]["hucares_score"] == 10
    assert len(calls) == 2
    assert checkin_repository.count_checkins(db, user_id=alice.id, group_id=group.id) == 1


def test_assert_active_member_rejects_inactive_membership(db):
    alice = _user(db, "alice")
    group = _group(db, alice)
    _member(db, alice, group, is_active=False)

    with pytest.raises(ForbiddenError):
        assert_active_member(db, alice.id, group.id)


def test_assert_active_member_rejects_inactive_group(db):
    alice = _user(db, "alice")
    group = _group(db, alice, is_active=False)
    _member(db, alice, group)

    with pytest.raises(ForbiddenError):
        assert_active_member(db, alice.id, group.id)


def test_assert_active_member_returns_membership(db):
    alice = _user(db, "alice")
    group = _group(db, alice)
    membership = _member(db, alice, group)

    assert assert_active_member(db, alice.id, group.id).id == membership.id


def test_ensure_admin_remains(db):
    alice = _user(db, "alice")
    bob = _user(db, "bob")
    group = _group(db, alice)
    admin = _member(db, alice, group, role=ROLE_ADMIN)

    # alone in the group: may leave, may not stop being admin
    ensure_admin_remains(db, admin, "blocked", allow_if_alone=True)
    with pytest.raises(ValidationError):
        ensure_admin_remains(db, admin, "blocked")

    member = _member(db, bob, group)
    with pytest.raises(ValidationError):
        ensure_admin_remains(db, admin, "blocked", allow_if_alone=True)
    ensure_admin_remains(db, member, "blocked")


def test_validate_submission_accepts_datetime_week():
    assert validate_submission(_request(1, week="2024-06-03T00:00:00")).week_start_date == WEEK
    assert validate_submission(_request(1, week="2024-06-03T00:00:00Z")).week_start_date == WEEK
    assert validate_submission(_request(1)).week_start_date is None


def test_validate_submission_accepts_numeric_strings():
    valid = validate_submission(_request("3", scores=("8", 7, " 6 ", 9)))
    assert valid.group_id == 3
    assert (valid.productive_score, valid.satisfied_score, valid.body_score, valid.care_score) == (8, 7, 6, 9)


def test_validate_submission_collects_errors():
    with pytest.raises(ValidationError) as exc_info:
        validate_submission(_request(None, scores=(11, 5, 0, 5), week="03/06/2024"))
    assert exc_info.value.details["messages"] == [
        "Group ID is required",
        "Productive score must be between 1 and 10",
        "Body score must be between 1 and 10",
        "Week start date must be a valid ISO date",
    ]


def test_validate_submission_reports_type_and_range_errors_together():
    with pytest.raises(ValidationError) as exc_info:
        validate_submission(_request("abc", scores=("abc", 11, 5.5, [5]), week=20240603))
    assert exc_info.value.details["messages"] == [
        "Group ID must be an integer",
        "Productive score must be between 1 and 10",
        "Satisfied score must be between 1 and 10",
        "Body score must be between 1 and 10",
        "Care score must be between 1 and 10",
        "Week start date must be a valid ISO date",
    ]


@pytest.mark.parametrize("flag", [True, False])
def test_validate_submission_rejects_booleans(flag):
    with pytest.raises(ValidationError) as exc_info:
        validate_submission(_request(1, scores=(flag, 5, 5, 5)))
    assert exc_info.value.details["messages"] == ["Productive score must be between 1 and 10"]


def test_parse_week_start_date():
    assert parse_week_start_date("2024-06-03") == WEEK
    assert parse_week_start_date("2024-06-03T23:30:00z") == WEEK
    with pytest.raises(ValueError):
        parse_week_start_date("next monday")
