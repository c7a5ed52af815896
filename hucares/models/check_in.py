"""Weekly check-in model."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from hucares.db.base import Base


class CheckIn(Base):
    """One user's weekly ratings for one group. Never updated after insert."""

    __tablename__ = "check_ins"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", "week_start_date", name="uq_check_in_user_group_week"),
        CheckConstraint("productive_score BETWEEN 1 AND 10", name="productive_range"),
        CheckConstraint("satisfied_score BETWEEN 1 AND 10", name="satisfied_range"),
        CheckConstraint("body_score BETWEEN 1 AND 10", name="body_range"),
        CheckConstraint("care_score BETWEEN 1 AND 10", name="care_range"),
        Index("ix_check_ins_group_week", "group_id", "week_start_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    productive_score: Mapped[int] = mapped_column(Integer, nullable=False)
    satisfied_score: Mapped[int] = mapped_column(Integer, nullable=False)
    body_score: Mapped[int] = mapped_column(Integer, nullable=False)
    care_score: Mapped[int] = mapped_column(Integer, nullable=False)
    hucares_score: Mapped[int] = mapped_column(Integer, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
