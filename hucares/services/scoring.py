"""Week buckets, HuCares score and group aggregates.

Pure functions with no database access, shared by the check-in workflow and
the group views.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from zoneinfo import ZoneInfo

from hucares.core.config import settings

MIN_RATING = 1
MAX_RATING = 10


@dataclass(frozen=True)
class ScoreAggregate:
    """Statistics over the HuCares scores of one group-week."""

    count: int
    average: float
    highest: int
    lowest: int


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def week_timezone() -> tzinfo:
    """Timezone in which week buckets are computed."""
    return _zone(settings.week_timezone)


def week_start(moment: datetime | date, tz: tzinfo | None = None) -> date:
    """
    Return the Monday of the ISO week containing ``moment``.

    Aware datetimes are converted to ``tz`` first; naive datetimes are taken
    as wall-clock time in ``tz``; plain dates are already local. Sunday
    belongs to the week that started the preceding Monday.
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(tz or week_timezone())
        day = moment.date()
    else:
        day = moment
    return day - timedelta(days=day.weekday())


def calculate_hucares_score(productive: int, satisfied: int, body: int, care: int) -> int:
    """HuCares score: productive + satisfied + body - care. Inputs are not validated here."""
    return productive + satisfied + body - care


def round_half_up(value: Decimal, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(value.quantize(quantum, rounding=ROUND_HALF_UP))


def aggregate_scores(scores: Iterable[int]) -> ScoreAggregate:
    """Count, average (2 dp, half up), highest and lowest. All zeros when empty."""
    values = list(scores)
    if not values:
        return ScoreAggregate(count=0, average=0.0, highest=0, lowest=0)
    average = round_half_up(Decimal(sum(values)) / Decimal(len(values)))
    return ScoreAggregate(
        count=len(values),
        average=average,
        highest=max(values),
        lowest=min(values),
    )
