from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime


# Largest possible days_until: a window this wide keeps every anchor.
FULL_YEAR_WINDOW_DAYS = 365


class InvalidArgument(ValueError):
    pass


@dataclass(frozen=True)
class AnchorDate:
    anchor_id: int
    month: int
    day: int

    @classmethod
    def from_date(cls, anchor_id: int, value: date) -> "AnchorDate":
        return cls(anchor_id=anchor_id, month=value.month, day=value.day)


@dataclass(frozen=True)
class NextOccurrence:
    anchor_id: int
    occurrence_date: date
    days_until: int


def _as_day(reference: date) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def validate_month_day(month: int, day: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidArgument(f"Invalid month: {month}")
    # 2000 is a leap year, so Feb 29 is accepted here.
    if not 1 <= day <= calendar.monthrange(2000, month)[1]:
        raise InvalidArgument(f"Invalid month/day combination: {month:02d}-{day:02d}")


def occurrence_in_year(month: int, day: int, year: int) -> date:
    if month == 2 and day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, month, day)


def next_occurrence(month: int, day: int, reference: date) -> date:
    reference = _as_day(reference)
    candidate = occurrence_in_year(month, day, reference.year)
    if candidate < reference:
        candidate = occurrence_in_year(month, day, reference.year + 1)
    return candidate


def compute_upcoming(
    reference: date,
    window_days: int,
    anchors: Iterable[AnchorDate],
) -> list[NextOccurrence]:
    """Return the anchors whose next occurrence falls within ``window_days`` of ``reference``.

    The window is inclusive on both ends: an occurrence on ``reference`` itself has
    ``days_until == 0`` and one exactly ``window_days`` out is kept. Feb 29 anchors
    land on Feb 28 in non-leap years. Results are ordered by ``days_until``; anchors
    with the same value keep their input order.
    """
    if window_days < 0:
        raise InvalidArgument(f"window_days must be non-negative, got {window_days}")

    today = _as_day(reference)
    results: list[NextOccurrence] = []
    for anchor in anchors:
        validate_month_day(anchor.month, anchor.day)
        occurrence = next_occurrence(anchor.month, anchor.day, today)
        days_until = (occurrence - today).days
        if days_until <= window_days:
            results.append(
                NextOccurrence(
                    anchor_id=anchor.anchor_id,
                    occurrence_date=occurrence,
                    days_until=days_until,
                )
            )

    # list.sort is stable, which gives the insertion-order tie-break.
    results.sort(key=lambda item: item.days_until)
    return results
