from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
import logging

from sqlalchemy.orm import Session

from app.models import Birthday
from app.services.birthdays_service import list_birthdays_for_groups
from app.services.groups_service import group_ids_for_user
from app.services.upcoming_engine import (
    FULL_YEAR_WINDOW_DAYS,
    AnchorDate,
    NextOccurrence,
    compute_upcoming,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpcomingBirthdayView:
    birthday_id: int
    name: str
    group_id: int
    birth_date: date
    next_occurrence: date
    days_until: int
    label: str


@dataclass(frozen=True)
class StatsView:
    total_birthdays: int
    total_groups: int
    upcoming_birthdays: int


def days_until_label(days: int) -> str:
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    return f"in {days} days"


def _to_anchors(birthdays: Sequence[Birthday]) -> list[AnchorDate]:
    return [AnchorDate.from_date(birthday.id, birthday.birth_date) for birthday in birthdays]


def _to_view(birthday: Birthday, occurrence: NextOccurrence) -> UpcomingBirthdayView:
    return UpcomingBirthdayView(
        birthday_id=birthday.id,
        name=birthday.name,
        group_id=birthday.group_id,
        birth_date=birthday.birth_date,
        next_occurrence=occurrence.occurrence_date,
        days_until=occurrence.days_until,
        label=days_until_label(occurrence.days_until),
    )


def upcoming_from_birthdays(
    birthdays: Sequence[Birthday],
    *,
    today: date,
    window_days: int,
) -> list[UpcomingBirthdayView]:
    by_id = {birthday.id: birthday for birthday in birthdays}
    occurrences = compute_upcoming(today, window_days, _to_anchors(birthdays))
    return [_to_view(by_id[occurrence.anchor_id], occurrence) for occurrence in occurrences]


def annotate_birthdays(birthdays: Sequence[Birthday], *, today: date) -> list[UpcomingBirthdayView]:
    """Attach next-occurrence details to every birthday, keeping the caller's order."""
    views = {
        view.birthday_id: view
        for view in upcoming_from_birthdays(birthdays, today=today, window_days=FULL_YEAR_WINDOW_DAYS)
    }
    return [views[birthday.id] for birthday in birthdays]


def list_upcoming_birthdays(
    session: Session,
    *,
    user_id: int,
    today: date,
    window_days: int,
) -> list[UpcomingBirthdayView]:
    group_ids = group_ids_for_user(session, user_id)
    birthdays = list_birthdays_for_groups(session, group_ids)
    upcoming = upcoming_from_birthdays(birthdays, today=today, window_days=window_days)
    logger.info(
        "Upcoming birthdays computed user_id=%s today=%s window_days=%s groups=%s candidates=%s matched=%s",
        user_id,
        today,
        window_days,
        len(group_ids),
        len(birthdays),
        len(upcoming),
    )
    return upcoming


def get_stats(session: Session, *, user_id: int, today: date, window_days: int) -> StatsView:
    group_ids = group_ids_for_user(session, user_id)
    birthdays = list_birthdays_for_groups(session, group_ids)
    upcoming = upcoming_from_birthdays(birthdays, today=today, window_days=window_days)
    return StatsView(
        total_birthdays=len(birthdays),
        total_groups=len(group_ids),
        upcoming_birthdays=len(upcoming),
    )
