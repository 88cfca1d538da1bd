from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Birthday, Group

logger = logging.getLogger(__name__)


class BirthdayValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CreateBirthdayInput:
    name: str
    birth_date: date
    group_id: int
    notes: str | None = None


@dataclass(frozen=True)
class UpdateBirthdayInput:
    name: str | None = None
    birth_date: date | None = None
    group_id: int | None = None
    notes: str | None = None


def _clean_name(name: str) -> str:
    clean = name.strip()
    if not clean:
        raise BirthdayValidationError("Name is required.")
    return clean


def _require_group(session: Session, group_id: int) -> None:
    if session.get(Group, group_id) is None:
        raise BirthdayValidationError(f"Group {group_id} not found")


def get_birthday(session: Session, birthday_id: int) -> Birthday | None:
    return session.get(Birthday, birthday_id)


def list_birthdays_for_group(session: Session, group_id: int) -> list[Birthday]:
    return list_birthdays_for_groups(session, [group_id])


def list_birthdays_for_groups(session: Session, group_ids: Sequence[int]) -> list[Birthday]:
    if not group_ids:
        return []
    # Ordered by id so upcoming ties resolve by record creation order.
    stmt = select(Birthday).where(Birthday.group_id.in_(list(group_ids))).order_by(Birthday.id.asc())
    return list(session.scalars(stmt).all())


def search_birthdays(session: Session, group_ids: Sequence[int], query: str | None) -> list[Birthday]:
    if not group_ids:
        return []
    stmt = select(Birthday).where(Birthday.group_id.in_(list(group_ids)))
    like = f"%{(query or '').strip()}%"
    if like != "%%":
        stmt = stmt.where(Birthday.name.ilike(like))
    stmt = stmt.order_by(Birthday.name.asc(), Birthday.id.asc())
    return list(session.scalars(stmt).all())


def create_birthday(session: Session, data: CreateBirthdayInput, *, created_by: int | None = None) -> Birthday:
    name = _clean_name(data.name)
    _require_group(session, data.group_id)

    birthday = Birthday(
        name=name,
        birth_date=data.birth_date,
        notes=(data.notes or "").strip() or None,
        group_id=data.group_id,
        created_by=created_by,
    )
    session.add(birthday)
    session.commit()
    session.refresh(birthday)
    logger.info(
        "Birthday created birthday_id=%s group_id=%s created_by=%s",
        birthday.id,
        birthday.group_id,
        birthday.created_by,
    )
    return birthday


def update_birthday(session: Session, *, birthday_id: int, data: UpdateBirthdayInput) -> Birthday:
    birthday = get_birthday(session, birthday_id)
    if birthday is None:
        raise BirthdayValidationError(f"Birthday {birthday_id} not found")

    if data.name is not None:
        birthday.name = _clean_name(data.name)
    if data.birth_date is not None:
        birthday.birth_date = data.birth_date
    if data.group_id is not None:
        _require_group(session, data.group_id)
        birthday.group_id = data.group_id
    if data.notes is not None:
        birthday.notes = data.notes.strip() or None
    session.commit()
    session.refresh(birthday)
    logger.info("Birthday updated birthday_id=%s group_id=%s", birthday.id, birthday.group_id)
    return birthday


def delete_birthday(session: Session, *, birthday_id: int) -> None:
    birthday = get_birthday(session, birthday_id)
    if birthday is None:
        raise BirthdayValidationError(f"Birthday {birthday_id} not found")
    session.delete(birthday)
    session.commit()
    logger.info("Birthday deleted birthday_id=%s", birthday_id)
