from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.orm import Session

from app.db import build_engine, build_session_factory, create_schema
from app.services.birthdays_service import CreateBirthdayInput, create_birthday
from app.services.groups_service import CreateGroupInput, add_member, create_group
from app.services.upcoming_engine import InvalidArgument
from app.services.upcoming_service import (
    annotate_birthdays,
    days_until_label,
    get_stats,
    list_upcoming_birthdays,
)
from app.services.users_service import CreateUserInput, create_user


def _make_session(tmp_path) -> Session:
    engine = build_engine(f"sqlite:///{tmp_path / 'upcoming.db'}")
    create_schema(engine)
    return build_session_factory(engine)()


def test_days_until_label() -> None:
    assert days_until_label(0) == "today"
    assert days_until_label(1) == "tomorrow"
    assert days_until_label(12) == "in 12 days"


def test_upcoming_birthdays_across_member_groups_only(tmp_path) -> None:
    session = _make_session(tmp_path)
    try:
        alice = create_user(session, CreateUserInput(email="alice@example.com"))
        bob = create_user(session, CreateUserInput(email="bob@example.com"))
        family = create_group(session, CreateGroupInput(name="Family"), creator_id=alice.id)
        friends = create_group(session, CreateGroupInput(name="Friends"), creator_id=bob.id)
        hidden = create_group(session, CreateGroupInput(name="Bob only"), creator_id=bob.id)
        add_member(session, group_id=friends.id, user_id=alice.id)

        rows = [
            ("New Year", date(1980, 1, 5), family.id),
            ("Twin A", date(1995, 12, 24), friends.id),
            ("Grandpa", date(1930, 12, 20), family.id),
            ("Twin B", date(1995, 12, 24), family.id),
            ("Secret", date(1990, 12, 21), hidden.id),
            ("Summer", date(1988, 7, 1), friends.id),
        ]
        for name, birth_date, group_id in rows:
            create_birthday(session, CreateBirthdayInput(name=name, birth_date=birth_date, group_id=group_id))

        upcoming = list_upcoming_birthdays(session, user_id=alice.id, today=date(2025, 12, 20), window_days=30)

        assert [(view.name, view.days_until, view.label) for view in upcoming] == [
            ("Grandpa", 0, "today"),
            ("Twin A", 4, "in 4 days"),
            ("Twin B", 4, "in 4 days"),
            ("New Year", 16, "in 16 days"),
        ]
        assert upcoming[-1].next_occurrence == date(2026, 1, 5)

        assert list_upcoming_birthdays(session, user_id=alice.id, today=date(2025, 12, 20), window_days=0)[0].name == "Grandpa"
    finally:
        session.close()


def test_user_without_groups_still_validates_window(tmp_path) -> None:
    session = _make_session(tmp_path)
    try:
        loner = create_user(session, CreateUserInput(email="loner@example.com"))

        assert list_upcoming_birthdays(session, user_id=loner.id, today=date(2026, 1, 1), window_days=30) == []
        with pytest.raises(InvalidArgument):
            list_upcoming_birthdays(session, user_id=loner.id, today=date(2026, 1, 1), window_days=-1)
    finally:
        session.close()


def test_annotate_keeps_caller_order_and_stats_count(tmp_path) -> None:
    session = _make_session(tmp_path)
    try:
        alice = create_user(session, CreateUserInput(email="alice@example.com"))
        family = create_group(session, CreateGroupInput(name="Family"), creator_id=alice.id)
        create_group(session, CreateGroupInput(name="Empty"), creator_id=alice.id)
        later = create_birthday(
            session, CreateBirthdayInput(name="Later", birth_date=date(2000, 9, 1), group_id=family.id)
        )
        leap = create_birthday(
            session, CreateBirthdayInput(name="Leap", birth_date=date(2000, 2, 29), group_id=family.id)
        )

        views = annotate_birthdays([later, leap], today=date(2026, 2, 27))

        assert [view.name for view in views] == ["Later", "Leap"]
        assert views[0].next_occurrence == date(2026, 9, 1)
        assert views[1].next_occurrence == date(2026, 2, 28)
        assert views[1].label == "tomorrow"

        stats = get_stats(session, user_id=alice.id, today=date(2026, 2, 27), window_days=30)
        assert stats.total_birthdays == 2
        assert stats.total_groups == 2
        assert stats.upcoming_birthdays == 1
    finally:
        session.close()
