from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.orm import Session

from app.db import build_engine, build_session_factory, create_schema
from app.services.birthdays_service import (
    BirthdayValidationError,
    CreateBirthdayInput,
    UpdateBirthdayInput,
    create_birthday,
    delete_birthday,
    get_birthday,
    list_birthdays_for_group,
    list_birthdays_for_groups,
    search_birthdays,
    update_birthday,
)
from app.services.groups_service import CreateGroupInput, create_group
from app.services.users_service import CreateUserInput, create_user


def _make_session(tmp_path) -> Session:
    engine = build_engine(f"sqlite:///{tmp_path / 'birthdays.db'}")
    create_schema(engine)
    return build_session_factory(engine)()


def test_birthday_crud_and_validation(tmp_path) -> None:
    session = _make_session(tmp_path)
    try:
        alice = create_user(session, CreateUserInput(email="alice@example.com"))
        family = create_group(session, CreateGroupInput(name="Family"), creator_id=alice.id)
        friends = create_group(session, CreateGroupInput(name="Friends"), creator_id=alice.id)

        mom = create_birthday(
            session,
            CreateBirthdayInput(name=" Mom ", birth_date=date(1965, 7, 14), group_id=family.id, notes="  "),
            created_by=alice.id,
        )
        assert mom.name == "Mom"
        assert mom.notes is None
        assert mom.created_by == alice.id

        with pytest.raises(BirthdayValidationError):
            create_birthday(session, CreateBirthdayInput(name=" ", birth_date=date(2000, 1, 1), group_id=family.id))
        with pytest.raises(BirthdayValidationError):
            create_birthday(session, CreateBirthdayInput(name="Nobody", birth_date=date(2000, 1, 1), group_id=999))

        updated = update_birthday(
            session,
            birthday_id=mom.id,
            data=UpdateBirthdayInput(birth_date=date(1965, 7, 15), group_id=friends.id, notes="Likes tulips"),
        )
        assert updated.name == "Mom"
        assert updated.birth_date == date(1965, 7, 15)
        assert updated.group_id == friends.id
        assert updated.notes == "Likes tulips"
        assert list_birthdays_for_group(session, family.id) == []

        with pytest.raises(BirthdayValidationError):
            update_birthday(session, birthday_id=mom.id, data=UpdateBirthdayInput(group_id=999))

        delete_birthday(session, birthday_id=mom.id)
        assert get_birthday(session, mom.id) is None
        with pytest.raises(BirthdayValidationError):
            delete_birthday(session, birthday_id=mom.id)
    finally:
        session.close()


def test_listing_and_search_are_scoped_to_groups(tmp_path) -> None:
    session = _make_session(tmp_path)
    try:
        alice = create_user(session, CreateUserInput(email="alice@example.com"))
        family = create_group(session, CreateGroupInput(name="Family"), creator_id=alice.id)
        work = create_group(session, CreateGroupInput(name="Work"), creator_id=alice.id)
        other = create_group(session, CreateGroupInput(name="Other"), creator_id=alice.id)

        for name, group_id in [("Zoe", family.id), ("Marc", work.id), ("Anna", family.id), ("Mara", other.id)]:
            create_birthday(session, CreateBirthdayInput(name=name, birth_date=date(1990, 1, 1), group_id=group_id))

        assert [b.name for b in list_birthdays_for_groups(session, [family.id, work.id])] == ["Zoe", "Marc", "Anna"]
        assert list_birthdays_for_groups(session, []) == []

        assert [b.name for b in search_birthdays(session, [family.id, work.id], None)] == ["Anna", "Marc", "Zoe"]
        assert [b.name for b in search_birthdays(session, [family.id, work.id], "  ")] == ["Anna", "Marc", "Zoe"]
        assert [b.name for b in search_birthdays(session, [family.id, work.id], "MAR")] == ["Marc"]
        assert [b.name for b in search_birthdays(session, [other.id], "mar")] == ["Mara"]
        assert search_birthdays(session, [], "a") == []
    finally:
        session.close()
