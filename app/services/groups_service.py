from __future__ import annotations

from dataclasses import dataclass
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Group, GroupMember, User

logger = logging.getLogger(__name__)


class GroupValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CreateGroupInput:
    name: str
    description: str | None = None


@dataclass(frozen=True)
class UpdateGroupInput:
    name: str | None = None
    description: str | None = None


def _clean_name(name: str) -> str:
    clean = name.strip()
    if not clean:
        raise GroupValidationError("Group name is required.")
    return clean


def _clean_description(description: str | None) -> str | None:
    return (description or "").strip() or None


def _get_membership(session: Session, *, user_id: int, group_id: int) -> GroupMember | None:
    return session.scalars(
        select(GroupMember).where(
            GroupMember.user_id == user_id,
            GroupMember.group_id == group_id,
        )
    ).first()


def get_group(session: Session, group_id: int) -> Group | None:
    return session.get(Group, group_id)


def group_ids_for_user(session: Session, user_id: int) -> list[int]:
    return list(
        session.scalars(
            select(GroupMember.group_id).where(GroupMember.user_id == user_id).order_by(GroupMember.group_id.asc())
        ).all()
    )


def list_groups_for_user(session: Session, user_id: int) -> list[Group]:
    stmt = (
        select(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.name.asc(), Group.id.asc())
    )
    return list(session.scalars(stmt).all())


def is_member(session: Session, *, user_id: int, group_id: int) -> bool:
    return _get_membership(session, user_id=user_id, group_id=group_id) is not None


def create_group(session: Session, data: CreateGroupInput, *, creator_id: int) -> Group:
    if session.get(User, creator_id) is None:
        raise GroupValidationError(f"User {creator_id} not found")

    group = Group(name=_clean_name(data.name), description=_clean_description(data.description))
    session.add(group)
    session.flush()
    # The creator leads the group they start.
    session.add(GroupMember(user_id=creator_id, group_id=group.id, is_leader=True))
    session.commit()
    session.refresh(group)
    logger.info("Group created group_id=%s creator_id=%s", group.id, creator_id)
    return group


def update_group(session: Session, *, group_id: int, data: UpdateGroupInput) -> Group:
    group = get_group(session, group_id)
    if group is None:
        raise GroupValidationError(f"Group {group_id} not found")

    if data.name is not None:
        group.name = _clean_name(data.name)
    if data.description is not None:
        group.description = _clean_description(data.description)
    session.commit()
    session.refresh(group)
    logger.info("Group updated group_id=%s", group.id)
    return group


def delete_group(session: Session, *, group_id: int) -> None:
    group = get_group(session, group_id)
    if group is None:
        raise GroupValidationError(f"Group {group_id} not found")
    session.delete(group)
    session.commit()
    logger.info("Group deleted group_id=%s", group_id)


def add_member(session: Session, *, group_id: int, user_id: int, is_leader: bool = False) -> GroupMember:
    if get_group(session, group_id) is None:
        raise GroupValidationError(f"Group {group_id} not found")
    if session.get(User, user_id) is None:
        raise GroupValidationError(f"User {user_id} not found")
    if _get_membership(session, user_id=user_id, group_id=group_id) is not None:
        raise GroupValidationError(f"User {user_id} is already a member of group {group_id}")

    membership = GroupMember(user_id=user_id, group_id=group_id, is_leader=bool(is_leader))
    session.add(membership)
    session.commit()
    session.refresh(membership)
    logger.info(
        "Group member added group_id=%s user_id=%s is_leader=%s",
        group_id,
        user_id,
        membership.is_leader,
    )
    return membership


def list_members(session: Session, *, group_id: int) -> list[GroupMember]:
    stmt = select(GroupMember).where(GroupMember.group_id == group_id).order_by(GroupMember.id.asc())
    return list(session.scalars(stmt).all())


def remove_member(session: Session, *, group_id: int, user_id: int) -> None:
    membership = _get_membership(session, user_id=user_id, group_id=group_id)
    if membership is None:
        raise GroupValidationError(f"User {user_id} is not a member of group {group_id}")
    session.delete(membership)
    session.commit()
    logger.info("Group member removed group_id=%s user_id=%s", group_id, user_id)
