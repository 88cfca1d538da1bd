from __future__ import annotations

from dataclasses import dataclass
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import User

logger = logging.getLogger(__name__)


class UserValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CreateUserInput:
    email: str
    username: str | None = None


def _normalize_email(value: str) -> str:
    email = value.strip().lower()
    if not email or "@" not in email or email.startswith("@") or email.endswith("@"):
        raise UserValidationError("Enter a valid email address.")
    return email


def get_user(session: Session, user_id: int) -> User | None:
    return session.get(User, user_id)


def get_user_by_email(session: Session, email: str) -> User | None:
    return session.scalars(select(User).where(User.email == email.strip().lower())).first()


def list_users(session: Session) -> list[User]:
    return list(session.scalars(select(User).order_by(User.username.asc(), User.id.asc())).all())


def create_user(session: Session, data: CreateUserInput) -> User:
    email = _normalize_email(data.email)
    if get_user_by_email(session, email) is not None:
        raise UserValidationError("Email address is already registered.")

    # Default username is the local part of the email.
    username = (data.username or "").strip() or email.split("@", 1)[0]
    user = User(username=username, email=email)
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User created user_id=%s username=%s", user.id, user.username)
    return user
