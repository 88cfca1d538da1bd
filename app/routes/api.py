from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db import check_db_health, get_db_session
from app.models import Birthday, Group, GroupMember, User
from app.services.birthdays_service import (
    BirthdayValidationError,
    CreateBirthdayInput,
    UpdateBirthdayInput,
    create_birthday,
    delete_birthday,
    get_birthday,
    list_birthdays_for_group,
    search_birthdays,
    update_birthday,
)
from app.services.clock import resolve_today
from app.services.groups_service import (
    CreateGroupInput,
    GroupValidationError,
    UpdateGroupInput,
    add_member,
    create_group,
    delete_group,
    get_group,
    group_ids_for_user,
    is_member,
    list_groups_for_user,
    list_members,
    remove_member,
    update_group,
)
from app.services.upcoming_engine import InvalidArgument
from app.services.upcoming_service import (
    UpcomingBirthdayView,
    annotate_birthdays,
    get_stats,
    list_upcoming_birthdays,
)
from app.services.users_service import (
    CreateUserInput,
    UserValidationError,
    create_user,
    get_user,
    list_users,
)

api_router = APIRouter(tags=["api"])


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    username: str | None = Field(default=None, max_length=255)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email)


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None


class GroupUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, group: Group) -> "GroupResponse":
        return cls(
            id=group.id,
            name=group.name,
            description=group.description,
            created_at=group.created_at,
        )


class MemberAddRequest(BaseModel):
    user_id: int
    is_leader: bool = False


class MemberResponse(BaseModel):
    id: int
    user_id: int
    group_id: int
    is_leader: bool

    @classmethod
    def from_model(cls, membership: GroupMember) -> "MemberResponse":
        return cls(
            id=membership.id,
            user_id=membership.user_id,
            group_id=membership.group_id,
            is_leader=membership.is_leader,
        )


class BirthdayCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    birth_date: date
    group_id: int
    notes: str | None = None


class BirthdayUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    birth_date: date | None = None
    group_id: int | None = None
    notes: str | None = None


class BirthdayResponse(BaseModel):
    id: int
    name: str
    birth_date: date
    notes: str | None
    group_id: int
    created_by: int | None

    @classmethod
    def from_model(cls, birthday: Birthday) -> "BirthdayResponse":
        return cls(
            id=birthday.id,
            name=birthday.name,
            birth_date=birthday.birth_date,
            notes=birthday.notes,
            group_id=birthday.group_id,
            created_by=birthday.created_by,
        )


class AnnotatedBirthdayResponse(BirthdayResponse):
    next_occurrence: date
    days_until: int
    label: str


class UpcomingBirthdayResponse(BaseModel):
    birthday_id: int
    name: str
    group_id: int
    birth_date: date
    next_occurrence: date
    days_until: int
    label: str

    @classmethod
    def from_view(cls, view: UpcomingBirthdayView) -> "UpcomingBirthdayResponse":
        return cls(
            birthday_id=view.birthday_id,
            name=view.name,
            group_id=view.group_id,
            birth_date=view.birth_date,
            next_occurrence=view.next_occurrence,
            days_until=view.days_until,
            label=view.label,
        )


class StatsResponse(BaseModel):
    total_birthdays: int
    total_groups: int
    upcoming_birthdays: int
    window_days: int


def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: Session = Depends(get_db_session),
) -> User:
    # Identity is established upstream; this only resolves it.
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = get_user(db, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def _require_group_access(db: Session, *, user: User, group_id: int) -> Group:
    group = get_group(db, group_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Group not found")
    if not is_member(db, user_id=user.id, group_id=group_id):
        raise HTTPException(status_code=403, detail="Not a member of this group")
    return group


def _require_birthday_access(db: Session, *, user: User, birthday_id: int) -> Birthday:
    birthday = get_birthday(db, birthday_id)
    if birthday is None:
        raise HTTPException(status_code=404, detail="Birthday not found")
    if not is_member(db, user_id=user.id, group_id=birthday.group_id):
        raise HTTPException(status_code=403, detail="Not a member of this group")
    return birthday


def _annotate(birthdays: list[Birthday], today: date) -> list[AnnotatedBirthdayResponse]:
    views = annotate_birthdays(birthdays, today=today)
    return [
        AnnotatedBirthdayResponse(
            **BirthdayResponse.from_model(birthday).model_dump(),
            next_occurrence=view.next_occurrence,
            days_until=view.days_until,
            label=view.label,
        )
        for birthday, view in zip(birthdays, views)
    ]


@api_router.get("/health")
def health_check(db: Session = Depends(get_db_session)) -> dict[str, str]:
    try:
        check_db_health(db)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail="database unavailable") from exc
    return {"status": "ok"}


@api_router.post("/users", response_model=UserResponse, status_code=201)
def users_create(payload: UserCreateRequest, db: Session = Depends(get_db_session)) -> UserResponse:
    try:
        user = create_user(db, CreateUserInput(email=payload.email, username=payload.username))
    except UserValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return UserResponse.from_model(user)


@api_router.get("/users", response_model=list[UserResponse], dependencies=[Depends(get_current_user)])
def users_list(db: Session = Depends(get_db_session)) -> list[UserResponse]:
    return [UserResponse.from_model(row) for row in list_users(db)]


@api_router.get("/users/me", response_model=UserResponse)
def users_me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_model(user)


@api_router.post("/groups", response_model=GroupResponse, status_code=201)
def groups_create(
    payload: GroupCreateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> GroupResponse:
    try:
        group = create_group(
            db,
            CreateGroupInput(name=payload.name, description=payload.description),
            creator_id=user.id,
        )
    except GroupValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return GroupResponse.from_model(group)


@api_router.get("/groups", response_model=list[GroupResponse])
def groups_list(
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> list[GroupResponse]:
    return [GroupResponse.from_model(group) for group in list_groups_for_user(db, user.id)]


@api_router.get("/groups/{group_id}", response_model=GroupResponse)
def groups_get(
    group_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> GroupResponse:
    return GroupResponse.from_model(_require_group_access(db, user=user, group_id=group_id))


@api_router.patch("/groups/{group_id}", response_model=GroupResponse)
def groups_update(
    group_id: int,
    payload: GroupUpdateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> GroupResponse:
    _require_group_access(db, user=user, group_id=group_id)
    try:
        group = update_group(
            db,
            group_id=group_id,
            data=UpdateGroupInput(name=payload.name, description=payload.description),
        )
    except GroupValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return GroupResponse.from_model(group)


@api_router.delete("/groups/{group_id}", status_code=204)
def groups_delete(
    group_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> Response:
    _require_group_access(db, user=user, group_id=group_id)
    try:
        delete_group(db, group_id=group_id)
    except GroupValidationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@api_router.post("/groups/{group_id}/members", response_model=MemberResponse, status_code=201)
def group_members_add(
    group_id: int,
    payload: MemberAddRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> MemberResponse:
    _require_group_access(db, user=user, group_id=group_id)
    try:
        membership = add_member(db, group_id=group_id, user_id=payload.user_id, is_leader=payload.is_leader)
    except GroupValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MemberResponse.from_model(membership)


@api_router.get("/groups/{group_id}/members", response_model=list[MemberResponse])
def group_members_list(
    group_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> list[MemberResponse]:
    _require_group_access(db, user=user, group_id=group_id)
    return [MemberResponse.from_model(row) for row in list_members(db, group_id=group_id)]


@api_router.delete("/groups/{group_id}/members/{member_user_id}", status_code=204)
def group_members_remove(
    group_id: int,
    member_user_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> Response:
    _require_group_access(db, user=user, group_id=group_id)
    try:
        remove_member(db, group_id=group_id, user_id=member_user_id)
    except GroupValidationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@api_router.post("/birthdays", response_model=BirthdayResponse, status_code=201)
def birthdays_create(
    payload: BirthdayCreateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BirthdayResponse:
    _require_group_access(db, user=user, group_id=payload.group_id)
    try:
        birthday = create_birthday(
            db,
            CreateBirthdayInput(
                name=payload.name,
                birth_date=payload.birth_date,
                group_id=payload.group_id,
                notes=payload.notes,
            ),
            created_by=user.id,
        )
    except BirthdayValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BirthdayResponse.from_model(birthday)


@api_router.get("/birthdays", response_model=list[AnnotatedBirthdayResponse])
def birthdays_list(
    group_id: int | None = Query(default=None),
    search: str | None = Query(default=None),
    today: date | None = Query(default=None),
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> list[AnnotatedBirthdayResponse]:
    run_today = resolve_today(today, get_settings().timezone)
    if group_id is not None:
        _require_group_access(db, user=user, group_id=group_id)
        return _annotate(list_birthdays_for_group(db, group_id), run_today)
    return _annotate(search_birthdays(db, group_ids_for_user(db, user.id), search), run_today)


@api_router.get("/birthdays/upcoming", response_model=list[UpcomingBirthdayResponse])
def birthdays_upcoming(
    days: int | None = Query(default=None, le=3650),
    today: date | None = Query(default=None),
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> list[UpcomingBirthdayResponse]:
    settings = get_settings()
    try:
        upcoming = list_upcoming_birthdays(
            db,
            user_id=user.id,
            today=resolve_today(today, settings.timezone),
            window_days=settings.upcoming_window_days if days is None else days,
        )
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [UpcomingBirthdayResponse.from_view(view) for view in upcoming]


@api_router.get("/birthdays/{birthday_id}", response_model=BirthdayResponse)
def birthdays_get(
    birthday_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BirthdayResponse:
    return BirthdayResponse.from_model(_require_birthday_access(db, user=user, birthday_id=birthday_id))


@api_router.patch("/birthdays/{birthday_id}", response_model=BirthdayResponse)
def birthdays_update(
    birthday_id: int,
    payload: BirthdayUpdateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BirthdayResponse:
    _require_birthday_access(db, user=user, birthday_id=birthday_id)
    if payload.group_id is not None:
        _require_group_access(db, user=user, group_id=payload.group_id)
    try:
        birthday = update_birthday(
            db,
            birthday_id=birthday_id,
            data=UpdateBirthdayInput(
                name=payload.name,
                birth_date=payload.birth_date,
                group_id=payload.group_id,
                notes=payload.notes,
            ),
        )
    except BirthdayValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BirthdayResponse.from_model(birthday)


@api_router.delete("/birthdays/{birthday_id}", status_code=204)
def birthdays_delete(
    birthday_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> Response:
    _require_birthday_access(db, user=user, birthday_id=birthday_id)
    try:
        delete_birthday(db, birthday_id=birthday_id)
    except BirthdayValidationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@api_router.get("/stats", response_model=StatsResponse)
def stats(
    today: date | None = Query(default=None),
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> StatsResponse:
    settings = get_settings()
    window_days = settings.upcoming_window_days
    try:
        view = get_stats(
            db,
            user_id=user.id,
            today=resolve_today(today, settings.timezone),
            window_days=window_days,
        )
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return StatsResponse(
        total_birthdays=view.total_birthdays,
        total_groups=view.total_groups,
        upcoming_birthdays=view.upcoming_birthdays,
        window_days=window_days,
    )
