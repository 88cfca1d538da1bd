from app.models.birthdays import Birthday
from app.models.groups import Group, GroupMember
from app.models.users import User

__all__ = [
    "Birthday",
    "Group",
    "GroupMember",
    "User",
]
