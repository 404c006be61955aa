# planCraft type definitions
# Rev 0.1.2

from __future__ import annotations
from enum import IntEnum
from typing import Literal

# Entity kinds; each maps 1:1 to a table of the same name
EntityType = Literal[
    "clients",
    "human_resources",
    "projects",
    "project_roles",
    "milestones",
    "tasks",
    "project_resources",
]

ENTITY_TYPES: tuple[str, ...] = (
    "clients",
    "human_resources",
    "projects",
    "project_roles",
    "milestones",
    "tasks",
    "project_resources",
)


class Status(IntEnum):
    """Shared record status for reference data and allocations."""
    INACTIVE = 1
    ACTIVE = 2


class TaskStatus(IntEnum):
    TODO = 1
    IN_PROGRESS = 2
    DONE = 3
    CANCELLED = 4


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class RoleLevel(IntEnum):
    JUNIOR = 1
    MID = 2
    SENIOR = 3
    LEAD = 4
    MANAGER = 5
    DIRECTOR = 6
    VP = 7
    C_LEVEL = 8


# Weekday codes: 0=Sunday .. 6=Saturday
SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)
DEFAULT_WORKING_DAYS: tuple[int, ...] = (MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY)

_STATUS_NAMES = {1: "Inactive", 2: "Active"}
_TASK_STATUS_NAMES = {1: "To Do", 2: "In Progress", 3: "Done", 4: "Cancelled"}
_PRIORITY_NAMES = {1: "Low", 2: "Medium", 3: "High", 4: "Critical"}
_ROLE_LEVEL_NAMES = {
    1: "Junior", 2: "Mid", 3: "Senior", 4: "Lead",
    5: "Manager", 6: "Director", 7: "VP", 8: "C-Level",
}


def status_name(value: int | None) -> str:
    return _STATUS_NAMES.get(value, "Unknown") if value is not None else "Unknown"


def task_status_name(value: int | None) -> str:
    return _TASK_STATUS_NAMES.get(value, "Unknown") if value is not None else "Unknown"


def priority_name(value: int | None) -> str:
    return _PRIORITY_NAMES.get(value, "Unknown") if value is not None else "Unknown"


def role_level_name(value: int | None) -> str:
    return _ROLE_LEVEL_NAMES.get(value, "Unknown") if value is not None else "Unknown"


def is_member(enum_cls: type[IntEnum], value) -> bool:
    """True if `value` is an int (not bool) equal to one of the enum's members."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in {m.value for m in enum_cls}
