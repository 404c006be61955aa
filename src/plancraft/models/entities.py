# Rev 0.2.3
"""Planning entities.

Plain dataclasses, one per table. Each knows how to turn itself into a storage row
(primitives only: dates as ISO strings, weekday sets as JSON) and back, how to
normalize caller input (trim strings, fill defaults, coerce ISO date strings), and
how to validate its own fields. Cross-record rules (foreign keys, task hierarchy,
allocation windows) live in the services.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from enum import IntEnum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .errors import FieldViolation
from .types import (
    DEFAULT_WORKING_DAYS,
    Priority,
    RoleLevel,
    Status,
    TaskStatus,
    is_member,
)

NAME_MAX = 255
PHONE_MAX = 50
TIMEZONE_MAX = 64

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_TIMEZONE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_+\-]*(/[A-Za-z0-9_+\-]+)*$")

TIMESTAMP_FIELDS = ("created_at", "updated_at")


# ---------- validation helpers ----------

def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _required_text(out: List[FieldViolation], name: str, value: Optional[str], max_len: int = NAME_MAX) -> None:
    if not value:
        out.append(FieldViolation(name, "required", f"{name} is required"))
    elif len(value) > max_len:
        out.append(FieldViolation(name, "max_length", f"at most {max_len} characters"))


def _optional_text(out: List[FieldViolation], name: str, value: Optional[str], max_len: int = NAME_MAX) -> None:
    if value and len(value) > max_len:
        out.append(FieldViolation(name, "max_length", f"at most {max_len} characters"))


def _required_id(out: List[FieldViolation], name: str, value: Any) -> None:
    if value is None:
        out.append(FieldViolation(name, "required", f"{name} is required"))
    elif isinstance(value, bool) or not isinstance(value, int) or value < 1:
        out.append(FieldViolation(name, "invalid", f"{name} must be a positive integer"))


def _optional_id(out: List[FieldViolation], name: str, value: Any) -> None:
    if value is not None:
        _required_id(out, name, value)


def _enum(out: List[FieldViolation], name: str, value: Any, enum_cls) -> None:
    if not is_member(enum_cls, value):
        allowed = ", ".join(str(m.value) for m in enum_cls)
        out.append(FieldViolation(name, "choice", f"must be one of {allowed}"))


def check_number_range(out: List[FieldViolation], name: str, value: Any,
                  lo: Optional[float] = None, hi: Optional[float] = None) -> None:
    if not _is_number(value):
        out.append(FieldViolation(name, "type", f"{name} must be a number"))
        return
    if lo is not None and value < lo:
        out.append(FieldViolation(name, "min", f"must be >= {lo}"))
    if hi is not None and value > hi:
        out.append(FieldViolation(name, "max", f"must be <= {hi}"))


def check_dates(out: List[FieldViolation], start: Any, end: Any) -> None:
    ok = True
    for name, value in (("start_date", start), ("end_date", end)):
        if value is not None and not isinstance(value, date):
            out.append(FieldViolation(name, "date", "expected YYYY-MM-DD"))
            ok = False
    if ok and start is not None and end is not None and end < start:
        out.append(FieldViolation("end_date", "date_order", "end_date must not be before start_date"))


def _coerce_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return value
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# ---------- base ----------

class Entity:
    """Row conversion shared by every entity dataclass."""

    TABLE: ClassVar[str] = ""
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ()
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            v = getattr(self, f.name)
            if isinstance(v, (date, datetime)):
                v = v.isoformat()
            elif isinstance(v, IntEnum):
                v = int(v)
            row[f.name] = v
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        kwargs: Dict[str, Any] = {}
        for k, v in dict(row).items():
            if k not in known:
                continue
            if k in cls.DATE_FIELDS and isinstance(v, str):
                v = date.fromisoformat(v)
            elif k in TIMESTAMP_FIELDS and isinstance(v, str):
                v = datetime.fromisoformat(v)
            kwargs[k] = v
        return cls(**kwargs)

    def normalized(self):
        """Copy with trimmed text and ISO date strings parsed."""
        changes: Dict[str, Any] = {}
        for name in self.TEXT_FIELDS:
            changes[name] = _strip(getattr(self, name))
        for name in self.DATE_FIELDS:
            changes[name] = _coerce_date(getattr(self, name))
        return replace(self, **changes)  # type: ignore[type-var]

    def validate(self) -> List[FieldViolation]:
        raise NotImplementedError


# ---------- entities ----------

@dataclass
class Client(Entity):
    TABLE: ClassVar[str] = "clients"
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "email", "phone", "contact_person")

    id: int | None = None
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    notes: Optional[str] = None
    status: int = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_text(out, "name", self.name)
        _required_text(out, "email", self.email)
        if self.email and not _EMAIL_RE.match(self.email):
            out.append(FieldViolation("email", "email", "invalid email address"))
        _optional_text(out, "phone", self.phone, PHONE_MAX)
        _optional_text(out, "contact_person", self.contact_person)
        _enum(out, "status", self.status, Status)
        return out


@dataclass
class HumanResource(Entity):
    TABLE: ClassVar[str] = "human_resources"
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "title", "level")

    id: int | None = None
    name: str = ""
    title: str = ""
    level: str = ""           # free-text seniority label
    status: int = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_text(out, "name", self.name)
        _required_text(out, "title", self.title)
        _required_text(out, "level", self.level)
        _enum(out, "status", self.status, Status)
        return out


@dataclass
class Project(Entity):
    TABLE: ClassVar[str] = "projects"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("start_date", "end_date")
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    id: int | None = None
    name: str = ""
    client_id: Optional[int] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    hours_per_day: float = 8.0
    days_per_week: float = 5.0
    working_days_per_week: Tuple[int, ...] = DEFAULT_WORKING_DAYS
    timezone: str = "UTC"
    currency: str = "USD"
    status: int = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def normalized(self) -> "Project":
        p = super().normalized()
        days = p.working_days_per_week
        if days is None:
            days = DEFAULT_WORKING_DAYS
        elif isinstance(days, str):
            days = json.loads(days)
        days = tuple(days)
        if all(isinstance(d, int) for d in days):
            days = tuple(sorted(days))
        return replace(
            p,
            hours_per_day=8.0 if p.hours_per_day is None else p.hours_per_day,
            days_per_week=5.0 if p.days_per_week is None else p.days_per_week,
            working_days_per_week=days,
            timezone=(_strip(p.timezone) or "UTC"),
            currency=(_strip(p.currency) or "USD").upper(),
        )

    def to_row(self) -> Dict[str, Any]:
        row = super().to_row()
        row["working_days_per_week"] = json.dumps(list(self.working_days_per_week or ()))
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Project":
        p = super().from_row(row)
        if isinstance(p.working_days_per_week, str):
            p.working_days_per_week = tuple(json.loads(p.working_days_per_week))
        return p

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_text(out, "name", self.name)
        _required_id(out, "client_id", self.client_id)
        check_dates(out, self.start_date, self.end_date)
        check_number_range(out, "hours_per_day", self.hours_per_day, 1, 24)
        check_number_range(out, "days_per_week", self.days_per_week, 1, 7)

        days = list(self.working_days_per_week or ())
        if any(isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6 for d in days):
            out.append(FieldViolation("working_days_per_week", "weekday", "weekday codes are 0..6"))
        elif len(set(days)) != len(days):
            out.append(FieldViolation("working_days_per_week", "duplicate", "weekdays must be unique"))
        if len(days) > 7:
            out.append(FieldViolation("working_days_per_week", "max_length", "at most 7 days"))

        if not self.timezone or len(self.timezone) > TIMEZONE_MAX or not _TIMEZONE_RE.match(self.timezone):
            out.append(FieldViolation("timezone", "timezone", "expected a zone name such as Europe/Paris"))
        if not self.currency or not _CURRENCY_RE.match(self.currency):
            out.append(FieldViolation("currency", "currency", "expected a three-letter code"))
        _enum(out, "status", self.status, Status)
        return out


@dataclass
class ProjectRole(Entity):
    TABLE: ClassVar[str] = "project_roles"
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    id: int | None = None
    project_id: Optional[int] = None
    name: str = ""
    level: int = RoleLevel.MID
    headcount: int = 1
    status: int = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_id(out, "project_id", self.project_id)
        _required_text(out, "name", self.name)
        _enum(out, "level", self.level, RoleLevel)
        if isinstance(self.headcount, bool) or not isinstance(self.headcount, int):
            out.append(FieldViolation("headcount", "type", "headcount must be an integer"))
        elif self.headcount < 0:
            out.append(FieldViolation("headcount", "min", "must be >= 0"))
        _enum(out, "status", self.status, Status)
        return out


@dataclass
class Milestone(Entity):
    TABLE: ClassVar[str] = "milestones"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("start_date", "end_date")
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    id: int | None = None
    project_id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: int = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_id(out, "project_id", self.project_id)
        _required_text(out, "name", self.name)
        check_dates(out, self.start_date, self.end_date)
        _enum(out, "status", self.status, Status)
        return out


@dataclass
class Task(Entity):
    TABLE: ClassVar[str] = "tasks"
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    id: int | None = None
    project_id: Optional[int] = None
    milestone_id: Optional[int] = None
    parent_id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    level: int = 1            # derived by TaskHierarchy, never taken from callers
    priority: int = Priority.MEDIUM
    status: int = TaskStatus.TODO
    estimated_effort: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_id(out, "project_id", self.project_id)
        _optional_id(out, "milestone_id", self.milestone_id)
        _optional_id(out, "parent_id", self.parent_id)
        _required_text(out, "name", self.name)
        _enum(out, "priority", self.priority, Priority)
        _enum(out, "status", self.status, TaskStatus)
        check_number_range(out, "estimated_effort", self.estimated_effort, 0)
        return out


@dataclass
class ProjectResource(Entity):
    """Allocation of a human resource to a project."""

    TABLE: ClassVar[str] = "project_resources"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("start_date", "end_date")
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("role",)

    id: int | None = None
    project_id: Optional[int] = None
    human_resource_id: Optional[int] = None
    role: Optional[str] = None
    allocation: float = 100.0  # percent
    cost: float = 0.0          # in the project's currency
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    status: int = Status.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> List[FieldViolation]:
        out: List[FieldViolation] = []
        _required_id(out, "project_id", self.project_id)
        _required_id(out, "human_resource_id", self.human_resource_id)
        _optional_text(out, "role", self.role)
        _enum(out, "status", self.status, Status)
        return out
