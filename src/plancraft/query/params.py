# Rev 0.1.4
"""Typed query parameters, one dataclass per entity.

The field list of each class is the whole filter vocabulary for that entity. The
suffix of a field name picks its operator:

    name               exact match
    name_like          case-insensitive substring; every *_like in one request is OR-ed
    start_date_gte     inclusive lower bound
    start_date_lte     inclusive upper bound
    status_in          set membership (an empty sequence counts as "not supplied")
    parent_id_is_null  True -> IS NULL, False -> IS NOT NULL

None leaves a filter out.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import ClassVar, List, Literal, Optional, Sequence

from ..models.entities import (
    Client,
    HumanResource,
    Milestone,
    Project,
    ProjectResource,
    ProjectRole,
    Task,
)

Direction = Literal["asc", "desc"]

DEFAULT_PAGE_SIZE = 20

# Not filters
CONTROL_FIELDS = frozenset({"sort", "page", "page_size"})


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: Direction = "asc"

    @classmethod
    def parse(cls, text: str) -> "SortSpec":
        """'name' -> asc, '-name' -> desc."""
        text = text.strip()
        if text.startswith("-"):
            return cls(text[1:], "desc")
        return cls(text, "asc")


@dataclass
class QueryParams:
    ENTITY: ClassVar[type] = object

    sort: List[SortSpec] = field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    id_in: Optional[Sequence[int]] = None
    status: Optional[int] = None
    status_in: Optional[Sequence[int]] = None
    created_at_gte: Optional[datetime | date] = None
    created_at_lte: Optional[datetime | date] = None
    updated_at_gte: Optional[datetime | date] = None
    updated_at_lte: Optional[datetime | date] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class ClientQuery(QueryParams):
    ENTITY: ClassVar[type] = Client

    name: Optional[str] = None
    name_like: Optional[str] = None
    email: Optional[str] = None
    email_like: Optional[str] = None
    phone: Optional[str] = None
    phone_like: Optional[str] = None
    contact_person_like: Optional[str] = None


@dataclass
class HumanResourceQuery(QueryParams):
    ENTITY: ClassVar[type] = HumanResource

    name: Optional[str] = None
    name_like: Optional[str] = None
    title: Optional[str] = None
    title_like: Optional[str] = None
    level: Optional[str] = None
    level_like: Optional[str] = None


@dataclass
class ProjectQuery(QueryParams):
    ENTITY: ClassVar[type] = Project

    name: Optional[str] = None
    name_like: Optional[str] = None
    description_like: Optional[str] = None
    client_id: Optional[int] = None
    client_id_in: Optional[Sequence[int]] = None
    currency: Optional[str] = None
    start_date_gte: Optional[date] = None
    start_date_lte: Optional[date] = None
    end_date_gte: Optional[date] = None
    end_date_lte: Optional[date] = None


@dataclass
class ProjectRoleQuery(QueryParams):
    ENTITY: ClassVar[type] = ProjectRole

    project_id: Optional[int] = None
    project_id_in: Optional[Sequence[int]] = None
    name: Optional[str] = None
    name_like: Optional[str] = None
    level: Optional[int] = None
    level_in: Optional[Sequence[int]] = None
    headcount_gte: Optional[int] = None
    headcount_lte: Optional[int] = None


@dataclass
class MilestoneQuery(QueryParams):
    ENTITY: ClassVar[type] = Milestone

    project_id: Optional[int] = None
    project_id_in: Optional[Sequence[int]] = None
    name: Optional[str] = None
    name_like: Optional[str] = None
    description_like: Optional[str] = None
    start_date_gte: Optional[date] = None
    start_date_lte: Optional[date] = None
    end_date_gte: Optional[date] = None
    end_date_lte: Optional[date] = None


@dataclass
class TaskQuery(QueryParams):
    ENTITY: ClassVar[type] = Task

    project_id: Optional[int] = None
    project_id_in: Optional[Sequence[int]] = None
    milestone_id: Optional[int] = None
    milestone_id_in: Optional[Sequence[int]] = None
    milestone_id_is_null: Optional[bool] = None
    parent_id: Optional[int] = None
    parent_id_in: Optional[Sequence[int]] = None
    parent_id_is_null: Optional[bool] = None
    name: Optional[str] = None
    name_like: Optional[str] = None
    description_like: Optional[str] = None
    level: Optional[int] = None
    level_in: Optional[Sequence[int]] = None
    level_gte: Optional[int] = None
    level_lte: Optional[int] = None
    priority: Optional[int] = None
    priority_in: Optional[Sequence[int]] = None
    estimated_effort_gte: Optional[float] = None
    estimated_effort_lte: Optional[float] = None


@dataclass
class ProjectResourceQuery(QueryParams):
    ENTITY: ClassVar[type] = ProjectResource

    project_id: Optional[int] = None
    project_id_in: Optional[Sequence[int]] = None
    human_resource_id: Optional[int] = None
    human_resource_id_in: Optional[Sequence[int]] = None
    role: Optional[str] = None
    role_like: Optional[str] = None
    notes_like: Optional[str] = None
    allocation_gte: Optional[float] = None
    allocation_lte: Optional[float] = None
    cost_gte: Optional[float] = None
    cost_lte: Optional[float] = None
    start_date_gte: Optional[date] = None
    start_date_lte: Optional[date] = None
    end_date_gte: Optional[date] = None
    end_date_lte: Optional[date] = None


QUERY_CLASSES = {
    cls.ENTITY.TABLE: cls
    for cls in (
        ClientQuery,
        HumanResourceQuery,
        ProjectQuery,
        ProjectRoleQuery,
        MilestoneQuery,
        TaskQuery,
        ProjectResourceQuery,
    )
}
