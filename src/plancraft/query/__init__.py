from __future__ import annotations

from .engine import ListResult, QueryEngine, compile_query
from .params import (
    ClientQuery,
    HumanResourceQuery,
    MilestoneQuery,
    ProjectQuery,
    ProjectResourceQuery,
    ProjectRoleQuery,
    QueryParams,
    SortSpec,
    TaskQuery,
)
from .predicate import Predicate, SortPlan

__all__ = [
    "ClientQuery",
    "HumanResourceQuery",
    "ListResult",
    "MilestoneQuery",
    "Predicate",
    "ProjectQuery",
    "ProjectResourceQuery",
    "ProjectRoleQuery",
    "QueryEngine",
    "QueryParams",
    "SortPlan",
    "SortSpec",
    "TaskQuery",
    "compile_query",
]
