# Rev 0.1.2

"""Allocation rules (project resources)
- allocation is a percentage in [0, 100], cost is never negative
- the allocation window lies inside the project window; each bound is checked
  against whichever project bounds exist
- one allocation per (project, human resource)
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from plancraft.models.entities import HumanResource, Project, ProjectResource, check_dates, check_number_range
from plancraft.models.errors import FieldViolation
from plancraft.query.predicate import BY_ID, Eq, Predicate

ALLOCATION_MIN = 0.0
ALLOCATION_MAX = 100.0


def _as_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def window_violations(start: Optional[date], end: Optional[date],
                      p_start: Optional[date], p_end: Optional[date]) -> List[FieldViolation]:
    """Containment of [start, end] in the project window [p_start, p_end]."""
    out: List[FieldViolation] = []
    msg = "outside the project window"
    if start is not None:
        if p_start is not None and start < p_start:
            out.append(FieldViolation("start_date", "outside_project", msg))
        elif p_end is not None and start > p_end:
            out.append(FieldViolation("start_date", "outside_project", msg))
    if end is not None:
        if p_end is not None and end > p_end:
            out.append(FieldViolation("end_date", "outside_project", msg))
        elif p_start is not None and end < p_start:
            out.append(FieldViolation("end_date", "outside_project", msg))
    return out


class AllocationValidator:
    def check(self, store, alloc: ProjectResource) -> List[FieldViolation]:
        out: List[FieldViolation] = []

        project = None
        if alloc.project_id is not None:
            project = store.find_by_id(Project.TABLE, alloc.project_id)
            if project is None:
                out.append(FieldViolation("project_id", "exists", f"project #{alloc.project_id} does not exist"))
        if alloc.human_resource_id is not None:
            if store.find_by_id(HumanResource.TABLE, alloc.human_resource_id) is None:
                out.append(FieldViolation(
                    "human_resource_id", "exists", f"human resource #{alloc.human_resource_id} does not exist"))

        check_number_range(out, "allocation", alloc.allocation, ALLOCATION_MIN, ALLOCATION_MAX)
        check_number_range(out, "cost", alloc.cost, 0)

        before = len(out)
        check_dates(out, alloc.start_date, alloc.end_date)
        if project is not None and len(out) == before:
            out.extend(window_violations(
                alloc.start_date, alloc.end_date,
                _as_date(project.get("start_date")), _as_date(project.get("end_date")),
            ))

        if alloc.project_id is not None and alloc.human_resource_id is not None:
            pred = Predicate.where(
                Eq("project_id", alloc.project_id),
                Eq("human_resource_id", alloc.human_resource_id),
            )
            for row in store.find_matching(ProjectResource.TABLE, pred, BY_ID):
                if row["id"] != alloc.id:
                    out.append(FieldViolation(
                        "human_resource_id", "unique", "already allocated to this project"))
                    break
        return out
