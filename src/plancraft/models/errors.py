# Rev 0.1.1
"""Error taxonomy for the planning core.

Every error is raised per call and never leaves a partial write behind.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional


class PlanCraftError(Exception):
    """Base class for all planning-core errors."""


@dataclass(frozen=True)
class FieldViolation:
    field: str
    rule: str
    message: str = ""

    def __str__(self) -> str:
        return f"{self.field}: {self.rule}" + (f" ({self.message})" if self.message else "")


class ValidationError(PlanCraftError):
    """One or more field/rule violations, collected so the caller can show all of them."""

    def __init__(self, violations: Iterable[FieldViolation]):
        self.violations: List[FieldViolation] = list(violations)
        super().__init__("; ".join(str(v) for v in self.violations) or "validation failed")

    @classmethod
    def single(cls, field: str, rule: str, message: str = "") -> "ValidationError":
        return cls([FieldViolation(field, rule, message)])

    def fields(self) -> set[str]:
        return {v.field for v in self.violations}

    def has(self, field: str, rule: Optional[str] = None) -> bool:
        return any(v.field == field and (rule is None or v.rule == rule) for v in self.violations)


class NotFoundError(PlanCraftError):
    def __init__(self, entity_type: str, entity_id):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} #{entity_id} not found")


class ConflictError(PlanCraftError):
    """Delete blocked by live references."""

    def __init__(self, entity_type: str, entity_id, referenced_by: str, count: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.referenced_by = referenced_by
        self.count = count
        super().__init__(
            f"{entity_type} #{entity_id} is referenced by {count} row(s) in {referenced_by}"
        )


class CycleError(PlanCraftError):
    """Re-parenting would make a task its own ancestor."""

    def __init__(self, task_id, parent_id):
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(f"task #{task_id} cannot have #{parent_id} as parent: cycle")


class StoreClosedError(PlanCraftError):
    """A record store was used after its binding was switched away."""
