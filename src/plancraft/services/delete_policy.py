# Rev 0.1.2

"""Delete policy
Each relation (child table, FK column -> parent table) says what happens to
referencing rows when a parent is deleted: RESTRICT, CASCADE or SET_NULL.
The whole plan is worked out with reads only; nothing is written until it is
known to succeed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Set, Tuple

from plancraft.models.errors import ConflictError
from plancraft.query.predicate import BY_ID, Eq, Predicate
from plancraft.utils.logging_setup import get_logger

Key = Tuple[str, int]


class OnDelete(str, Enum):
    RESTRICT = "restrict"
    CASCADE = "cascade"
    SET_NULL = "set_null"


@dataclass(frozen=True)
class Relation:
    parent: str
    child: str
    column: str
    on_delete: OnDelete = OnDelete.RESTRICT


DEFAULT_RELATIONS: Tuple[Relation, ...] = (
    Relation("clients", "projects", "client_id"),
    Relation("projects", "project_roles", "project_id"),
    Relation("projects", "milestones", "project_id"),
    Relation("projects", "tasks", "project_id"),
    Relation("projects", "project_resources", "project_id"),
    Relation("human_resources", "project_resources", "human_resource_id"),
    Relation("milestones", "tasks", "milestone_id", OnDelete.SET_NULL),
    Relation("tasks", "tasks", "parent_id"),
)


@dataclass
class DeletePlan:
    deletes: List[Key] = field(default_factory=list)       # cascaded rows before their parent
    nullify: List[Tuple[str, int, str]] = field(default_factory=list)

    def tables(self) -> Set[str]:
        return {t for t, _ in self.deletes} | {t for t, _, _ in self.nullify}

    def execute(self, store) -> None:
        """Run inside the caller's store transaction."""
        for table, row_id, column in self.nullify:
            row = store.find_by_id(table, row_id)
            if row is None:
                continue
            row[column] = None
            store.replace(table, row_id, row)
        for table, row_id in self.deletes:
            store.delete(table, row_id)


class DeletePolicy:
    def __init__(self, relations: Iterable[Relation] = DEFAULT_RELATIONS):
        self._relations: Tuple[Relation, ...] = tuple(relations)
        self._log = get_logger("DeletePolicy")

    @property
    def relations(self) -> Tuple[Relation, ...]:
        return self._relations

    def with_rule(self, parent: str, child: str, column: str, on_delete: OnDelete | str) -> "DeletePolicy":
        """Copy with one relation's behaviour replaced (or added)."""
        on_delete = OnDelete(on_delete)
        kept = [r for r in self._relations if (r.parent, r.child, r.column) != (parent, child, column)]
        kept.append(Relation(parent, child, column, on_delete))
        return DeletePolicy(kept)

    def referencing(self, table: str) -> List[Relation]:
        return [r for r in self._relations if r.parent == table]

    def plan(self, store, table: str, row_id: int) -> DeletePlan:
        plan = DeletePlan()
        doomed: Set[Key] = set()
        nulls: Dict[Tuple[str, int, str], None] = {}
        restricted: List[Tuple[Relation, int, List[int]]] = []

        def visit(t: str, rid: int) -> None:
            doomed.add((t, rid))
            for rel in self.referencing(t):
                rows = store.find_matching(rel.child, Predicate.where(Eq(rel.column, rid)), BY_ID)
                ids = [r["id"] for r in rows]
                if not ids:
                    continue
                if rel.on_delete is OnDelete.CASCADE:
                    for cid in ids:
                        if (rel.child, cid) not in doomed:
                            visit(rel.child, cid)
                elif rel.on_delete is OnDelete.SET_NULL:
                    for cid in ids:
                        nulls[(rel.child, cid, rel.column)] = None
                else:
                    restricted.append((rel, rid, ids))
            plan.deletes.append((t, rid))

        visit(table, row_id)

        # A restricted reference is fine when the referencing row goes too
        for rel, rid, ids in restricted:
            live = [cid for cid in ids if (rel.child, cid) not in doomed]
            if live:
                self._log.info("Delete %s #%s blocked by %s %s", rel.parent, rid, rel.child, live)
                raise ConflictError(rel.parent, rid, rel.child, len(live))

        plan.nullify = [k for k in nulls if (k[0], k[1]) not in doomed]
        return plan
