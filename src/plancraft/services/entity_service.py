# Rev 0.2.2

"""Entity services (Rev 0.2.2)
One service per entity type over the session's active record store:
create / update / get / delete / list / retire.

Every call takes one snapshot of the session and uses only that store. Writes
run inside a store transaction and are announced through the session's
dataChanged signal once committed.
"""
from __future__ import annotations

from dataclasses import replace
from typing import ClassVar, Generic, List, Optional, Tuple, TypeVar

from plancraft.models.entities import (
    Client,
    Entity,
    HumanResource,
    Milestone,
    Project,
    ProjectResource,
    ProjectRole,
    Task,
)
from plancraft.models.errors import (
    ConflictError,
    CycleError,
    FieldViolation,
    NotFoundError,
    StoreClosedError,
    ValidationError,
)
from plancraft.models.types import Status, TaskStatus, is_member
from plancraft.query.engine import ListResult, QueryEngine
from plancraft.query.params import QueryParams
from plancraft.query.predicate import BY_ID, Eq, Predicate
from plancraft.utils.logging_setup import get_logger

from .allocation_rules import AllocationValidator
from .delete_policy import DeletePolicy
from .status_rules import TaskStatusRules
from .task_hierarchy import TaskHierarchy

E = TypeVar("E", bound=Entity)

_REJECTED = (ValidationError, CycleError, ConflictError, NotFoundError)


class EntityService(Generic[E]):
    ENTITY: ClassVar[type] = Entity
    # (column, referenced table) pairs checked on every write
    FOREIGN_KEYS: ClassVar[Tuple[Tuple[str, str], ...]] = ()
    RETIRED_STATUS: ClassVar[int] = Status.INACTIVE

    def __init__(self, session, *, engine: Optional[QueryEngine] = None,
                 delete_policy: Optional[DeletePolicy] = None):
        self._session = session
        self._engine = engine or QueryEngine()
        self._policy = delete_policy or DeletePolicy()
        self._log = get_logger(type(self).__name__)

    @property
    def table(self) -> str:
        return self.ENTITY.TABLE

    # -------------------------
    # Hooks
    # -------------------------
    def _check(self, store, item: E, existing: Optional[dict]) -> List[FieldViolation]:
        """Cross-record rules; subclasses extend. May raise CycleError."""
        out: List[FieldViolation] = []
        for column, target in self.FOREIGN_KEYS:
            value = getattr(item, column)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                continue  # missing/malformed ids are reported by validate()
            if store.find_by_id(target, value) is None:
                out.append(FieldViolation(column, "exists", f"{target} #{value} does not exist"))
        return out

    def _on_read(self, store, item: E) -> E:
        return item

    def _prepare(self, store, item: E, existing: Optional[dict] = None) -> E:
        violations = list(item.validate())
        violations.extend(self._check(store, item, existing))
        if violations:
            raise ValidationError(violations)
        return item

    def _notify(self, tables) -> None:
        for t in sorted(tables):
            self._session.notify_data_changed(t)

    # -------------------------
    # Operations
    # -------------------------
    def create(self, entity: E) -> E:
        _, store = self._session.snapshot()
        item = replace(entity, id=None, created_at=None, updated_at=None).normalized()
        try:
            with store.transaction():
                item = self._prepare(store, item)
                row = store.insert(self.table, item.to_row())
        except _REJECTED as e:
            self._log.info("Rejected create of %s: %s", self.table, e)
            raise
        self._log.debug("Created %s #%s", self.table, row["id"])
        self._notify({self.table})
        return self.ENTITY.from_row(row)

    def update(self, entity: E) -> E:
        """Full-record replacement; created_at is kept, updated_at bumped."""
        _, store = self._session.snapshot()
        try:
            with store.transaction():
                existing = store.find_by_id(self.table, entity.id) if entity.id is not None else None
                if existing is None:
                    raise NotFoundError(self.table, entity.id)
                item = self._prepare(store, entity.normalized(), existing)
                row = store.replace(self.table, entity.id, item.to_row())
                if row is None:
                    raise NotFoundError(self.table, entity.id)
        except _REJECTED as e:
            self._log.info("Rejected update of %s #%s: %s", self.table, entity.id, e)
            raise
        self._notify({self.table})
        return self.ENTITY.from_row(row)

    def get(self, entity_id: int) -> E:
        _, store = self._session.snapshot()
        row = store.find_by_id(self.table, entity_id)
        if row is None:
            raise NotFoundError(self.table, entity_id)
        return self._on_read(store, self.ENTITY.from_row(row))

    def delete(self, entity_id: int) -> None:
        _, store = self._session.snapshot()
        try:
            with store.transaction():
                if store.find_by_id(self.table, entity_id) is None:
                    raise NotFoundError(self.table, entity_id)
                plan = self._policy.plan(store, self.table, entity_id)
                plan.execute(store)
        except _REJECTED as e:
            self._log.info("Rejected delete of %s #%s: %s", self.table, entity_id, e)
            raise
        self._log.info("Deleted %s #%s (%d row(s))", self.table, entity_id, len(plan.deletes))
        self._notify(plan.tables())

    def list(self, query: QueryParams) -> ListResult[E]:
        if type(query).ENTITY is not self.ENTITY:
            raise TypeError(f"{type(query).__name__} cannot list {self.table}")
        while True:
            generation, store = self._session.snapshot()
            try:
                return self._engine.run(store, query)
            except StoreClosedError:
                if self._session.generation == generation:
                    raise
                self._log.info("Binding switched during list of %s; retrying", self.table)

    def retire(self, entity_id: int) -> E:
        current = self.get(entity_id)
        return self.update(replace(current, status=self.RETIRED_STATUS))


# ---------- per-entity services ----------

class ClientService(EntityService[Client]):
    ENTITY = Client


class HumanResourceService(EntityService[HumanResource]):
    ENTITY = HumanResource


class ProjectService(EntityService[Project]):
    ENTITY = Project
    FOREIGN_KEYS = (("client_id", "clients"),)


class ProjectRoleService(EntityService[ProjectRole]):
    ENTITY = ProjectRole
    FOREIGN_KEYS = (("project_id", "projects"),)

    def _check(self, store, item, existing):
        out = super()._check(store, item, existing)
        if item.project_id is not None and item.name:
            pred = Predicate.where(
                Eq("project_id", item.project_id),
                Eq("name", item.name),
                Eq("level", int(item.level) if isinstance(item.level, int) else item.level),
            )
            if any(r["id"] != item.id for r in store.find_matching(self.table, pred, BY_ID)):
                out.append(FieldViolation("name", "unique", "role already exists at this level"))
        return out


class MilestoneService(EntityService[Milestone]):
    ENTITY = Milestone
    FOREIGN_KEYS = (("project_id", "projects"),)

    def _check(self, store, item, existing):
        out = super()._check(store, item, existing)
        if existing is not None and existing["project_id"] != item.project_id:
            if store.count_matching(Task.TABLE, Predicate.where(Eq("milestone_id", item.id))):
                out.append(FieldViolation("project_id", "has_tasks", "milestone still has tasks in its project"))
        return out


class TaskService(EntityService[Task]):
    ENTITY = Task
    FOREIGN_KEYS = (("project_id", "projects"), ("milestone_id", "milestones"))
    RETIRED_STATUS = TaskStatus.CANCELLED

    def __init__(self, session, *, hierarchy: Optional[TaskHierarchy] = None,
                 status_rules: Optional[TaskStatusRules] = None, **kwargs):
        super().__init__(session, **kwargs)
        self._hierarchy = hierarchy or TaskHierarchy()
        self._status_rules = status_rules or TaskStatusRules()

    def _check(self, store, item, existing):
        # Parent chain first: a cycle is reported on its own
        hierarchy: List[FieldViolation] = []
        self._hierarchy.resolve(store, item, hierarchy)

        out = super()._check(store, item, existing)
        out.extend(hierarchy)
        if item.milestone_id is not None and not any(v.field == "milestone_id" for v in out):
            milestone = store.find_by_id(Milestone.TABLE, item.milestone_id)
            if milestone is not None and milestone["project_id"] != item.project_id:
                out.append(FieldViolation("milestone_id", "same_project", "milestone belongs to another project"))
        if existing is not None and existing["project_id"] != item.project_id:
            if store.count_matching(self.table, Predicate.where(Eq("parent_id", item.id))):
                out.append(FieldViolation("project_id", "has_children", "move or detach subtasks first"))
        if (existing is not None and is_member(TaskStatus, item.status)
                and not self._status_rules.is_allowed(existing["status"], item.status)):
            out.append(FieldViolation("status", "transition", "status change not allowed"))
        return out

    def _on_read(self, store, item):
        item.level = self._hierarchy.derive_level(store, item)
        return item


class ProjectResourceService(EntityService[ProjectResource]):
    ENTITY = ProjectResource

    def __init__(self, session, *, allocation_rules: Optional[AllocationValidator] = None, **kwargs):
        super().__init__(session, **kwargs)
        self._rules = allocation_rules or AllocationValidator()

    def _check(self, store, item, existing):
        # Existence of project and human resource is part of the allocation rules
        return self._rules.check(store, item)
