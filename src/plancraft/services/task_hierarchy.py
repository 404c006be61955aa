# Rev 0.1.1

"""Task hierarchy rules
- level is derived: root = 1, child = parent.level + 1
- a parent must exist and belong to the same project
- the parent chain must never loop back to the task itself
"""
from __future__ import annotations

from typing import List, Optional

from plancraft.models.entities import Task
from plancraft.models.errors import CycleError, FieldViolation
from plancraft.utils.logging_setup import get_logger

TASKS = Task.TABLE


class TaskHierarchy:
    def __init__(self):
        self._log = get_logger("TaskHierarchy")

    def ancestors(self, store, parent_id: Optional[int], task_id: Optional[int] = None) -> List[dict]:
        """Rows from `parent_id` up to the root, nearest first.

        Stops early at a missing row; the caller decides whether that matters.
        """
        chain: List[dict] = []
        seen = set()
        current = parent_id
        while current is not None:
            if task_id is not None and current == task_id:
                raise CycleError(task_id, parent_id)
            if current in seen:
                # Stored chain already loops without passing through task_id
                self._log.error("Task chain loops at #%s", current)
                raise CycleError(task_id if task_id is not None else current, parent_id)
            seen.add(current)
            row = store.find_by_id(TASKS, current)
            if row is None:
                break
            chain.append(row)
            current = row.get("parent_id")
        return chain

    def resolve(self, store, task: Task, violations: List[FieldViolation]) -> Task:
        """Return `task` with its level derived; parent problems are appended to `violations`.

        CycleError is raised straight away, ahead of any collected violation.
        """
        if task.parent_id is None:
            task.level = 1
            return task
        if task.id is not None and task.parent_id == task.id:
            raise CycleError(task.id, task.parent_id)

        chain = self.ancestors(store, task.parent_id, task.id)
        if not chain:
            violations.append(FieldViolation("parent_id", "exists", f"task #{task.parent_id} does not exist"))
            task.level = 1
            return task
        if chain[0]["project_id"] != task.project_id:
            violations.append(FieldViolation("parent_id", "same_project", "parent task belongs to another project"))
        task.level = len(chain) + 1
        return task

    def derive_level(self, store, task: Task) -> int:
        """Level from the live chain; used on read so stale stored levels are never returned."""
        if task.parent_id is None:
            return 1
        return len(self.ancestors(store, task.parent_id, task.id)) + 1
