# Rev 0.1.0

"""Task status rules
Forward path ToDo -> InProgress -> Done, and any status may be Cancelled.
Nothing is blocked: the UI uses the suggestions, the service only checks membership.
"""
from __future__ import annotations

from typing import Dict, Set

from plancraft.models.types import TaskStatus, is_member

_SUGGESTED: Dict[int, Set[int]] = {
    TaskStatus.TODO: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.DONE, TaskStatus.CANCELLED},
    TaskStatus.DONE: {TaskStatus.CANCELLED},
    TaskStatus.CANCELLED: set(),
}


class TaskStatusRules:
    def is_allowed(self, from_id: int, to_id: int) -> bool:
        return is_member(TaskStatus, from_id) and is_member(TaskStatus, to_id)

    def allowed_transitions(self, from_id: int) -> Set[int]:
        if not is_member(TaskStatus, from_id):
            return set()
        return {int(s) for s in TaskStatus if s != from_id}

    def suggested_transitions(self, from_id: int) -> Set[int]:
        return {int(s) for s in _SUGGESTED.get(from_id, set())}
