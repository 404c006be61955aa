from .allocation_rules import AllocationValidator
from .delete_policy import DeletePolicy, OnDelete, Relation
from .entity_service import EntityService
from .planning import PlanningServices
from .status_rules import TaskStatusRules
from .task_hierarchy import TaskHierarchy

__all__ = [
    "AllocationValidator",
    "DeletePolicy",
    "EntityService",
    "OnDelete",
    "PlanningServices",
    "Relation",
    "TaskHierarchy",
    "TaskStatusRules",
]
