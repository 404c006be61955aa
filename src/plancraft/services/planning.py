# Rev 0.1.0

"""Wiring for the per-entity services over one SessionState."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from plancraft.query.engine import QueryEngine

from .delete_policy import DeletePolicy
from .entity_service import (
    ClientService,
    HumanResourceService,
    MilestoneService,
    ProjectResourceService,
    ProjectRoleService,
    ProjectService,
    TaskService,
)


@dataclass
class PlanningServices:
    clients: ClientService
    human_resources: HumanResourceService
    projects: ProjectService
    project_roles: ProjectRoleService
    milestones: MilestoneService
    tasks: TaskService
    project_resources: ProjectResourceService

    @classmethod
    def build(cls, session, delete_policy: Optional[DeletePolicy] = None,
              engine: Optional[QueryEngine] = None) -> "PlanningServices":
        shared = {"engine": engine or QueryEngine(), "delete_policy": delete_policy or DeletePolicy()}
        return cls(
            clients=ClientService(session, **shared),
            human_resources=HumanResourceService(session, **shared),
            projects=ProjectService(session, **shared),
            project_roles=ProjectRoleService(session, **shared),
            milestones=MilestoneService(session, **shared),
            tasks=TaskService(session, **shared),
            project_resources=ProjectResourceService(session, **shared),
        )

    def for_table(self, table: str):
        return getattr(self, table)
