# tests/test_allocation_rules.py
from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from plancraft.models.entities import Client, HumanResource, Project, ProjectResource
from plancraft.models.errors import ValidationError
from plancraft.services.allocation_rules import window_violations


@pytest.fixture()
def setup(planning):
    client = planning.clients.create(Client(name="Acme", email="ops@acme.io"))
    project = planning.projects.create(Project(
        name="Apollo", client_id=client.id,
        start_date=date(2024, 1, 1), end_date=date(2024, 3, 31),
    ))
    hr = planning.human_resources.create(HumanResource(name="Ada", title="Engineer", level="Senior"))
    return project, hr


def _alloc(project, hr, **kw):
    kw.setdefault("role", "Dev")
    return ProjectResource(project_id=project.id, human_resource_id=hr.id, **kw)


def test_allocation_starting_after_project_end_is_rejected(planning, setup):
    project, hr = setup
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(_alloc(project, hr, start_date=date(2024, 4, 1)))
    assert exc.value.has("start_date", "outside_project")


def test_allocation_inside_project_window_is_accepted(planning, setup):
    project, hr = setup
    pr = planning.project_resources.create(_alloc(
        project, hr, start_date=date(2024, 1, 1), end_date=date(2024, 3, 31), allocation=50, cost=1200.5,
    ))
    assert pr.id is not None
    assert pr.start_date == date(2024, 1, 1)
    assert pr.allocation == 50


def test_end_before_project_start_is_rejected(planning, setup):
    project, hr = setup
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(_alloc(project, hr, end_date=date(2023, 12, 31)))
    assert exc.value.has("end_date", "outside_project")


@pytest.mark.parametrize("value", [0, 100, 0.5, 99.9])
def test_allocation_bounds_accepted(planning, setup, value):
    project, hr = setup
    assert planning.project_resources.create(_alloc(project, hr, allocation=value)).allocation == value


@pytest.mark.parametrize("value, rule", [(-1, "min"), (101, "max"), ("50", "type")])
def test_allocation_bounds_rejected(planning, setup, value, rule):
    project, hr = setup
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(_alloc(project, hr, allocation=value))
    assert exc.value.has("allocation", rule)


def test_negative_cost_rejected(planning, setup):
    project, hr = setup
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(_alloc(project, hr, cost=-0.01))
    assert exc.value.has("cost", "min")


def test_allocation_end_before_start(planning, setup):
    project, hr = setup
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(_alloc(
            project, hr, start_date=date(2024, 2, 1), end_date=date(2024, 1, 15)))
    assert exc.value.has("end_date", "date_order")


def test_one_allocation_per_project_and_person(planning, setup):
    project, hr = setup
    first = planning.project_resources.create(_alloc(project, hr))
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(_alloc(project, hr, role="QA"))
    assert exc.value.has("human_resource_id", "unique")
    # Updating the existing allocation is not a duplicate
    assert planning.project_resources.update(replace(first, allocation=25)).allocation == 25


def test_missing_project_and_person_are_reported_together(planning, setup):
    with pytest.raises(ValidationError) as exc:
        planning.project_resources.create(ProjectResource(project_id=404, human_resource_id=405))
    assert exc.value.has("project_id", "exists")
    assert exc.value.has("human_resource_id", "exists")


def test_project_without_dates_skips_containment(planning, setup):
    project, hr = setup
    open_project = planning.projects.update(replace(project, start_date=None, end_date=None))
    pr = planning.project_resources.create(_alloc(open_project, hr, start_date=date(2030, 1, 1)))
    assert pr.start_date == date(2030, 1, 1)


def test_each_bound_checked_against_existing_project_bounds():
    assert window_violations(date(2024, 1, 1), None, date(2024, 2, 1), None)
    assert not window_violations(date(2025, 1, 1), None, date(2024, 2, 1), None)
    assert window_violations(None, date(2024, 5, 1), None, date(2024, 4, 30))
    assert not window_violations(None, None, date(2024, 1, 1), date(2024, 1, 2))
