# tests/test_query_engine.py
from __future__ import annotations

from datetime import date, timedelta

import pytest

from plancraft.models.entities import Client, Project, Task
from plancraft.models.errors import ValidationError
from plancraft.models.types import Priority, Status
from plancraft.query import ClientQuery, ProjectQuery, SortSpec, TaskQuery, compile_query


def _clients(planning):
    made = []
    for name, email, status in [
        ("Acme", "ops@acme.io", Status.ACTIVE),
        ("Beta", "John.Doe@x.com", Status.ACTIVE),
        ("Cobalt", "info@cobalt.dev", Status.INACTIVE),
        ("doer inc", "hello@doer.org", Status.ACTIVE),
        ("Echo", "echo@echo.net", Status.ACTIVE),
    ]:
        made.append(planning.clients.create(Client(name=name, email=email, status=status)))
    return made


def test_empty_filter_matches_everything(planning):
    _clients(planning)
    res = planning.clients.list(ClientQuery())
    assert res.total == 5
    assert [c.name for c in res.data] == ["Acme", "Beta", "Cobalt", "doer inc", "Echo"]


def test_like_is_case_insensitive(planning):
    _clients(planning)
    res = planning.clients.list(ClientQuery(email_like="doe"))
    assert [c.email for c in res.data] == ["John.Doe@x.com", "hello@doer.org"]


def test_like_folds_non_ascii_case(planning):
    planning.clients.create(Client(name="École Nord", email="bonjour@ecole.fr"))
    planning.clients.create(Client(name="ÅRHUS Bygg", email="hej@aarhus.dk"))
    assert [c.name for c in planning.clients.list(ClientQuery(name_like="école")).data] == ["École Nord"]
    assert planning.clients.list(ClientQuery(name_like="århus")).total == 1


def test_like_filters_are_or_combined(planning):
    _clients(planning)
    res = planning.clients.list(ClientQuery(name_like="acme", email_like="cobalt"))
    assert sorted(c.name for c in res.data) == ["Acme", "Cobalt"]
    assert res.total == 2


def test_like_does_not_treat_percent_as_wildcard(planning):
    _clients(planning)
    assert planning.clients.list(ClientQuery(name_like="%")).total == 0


def test_exact_and_like_are_and_combined(planning):
    _clients(planning)
    res = planning.clients.list(ClientQuery(status=Status.ACTIVE, email_like="doe"))
    assert res.total == 2
    res = planning.clients.list(ClientQuery(status=Status.INACTIVE, email_like="doe"))
    assert res.total == 0


def test_in_filter_and_empty_in(planning):
    made = _clients(planning)
    ids = [made[0].id, made[2].id]
    assert {c.id for c in planning.clients.list(ClientQuery(id_in=ids)).data} == set(ids)
    assert planning.clients.list(ClientQuery(id_in=[])).total == 5


def test_total_is_independent_of_paging(planning):
    _clients(planning)
    p1 = planning.clients.list(ClientQuery(page=1, page_size=2))
    p3 = planning.clients.list(ClientQuery(page=3, page_size=2))
    assert p1.total == p3.total == 5
    assert len(p1.data) == 2
    assert len(p3.data) == 1


def test_page_beyond_range_is_empty_with_total(planning):
    _clients(planning)
    res = planning.clients.list(ClientQuery(page=5, page_size=3))
    assert res.data == []
    assert res.total == 5
    assert res.pages == 2


def test_sort_desc_with_id_tie_break(planning):
    _clients(planning)
    res = planning.clients.list(ClientQuery(sort=[SortSpec("status", "desc")]))
    actives = [c for c in res.data if c.status == Status.ACTIVE]
    assert [c.id for c in actives] == sorted(c.id for c in actives)
    assert res.data[-1].name == "Cobalt"


def test_nulls_sort_first_ascending_and_last_descending(planning):
    client = planning.clients.create(Client(name="Acme", email="ops@acme.io"))
    a = planning.projects.create(Project(name="A", client_id=client.id, start_date=date(2024, 2, 1)))
    b = planning.projects.create(Project(name="B", client_id=client.id))
    c = planning.projects.create(Project(name="C", client_id=client.id, start_date=date(2024, 1, 1)))

    asc = planning.projects.list(ProjectQuery(sort=[SortSpec("start_date")]))
    assert [p.id for p in asc.data] == [b.id, c.id, a.id]
    desc = planning.projects.list(ProjectQuery(sort=[SortSpec.parse("-start_date")]))
    assert [p.id for p in desc.data] == [a.id, c.id, b.id]


def test_date_range_filters(planning):
    client = planning.clients.create(Client(name="Acme", email="ops@acme.io"))
    for i, month in enumerate((1, 3, 6), start=1):
        planning.projects.create(Project(name=f"P{i}", client_id=client.id, start_date=date(2024, month, 1)))
    res = planning.projects.list(ProjectQuery(start_date_gte=date(2024, 2, 1), start_date_lte=date(2024, 6, 1)))
    assert [p.name for p in res.data] == ["P2", "P3"]


def test_bare_date_covers_the_whole_day_of_a_timestamp(planning):
    client = planning.clients.create(Client(name="Acme", email="ops@acme.io"))
    day = client.created_at.date()
    assert planning.clients.list(ClientQuery(created_at_lte=day)).total == 1
    assert planning.clients.list(ClientQuery(created_at_gte=day)).total == 1
    assert planning.clients.list(ClientQuery(created_at_gte=day, created_at_lte=day)).total == 1
    assert planning.clients.list(ClientQuery(created_at_lte=day - timedelta(days=1))).total == 0
    assert planning.clients.list(ClientQuery(created_at_gte=day + timedelta(days=1))).total == 0


def test_task_is_null_and_numeric_filters(planning):
    client = planning.clients.create(Client(name="Acme", email="ops@acme.io"))
    project = planning.projects.create(Project(name="Apollo", client_id=client.id))
    root = planning.tasks.create(Task(project_id=project.id, name="Root", estimated_effort=10))
    planning.tasks.create(Task(project_id=project.id, name="Child", parent_id=root.id,
                               estimated_effort=2, priority=Priority.HIGH))

    roots = planning.tasks.list(TaskQuery(project_id=project.id, parent_id_is_null=True))
    assert [t.name for t in roots.data] == ["Root"]
    children = planning.tasks.list(TaskQuery(parent_id_is_null=False))
    assert [t.name for t in children.data] == ["Child"]
    big = planning.tasks.list(TaskQuery(estimated_effort_gte=5))
    assert [t.name for t in big.data] == ["Root"]
    high = planning.tasks.list(TaskQuery(priority_in=[Priority.HIGH, Priority.CRITICAL]))
    assert [t.name for t in high.data] == ["Child"]


@pytest.mark.parametrize(
    "query, field",
    [
        (ClientQuery(page=0), "page"),
        (ClientQuery(page_size=0), "page_size"),
        (ClientQuery(sort=[SortSpec("nope")]), "sort"),
        (ClientQuery(sort=[SortSpec("name", "sideways")]), "sort"),
    ],
)
def test_bad_paging_and_sorting_are_rejected(query, field):
    with pytest.raises(ValidationError) as exc:
        compile_query(query)
    assert field in exc.value.fields()


def test_list_rejects_query_for_another_entity(planning):
    with pytest.raises(TypeError):
        planning.clients.list(ProjectQuery())
