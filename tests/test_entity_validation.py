# tests/test_entity_validation.py
from __future__ import annotations

from datetime import date, datetime

import pytest

from plancraft.models.entities import Client, HumanResource, Milestone, Project, ProjectRole, Task
from plancraft.models.errors import FieldViolation, ValidationError
from plancraft.models.types import DEFAULT_WORKING_DAYS, Priority, RoleLevel, Status, TaskStatus, is_member


def rules(entity):
    return {(v.field, v.rule) for v in entity.validate()}


def test_client_requires_name_and_email():
    assert rules(Client()) >= {("name", "required"), ("email", "required")}


def test_client_rejects_bad_email_and_long_phone():
    c = Client(name="Acme", email="not-an-email", phone="1" * 51)
    assert rules(c) == {("email", "email"), ("phone", "max_length")}


def test_client_normalized_trims_text():
    c = Client(name="  Acme  ", email=" ops@acme.io ").normalized()
    assert c.name == "Acme"
    assert c.email == "ops@acme.io"
    assert c.validate() == []


def test_client_status_must_be_known():
    assert ("status", "choice") in rules(Client(name="A", email="a@b.co", status=3))
    assert ("status", "choice") in rules(Client(name="A", email="a@b.co", status=True))


def test_human_resource_title_and_level_required():
    assert rules(HumanResource(name="Ada")) == {("title", "required"), ("level", "required")}
    assert HumanResource(name="Ada", title="Engineer", level="Senior").validate() == []


def test_project_defaults_after_normalize():
    p = Project(name="Apollo", client_id=1, timezone=" ", currency=" eur ").normalized()
    assert p.hours_per_day == 8.0
    assert p.days_per_week == 5.0
    assert p.working_days_per_week == DEFAULT_WORKING_DAYS
    assert p.timezone == "UTC"
    assert p.currency == "EUR"
    assert p.validate() == []


def test_project_parses_iso_dates_and_checks_order():
    p = Project(name="Apollo", client_id=1, start_date="2024-03-01", end_date="2024-01-01").normalized()
    assert p.start_date == date(2024, 3, 1)
    assert ("end_date", "date_order") in rules(p)


def test_project_unparseable_date_is_a_violation():
    p = Project(name="Apollo", client_id=1, start_date="03/01/2024").normalized()
    assert ("start_date", "date") in rules(p)


@pytest.mark.parametrize(
    "days, rule",
    [
        ((1, 7), "weekday"),
        ((1, 1, 2), "duplicate"),
        ((-1,), "weekday"),
    ],
)
def test_project_working_days_rules(days, rule):
    p = Project(name="Apollo", client_id=1, working_days_per_week=days).normalized()
    assert ("working_days_per_week", rule) in rules(p)


def test_project_numeric_ranges():
    p = Project(name="Apollo", client_id=1, hours_per_day=0.5, days_per_week=8).normalized()
    assert rules(p) == {("hours_per_day", "min"), ("days_per_week", "max")}


def test_project_currency_and_timezone_format():
    p = Project(name="Apollo", client_id=1, currency="EURO", timezone="Not a zone").normalized()
    assert rules(p) == {("currency", "currency"), ("timezone", "timezone")}
    assert Project(name="A", client_id=1, timezone="America/Argentina/Buenos_Aires").normalized().validate() == []


def test_project_row_round_trip_keeps_weekdays():
    p = Project(id=4, name="Apollo", client_id=1, working_days_per_week=(0, 6), start_date=date(2024, 1, 1))
    row = p.to_row()
    assert row["working_days_per_week"] == "[0, 6]"
    assert row["start_date"] == "2024-01-01"
    back = Project.from_row({**row, "created_at": "2024-01-01T00:00:00.000000+00:00", "extra": 1})
    assert back.working_days_per_week == (0, 6)
    assert back.start_date == date(2024, 1, 1)
    assert isinstance(back.created_at, datetime)


def test_project_role_level_and_headcount():
    r = ProjectRole(project_id=1, name="Dev", level=9, headcount=-1)
    assert rules(r) == {("level", "choice"), ("headcount", "min")}
    assert ProjectRole(project_id=1, name="Dev", level=RoleLevel.C_LEVEL).validate() == []


def test_milestone_date_order():
    m = Milestone(project_id=1, name="Beta", start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))
    assert rules(m) == {("end_date", "date_order")}


def test_task_closed_status_and_priority_sets():
    t = Task(project_id=1, name="Design", status=5, priority=0, estimated_effort=-1)
    assert rules(t) == {("status", "choice"), ("priority", "choice"), ("estimated_effort", "min")}
    ok = Task(project_id=1, name="Design", status=TaskStatus.CANCELLED, priority=Priority.CRITICAL)
    assert ok.validate() == []
    assert ok.is_root


def test_to_row_stores_enum_members_as_int():
    row = Task(project_id=1, name="x", status=TaskStatus.DONE).to_row()
    assert row["status"] == 3 and type(row["status"]) is int


def test_is_member_rejects_bool_and_strings():
    assert is_member(Status, 2)
    assert not is_member(Status, True)
    assert not is_member(Status, "2")


def test_validation_error_lists_every_violation():
    err = ValidationError([FieldViolation("name", "required"), FieldViolation("email", "email")])
    assert "name: required" in str(err)
    assert "email: email" in str(err)
    assert err.fields() == {"name", "email"}
    assert err.has("email", "email")
    assert not err.has("email", "required")
