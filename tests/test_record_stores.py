# tests/test_record_stores.py
from __future__ import annotations

from pathlib import Path

import pytest

from plancraft.models.errors import StoreClosedError
from plancraft.query.predicate import BY_ID, MATCH_ALL, Eq, Predicate
from plancraft.repositories.db import Database
from plancraft.repositories.record_store import InMemoryRecordStore
from plancraft.repositories.sqlite_record_store import SQLiteRecordStore

CLIENT = {"name": "Acme", "email": "ops@acme.io", "phone": None, "address": None,
          "contact_person": None, "notes": None, "status": 2}


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        s = InMemoryRecordStore()
    else:
        db = Database(tmp_path / "plan.db")
        db.run_migrations()
        s = SQLiteRecordStore(db)
    yield s
    s.close()


def test_insert_assigns_id_and_timestamps(store):
    row = store.insert("clients", {**CLIENT, "id": 50, "created_at": "x"})
    assert row["id"] == 1
    assert row["created_at"] != "x"
    assert row["created_at"] == row["updated_at"]
    assert store.find_by_id("clients", 1)["name"] == "Acme"


def test_replace_keeps_created_at(store):
    row = store.insert("clients", CLIENT)
    new = store.replace("clients", row["id"], {**row, "name": "Acme Ltd", "created_at": "bogus"})
    assert new["name"] == "Acme Ltd"
    assert new["created_at"] == row["created_at"]
    assert store.replace("clients", 999, CLIENT) is None


def test_delete_reports_whether_a_row_went(store):
    row = store.insert("clients", CLIENT)
    assert store.delete("clients", row["id"]) is True
    assert store.delete("clients", row["id"]) is False
    assert store.find_by_id("clients", row["id"]) is None


def test_transaction_rolls_back_on_error(store):
    store.insert("clients", CLIENT)
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert("clients", {**CLIENT, "name": "Beta"})
            store.delete("clients", 1)
            raise RuntimeError("boom")
    rows = store.find_matching("clients", MATCH_ALL, BY_ID)
    assert [r["name"] for r in rows] == ["Acme"]


def test_nested_transactions_commit_together(store):
    with store.transaction():
        store.insert("clients", CLIENT)
        with store.transaction():
            store.insert("clients", {**CLIENT, "name": "Beta"})
    assert store.count_matching("clients", MATCH_ALL) == 2


def test_find_matching_offset_and_limit(store):
    for i in range(5):
        store.insert("clients", {**CLIENT, "name": f"C{i}"})
    rows = store.find_matching("clients", MATCH_ALL, BY_ID, offset=1, limit=2)
    assert [r["name"] for r in rows] == ["C1", "C2"]
    rest = store.find_matching("clients", MATCH_ALL, BY_ID, offset=3)
    assert [r["name"] for r in rest] == ["C3", "C4"]
    assert store.count_matching("clients", Predicate.where(Eq("name", "C4"))) == 1


def test_closed_store_refuses_calls(store):
    store.close()
    with pytest.raises(StoreClosedError):
        store.find_by_id("clients", 1)
    with pytest.raises(StoreClosedError):
        store.insert("clients", CLIENT)
