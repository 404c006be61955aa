# tests/test_config.py
from __future__ import annotations

import json
from pathlib import Path

from plancraft.utils.config import defaults, load_settings, save_settings


def test_missing_file_gives_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("PLANCRAFT_DB", raising=False)
    data = load_settings(tmp_path / "settings.json")
    assert data == defaults()
    assert data["db"]["journal_mode"] == "WAL"
    assert data["query"]["default_page_size"] == 20


def test_file_is_merged_over_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("PLANCRAFT_DB", raising=False)
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"db": {"synchronous": "FULL"}, "query": {"default_page_size": 50}}))
    data = load_settings(path)
    assert data["db"]["synchronous"] == "FULL"
    assert data["db"]["foreign_keys"] is True
    assert data["query"]["default_page_size"] == 50


def test_malformed_file_falls_back_to_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("PLANCRAFT_DB", raising=False)
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert load_settings(path) == defaults()


def test_env_overrides_last_location(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("PLANCRAFT_DB", str(tmp_path / "env.db"))
    assert load_settings(tmp_path / "settings.json")["session"]["last_location"] == str(tmp_path / "env.db")


def test_save_then_load(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("PLANCRAFT_DB", raising=False)
    path = tmp_path / "nested" / "settings.json"
    data = defaults()
    data["session"]["last_location"] = "/tmp/plan.db"
    save_settings(data, path)
    assert load_settings(path)["session"]["last_location"] == "/tmp/plan.db"


def test_defaults_are_copies():
    d = defaults()
    d["db"]["journal_mode"] = "DELETE"
    assert defaults()["db"]["journal_mode"] == "WAL"
