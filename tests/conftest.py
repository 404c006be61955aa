# Rev 0.1.0

"""Pytest fixtures for planCraft (Rev 0.1.0)"""
from __future__ import annotations
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from plancraft.services.planning import PlanningServices
from plancraft.utils.config import defaults
from plancraft.utils.logging_setup import setup_logging
from plancraft.viewmodels.session_state import Binding, SessionState, default_store_factory


@pytest.fixture(scope="session", autouse=True)
def _logs(tmp_path_factory):
    # Keep test runs out of the user's XDG state dir
    setup_logging(tmp_path_factory.mktemp("logs"), "WARNING")


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def draft_session(qapp):
    session = SessionState()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def sqlite_session(qapp, tmp_path: Path):
    session = SessionState(default_store_factory(defaults()), initial=Binding.bound(tmp_path / "plan.db"))
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(params=["draft", "sqlite"])
def session(request, qapp, tmp_path: Path):
    """Same test against the in-memory draft and a SQLite plan file."""
    if request.param == "draft":
        s = SessionState()
    else:
        s = SessionState(default_store_factory(defaults()), initial=Binding.bound(tmp_path / "plan.db"))
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def planning(session) -> PlanningServices:
    return PlanningServices.build(session)


@pytest.fixture()
def draft_planning(draft_session) -> PlanningServices:
    return PlanningServices.build(draft_session)
