# Rev 0.1.2
from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Literal, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from plancraft.repositories.db import Database
from plancraft.repositories.record_store import InMemoryRecordStore
from plancraft.repositories.sqlite_record_store import SQLiteRecordStore
from plancraft.utils.logging_setup import get_logger

PLAN_SUFFIX = ".db"


@dataclass(frozen=True)
class Binding:
    kind: Literal["draft", "bound"]
    location: Optional[str] = None

    @classmethod
    def draft(cls) -> "Binding":
        return cls("draft", None)

    @classmethod
    def bound(cls, location: str | Path) -> "Binding":
        return cls("bound", str(location))

    @property
    def is_draft(self) -> bool:
        return self.kind == "draft"


@dataclass(frozen=True)
class BindingChanged:
    location: Optional[str]
    is_draft: bool


StoreFactory = Callable[[Binding], Any]


def default_store_factory(settings: Optional[Dict[str, Any]] = None) -> StoreFactory:
    """Draft -> fresh in-memory store; bound -> migrated SQLite file."""
    pragmas = (settings or {}).get("db")

    def open_store(binding: Binding):
        if binding.is_draft:
            return InMemoryRecordStore()
        db = Database(binding.location, pragmas=pragmas)
        try:
            db.run_migrations()
        except Exception:
            db.close()
            raise
        return SQLiteRecordStore(db)

    return open_store


class SessionState(QObject):
    """
    The active dataset (draft or bound file) and its record store.

    Emits:
      bindingChanged(BindingChanged) after every effective switch
      dataChanged(str)               entity type, after every committed write
    """
    bindingChanged = Signal(object)
    dataChanged = Signal(str)

    def __init__(self, store_factory: Optional[StoreFactory] = None, initial: Optional[Binding] = None):
        super().__init__()
        self._log = get_logger("SessionState")
        self._factory = store_factory or default_store_factory()
        self._lock = threading.RLock()
        self._binding = initial or Binding.draft()
        self._store = self._factory(self._binding)
        self._generation = 0

    # ---- reads
    def current_binding(self) -> Binding:
        with self._lock:
            return self._binding

    def store(self):
        with self._lock:
            return self._store

    def snapshot(self) -> Tuple[int, Any]:
        """(generation, store) taken together, for one operation."""
        with self._lock:
            return self._generation, self._store

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    # ---- commands
    def switch_binding(self, binding: Binding) -> bool:
        with self._lock:
            if binding == self._binding:
                return False
        # Open before touching state: a failure here leaves the session as it was
        new_store = self._factory(binding)
        with self._lock:
            if binding == self._binding:
                new_store.close()
                return False
            old_store = self._store
            self._binding = binding
            self._store = new_store
            self._generation += 1
        old_store.close()
        self._log.info("Binding switched to %s", binding.location or "draft")
        self.bindingChanged.emit(BindingChanged(binding.location, binding.is_draft))
        return True

    def save_as(self, location: str | Path, overwrite: bool = False) -> Path:
        """Copy the active dataset into a plan file at `location` and bind to it."""
        path = Path(location)
        if not path.suffix:
            path = path.with_suffix(PLAN_SUFFIX)
        current = self.current_binding()
        if not current.is_draft and Path(current.location) == path:
            return path
        if path.exists():
            if not overwrite:
                raise FileExistsError(path)
            path.unlink()
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self.store().export_to(path)
        except Exception:
            self._log.error("Save as %s failed", path)
            if path.exists():
                path.unlink()
            raise
        self.switch_binding(Binding.bound(path))
        return path

    def notify_data_changed(self, entity_type: str) -> None:
        self.dataChanged.emit(entity_type)

    def close(self) -> None:
        with self._lock:
            self._store.close()
