# Rev 0.1.2
"""Record-store contract and the in-memory store behind draft sessions.

Stores hold rows (dicts of primitives) per table, assign ids, and stamp
created_at/updated_at. They know nothing about validation.
"""
from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol

from plancraft.models.errors import StoreClosedError
from plancraft.models.types import ENTITY_TYPES
from plancraft.query.predicate import Predicate, SortPlan, paginate
from plancraft.utils.logging_setup import get_logger

from .db import Database, utc_now_iso

Row = Dict[str, Any]


class RecordStore(Protocol):
    def insert(self, table: str, row: Row) -> Row: ...
    def replace(self, table: str, row_id: int, row: Row) -> Optional[Row]: ...
    def find_by_id(self, table: str, row_id: int) -> Optional[Row]: ...
    def find_matching(self, table: str, predicate: Predicate, sort: SortPlan,
                      offset: int = 0, limit: Optional[int] = None) -> List[Row]: ...
    def count_matching(self, table: str, predicate: Predicate) -> int: ...
    def delete(self, table: str, row_id: int) -> bool: ...
    def transaction(self) -> Any: ...
    def export_to(self, path: Path) -> None: ...
    def close(self) -> None: ...


def write_rows(db: Database, tables: Dict[str, List[Row]]) -> None:
    """Bulk-copy rows, ids included, into a freshly migrated database."""
    con = db.conn
    con.execute("BEGIN;")
    try:
        con.execute("PRAGMA defer_foreign_keys = ON;")
        for table in ENTITY_TYPES:
            for row in tables.get(table, ()):
                cols = list(row.keys())
                con.execute(
                    f"INSERT INTO {table}({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})",
                    [row[c] for c in cols],
                )
    except Exception:
        con.execute("ROLLBACK;")
        raise
    else:
        con.execute("COMMIT;")


class InMemoryRecordStore:
    """Draft dataset: plain dicts, lost unless exported."""

    def __init__(self):
        self._log = get_logger("InMemoryRecordStore")
        self._tables: Dict[str, Dict[int, Row]] = {t: {} for t in ENTITY_TYPES}
        self._next_id: Dict[str, int] = {t: 1 for t in ENTITY_TYPES}
        self._lock = threading.RLock()
        self._closed = False

    def _table(self, table: str) -> Dict[int, Row]:
        if self._closed:
            raise StoreClosedError("draft store is closed")
        return self._tables[table]

    def insert(self, table: str, row: Row) -> Row:
        with self._lock:
            rows = self._table(table)
            new = dict(row)
            new["id"] = self._next_id[table]
            self._next_id[table] += 1
            now = utc_now_iso()
            new["created_at"] = now
            new["updated_at"] = now
            rows[new["id"]] = new
            return dict(new)

    def replace(self, table: str, row_id: int, row: Row) -> Optional[Row]:
        with self._lock:
            rows = self._table(table)
            old = rows.get(row_id)
            if old is None:
                return None
            new = dict(row)
            new["id"] = row_id
            new["created_at"] = old["created_at"]
            new["updated_at"] = utc_now_iso()
            rows[row_id] = new
            return dict(new)

    def find_by_id(self, table: str, row_id: int) -> Optional[Row]:
        with self._lock:
            row = self._table(table).get(row_id)
            return dict(row) if row is not None else None

    def find_matching(self, table: str, predicate: Predicate, sort: SortPlan,
                      offset: int = 0, limit: Optional[int] = None) -> List[Row]:
        with self._lock:
            hits = [r for r in self._table(table).values() if predicate.matches(r)]
            return [dict(r) for r in paginate(sort.sort_rows(hits), offset, limit)]

    def count_matching(self, table: str, predicate: Predicate) -> int:
        with self._lock:
            return sum(1 for r in self._table(table).values() if predicate.matches(r))

    def delete(self, table: str, row_id: int) -> bool:
        with self._lock:
            return self._table(table).pop(row_id, None) is not None

    @contextmanager
    def transaction(self) -> Iterator["InMemoryRecordStore"]:
        """All-or-nothing: restore the snapshot if the block raises."""
        with self._lock:
            if self._closed:
                raise StoreClosedError("draft store is closed")
            saved_tables = copy.deepcopy(self._tables)
            saved_ids = dict(self._next_id)
            try:
                yield self
            except BaseException:
                self._tables = saved_tables
                self._next_id = saved_ids
                raise

    def export_to(self, path: Path) -> None:
        with self._lock:
            if self._closed:
                raise StoreClosedError("draft store is closed")
            snapshot = {t: [dict(r) for r in sorted(rows.values(), key=lambda r: r["id"])]
                        for t, rows in self._tables.items()}
        db = Database(path)
        try:
            db.run_migrations()
            write_rows(db, snapshot)
        finally:
            db.close()
        self._log.info("Draft exported to %s", path)

    def close(self) -> None:
        with self._lock:
            self._closed = True
