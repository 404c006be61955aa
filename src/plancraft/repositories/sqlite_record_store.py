# Rev 0.1.3
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from plancraft.models.errors import ConflictError, StoreClosedError, ValidationError
from plancraft.query.predicate import Predicate, SortPlan
from plancraft.utils.logging_setup import get_logger

from .db import Database, utc_now_iso

Row = Dict[str, Any]

_MANAGED = ("id", "created_at", "updated_at")


class SQLiteRecordStore:
    """
    Bound dataset: every call reads and writes the plan file directly.
    Writes outside transaction() autocommit; inside, they commit together.
    """

    def __init__(self, db: Database):
        self._db = db
        self._log = get_logger("SQLiteRecordStore")
        self._lock = threading.RLock()
        self._depth = 0
        self._closed = False

    # -------------------------
    # Connection handling
    # -------------------------
    def _conn(self) -> sqlite3.Connection:
        if self._closed:
            raise StoreClosedError(f"plan file {self._db.path} is closed")
        return self._db.conn

    def _integrity(self, table: str, exc: sqlite3.IntegrityError) -> ValidationError:
        self._log.error("Integrity error on %s: %s", table, exc)
        return ValidationError.single("record", "integrity", str(exc))

    # -------------------------
    # Writes
    # -------------------------
    def insert(self, table: str, row: Row) -> Row:
        with self._lock:
            con = self._conn()
            now = utc_now_iso()
            data = {k: v for k, v in row.items() if k not in _MANAGED}
            data["created_at"] = now
            data["updated_at"] = now
            cols = list(data.keys())
            try:
                cur = con.execute(
                    f"INSERT INTO {table}({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})",
                    [data[c] for c in cols],
                )
            except sqlite3.IntegrityError as e:
                raise self._integrity(table, e) from e
            return self.find_by_id(table, cur.lastrowid)

    def replace(self, table: str, row_id: int, row: Row) -> Optional[Row]:
        with self._lock:
            con = self._conn()
            data = {k: v for k, v in row.items() if k not in _MANAGED}
            data["updated_at"] = utc_now_iso()
            assignments = ", ".join(f"{c} = ?" for c in data)
            try:
                cur = con.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?",
                    [*data.values(), row_id],
                )
            except sqlite3.IntegrityError as e:
                raise self._integrity(table, e) from e
            if cur.rowcount == 0:
                return None
            return self.find_by_id(table, row_id)

    def delete(self, table: str, row_id: int) -> bool:
        with self._lock:
            con = self._conn()
            try:
                cur = con.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
            except sqlite3.IntegrityError as e:
                self._log.error("Delete of %s #%s blocked: %s", table, row_id, e)
                raise ConflictError(table, row_id, "foreign key", 0) from e
            return cur.rowcount > 0

    # -------------------------
    # Reads
    # -------------------------
    def find_by_id(self, table: str, row_id: int) -> Optional[Row]:
        with self._lock:
            row = self._conn().execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
            return dict(row) if row else None

    def find_matching(self, table: str, predicate: Predicate, sort: SortPlan,
                      offset: int = 0, limit: Optional[int] = None) -> List[Row]:
        where, params = predicate.to_sql()
        sql = f"SELECT * FROM {table} WHERE {where} ORDER BY {sort.to_sql()}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = [*params, limit, offset]
        elif offset:
            sql += " LIMIT -1 OFFSET ?"
            params = [*params, offset]
        with self._lock:
            return [dict(r) for r in self._conn().execute(sql, params).fetchall()]

    def count_matching(self, table: str, predicate: Predicate) -> int:
        where, params = predicate.to_sql()
        with self._lock:
            row = self._conn().execute(f"SELECT COUNT(*) FROM {table} WHERE {where}", params).fetchone()
            return int(row[0])

    # -------------------------
    # Transactions & lifecycle
    # -------------------------
    @contextmanager
    def transaction(self) -> Iterator["SQLiteRecordStore"]:
        with self._lock:
            con = self._conn()
            if self._depth:
                # Nested blocks join the outer transaction
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            con.execute("BEGIN;")
            con.execute("PRAGMA defer_foreign_keys = ON;")
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._depth = 0
                con.execute("ROLLBACK;")
                raise
            self._depth = 0
            try:
                con.execute("COMMIT;")
            except sqlite3.IntegrityError as e:
                con.execute("ROLLBACK;")
                raise self._integrity("transaction", e) from e

    def export_to(self, path: Path) -> None:
        with self._lock:
            con = self._conn()
            target = sqlite3.connect(Path(path))
            try:
                con.backup(target)
            finally:
                target.close()
        self._log.info("Plan %s copied to %s", self._db.path, path)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._db.close()
