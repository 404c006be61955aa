# Rev 0.2.1

"""SQLite connection & migration runner
- WAL mode, foreign_keys=ON (pragmas come from settings["db"])
- Applies SQL files from the packaged migrations dir in lexical order
- Tracks applied files in schema_migrations(filename, sha256, applied_at_utc)
"""
from __future__ import annotations
import hashlib
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from plancraft.utils.logging_setup import get_logger
from plancraft.utils.paths import MIGRATIONS_DIR

_DEFAULT_PRAGMAS: Dict[str, Any] = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "foreign_keys": True,
    "busy_timeout_ms": 5000,
    "temp_store": "MEMORY",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def fold_case(value: Any) -> Any:
    """Unicode-aware lower() for SQL, matching str.lower() used by the draft store."""
    return value.lower() if isinstance(value, str) else value


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class Database:
    def __init__(self, path: Path | str, pragmas: Optional[Dict[str, Any]] = None) -> None:
        self._log = get_logger("Database")
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        p = {**_DEFAULT_PRAGMAS, **(pragmas or {})}
        # isolation_level=None: autocommit; callers open explicit transactions
        self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.create_function("py_lower", 1, fold_case, deterministic=True)
        self.conn.execute(f"PRAGMA journal_mode={p['journal_mode']};")
        self.conn.execute(f"PRAGMA synchronous={p['synchronous']};")
        self.conn.execute(f"PRAGMA foreign_keys={'ON' if p['foreign_keys'] else 'OFF'};")
        self.conn.execute(f"PRAGMA busy_timeout={int(p['busy_timeout_ms'])};")
        self.conn.execute(f"PRAGMA temp_store={p['temp_store']};")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            " filename TEXT PRIMARY KEY, sha256 TEXT NOT NULL, applied_at_utc TEXT NOT NULL)"
        )
        self._log.info("SQLite open %s", self.path)

    def close(self) -> None:
        self.conn.close()
        self._log.info("SQLite closed %s", self.path)

    def applied(self) -> dict[str, str]:
        rows = self.conn.execute("SELECT filename, sha256 FROM schema_migrations").fetchall()
        return {r[0]: r[1] for r in rows}

    def pending(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
        applied = self.applied()
        return [p for p in sorted(Path(migrations_dir).glob("*.sql")) if p.name not in applied]

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        applied = self.applied()
        done: list[str] = []
        for p in sorted(Path(migrations_dir).glob("*.sql")):
            sql = p.read_text(encoding="utf-8")
            digest = sha256_text(sql)
            if p.name in applied:
                if applied[p.name] != digest:
                    self._log.warning("Migration %s changed after it was applied", p.name)
                continue
            # executescript commits any open transaction first, so it runs on its own
            try:
                self.conn.executescript(f"BEGIN;\n{sql}\nCOMMIT;")
            except sqlite3.Error:
                if self.conn.in_transaction:
                    self.conn.execute("ROLLBACK;")
                self._log.error("Migration %s failed", p.name)
                raise
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, sha256, applied_at_utc) VALUES(?, ?, ?)",
                (p.name, digest, utc_now_iso()),
            )
            self._log.info("Applied migration %s", p.name)
            done.append(p.name)
        return done
