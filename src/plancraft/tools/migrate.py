# File: src/plancraft/tools/migrate.py
# Usage examples:
#   plancraft-migrate up
#   plancraft-migrate status --db /path/to/plan.db
#   plancraft-migrate verify --db /path/to/plan.db
#   plancraft-migrate rebuild --db /path/to/plan.db
#
# Notes:
# - DB path defaults to env PLANCRAFT_DB or the XDG data dir
# - Applies the packaged migrations/*.sql in lexicographic order
# - Records applied migrations (name + sha256) in schema_migrations

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from plancraft.models.types import ENTITY_TYPES
from plancraft.repositories.db import Database, sha256_text
from plancraft.utils.config import load_settings
from plancraft.utils.logging_setup import setup_logging
from plancraft.utils.paths import DEFAULT_PLAN_PATH, MIGRATIONS_DIR

DEFAULT_DB = Path(os.environ.get("PLANCRAFT_DB", DEFAULT_PLAN_PATH))


def open_db(db_path: Path) -> Database:
    return Database(db_path, pragmas=load_settings().get("db"))


def cmd_status(db_path: Path, migrations_dir: Path) -> int:
    db = open_db(db_path)
    try:
        applied = db.applied()
        pending = db.pending(migrations_dir)
        print(f"DB: {db_path}")
        print(f"Migrations dir: {migrations_dir}")
        print(f"Applied count: {len(applied)}")
        for name in sorted(applied):
            print(f"  ✔ {name}")
        print(f"Pending count: {len(pending)}")
        for p in pending:
            print(f"  ⧗ {p.name}")
        return 0
    finally:
        db.close()


def cmd_up(db_path: Path, migrations_dir: Path) -> int:
    db = open_db(db_path)
    try:
        done = db.run_migrations(migrations_dir)
        if done:
            print(f"✓ Applied {len(done)} migration(s). Database is up to date.")
        else:
            print("✓ No changes. Database already up to date.")
        return 0
    finally:
        db.close()


def cmd_rebuild(db_path: Path, migrations_dir: Path) -> int:
    if db_path.exists():
        print(f"⟲ Rebuilding: removing existing DB {db_path}")
        db_path.unlink()
    for suffix in ("-wal", "-shm"):
        side = db_path.with_name(db_path.name + suffix)
        if side.exists():
            side.unlink()
    return cmd_up(db_path, migrations_dir)


def cmd_verify(db_path: Path, migrations_dir: Path) -> int:
    if not db_path.exists():
        print(f"❌ No database at {db_path}")
        return 1
    db = open_db(db_path)
    try:
        names = {r[0] for r in db.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%';"
        ).fetchall()}
        missing = [t for t in (*ENTITY_TYPES, "schema_migrations") if t not in names]
        if missing:
            print("❌ Missing tables:", ", ".join(missing))
            return 2

        applied = db.applied()
        changed = [
            p.name for p in sorted(Path(migrations_dir).glob("*.sql"))
            if p.name in applied and applied[p.name] != sha256_text(p.read_text(encoding="utf-8"))
        ]
        if changed:
            print("❌ Migrations edited after they were applied:", ", ".join(changed))
            return 3

        (fk,) = db.conn.execute("PRAGMA foreign_keys;").fetchone()
        if not fk:
            print("❌ foreign_keys is OFF")
            return 4
        broken = db.conn.execute("PRAGMA foreign_key_check;").fetchall()
        if broken:
            print(f"❌ {len(broken)} row(s) reference missing parents")
            return 5

        print("✓ Verification passed.")
        return 0
    finally:
        db.close()


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="plancraft-migrate", description="SQLite migration runner for planCraft plan files")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(sp: argparse.ArgumentParser):
        sp.add_argument("--db", type=Path, default=DEFAULT_DB, help=f"Path to plan file (default: {DEFAULT_DB})")
        sp.add_argument("--migrations-dir", type=Path, default=MIGRATIONS_DIR, help="Migrations directory")

    add_common(sub.add_parser("up", help="Run pending migrations"))
    add_common(sub.add_parser("status", help="Show applied and pending migrations"))
    add_common(sub.add_parser("verify", help="Check tables, migration hashes and foreign keys"))
    add_common(sub.add_parser("rebuild", help="Delete the plan file and recreate it from migrations"))
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    ns = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging()
    if ns.cmd == "status":
        return cmd_status(ns.db, ns.migrations_dir)
    if ns.cmd == "up":
        return cmd_up(ns.db, ns.migrations_dir)
    if ns.cmd == "verify":
        return cmd_verify(ns.db, ns.migrations_dir)
    if ns.cmd == "rebuild":
        return cmd_rebuild(ns.db, ns.migrations_dir)
    raise SystemExit(1)


if __name__ == "__main__":
    raise SystemExit(main())
