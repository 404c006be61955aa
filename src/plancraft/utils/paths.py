# Rev 0.1.0

"""Paths and XDG helpers
- Follows the XDG Base Directory layout
- Logs/state/config live under XDG dirs
- Plan files are wherever the user binds them; new ones default to the data dir
"""
from __future__ import annotations
import os
from pathlib import Path


APP_NAME = "planCraft"


XDG_DATA_HOME = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
XDG_STATE_HOME = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
XDG_CONFIG_HOME = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


DATA_DIR = XDG_DATA_HOME / APP_NAME
STATE_DIR = XDG_STATE_HOME / APP_NAME
LOGS_DIR = STATE_DIR / "logs"
CONFIG_DIR = XDG_CONFIG_HOME / APP_NAME

# Packaged SQL migrations
MIGRATIONS_DIR = (Path(__file__).resolve().parents[1] / "repositories" / "migrations").resolve()

DEFAULT_PLAN_PATH = DATA_DIR / "plancraft.db"
