# src/plancraft/utils/config.py
# Rev 0.1.1
from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_setup import get_logger
from .paths import CONFIG_DIR

SETTINGS_FILE = CONFIG_DIR / "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "db": {
        "journal_mode": "WAL",
        "synchronous": "NORMAL",
        "foreign_keys": True,
        "busy_timeout_ms": 5000,
        "temp_store": "MEMORY",
    },
    "query": {
        "default_page_size": 20,
    },
    "session": {
        "last_location": None,
    },
}

_log = get_logger("config")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def defaults() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULTS)


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = Path(path) if path is not None else SETTINGS_FILE
    data = defaults()
    if path.exists():
        try:
            data = _merge(data, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError) as e:
            _log.warning("Ignoring unreadable settings file %s: %s", path, e)
            data = defaults()

    # Environment wins over the file
    env_db = os.environ.get("PLANCRAFT_DB")
    if env_db:
        data["session"]["last_location"] = env_db
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = Path(path) if path is not None else SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
