# Rev 0.1.0

"""Paths and XDG helpers (Rev 0.1.0)
- Uses XDG Base Directory layout for data/state/logs/config
- Key-value storage lives at $XDG_DATA_HOME/taskboard/storage.db
- TASKBOARD_DB overrides the storage path
"""
from __future__ import annotations
import os
from pathlib import Path


APP_NAME = "taskboard"


XDG_DATA_HOME = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
XDG_STATE_HOME = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
XDG_CONFIG_HOME = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


DATA_DIR = XDG_DATA_HOME / APP_NAME
STATE_DIR = XDG_STATE_HOME / APP_NAME
LOGS_DIR = STATE_DIR / "logs"
CONFIG_DIR = XDG_CONFIG_HOME / APP_NAME


# Package-relative locations
PACKAGE_ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = (PACKAGE_ROOT / "data" / "migrations").resolve()


def storage_path() -> Path:
    override = os.environ.get("TASKBOARD_DB")
    if override:
        return Path(override).expanduser()
    return DATA_DIR / "storage.db"


def ensure_dirs() -> None:
    for p in (DATA_DIR, STATE_DIR, LOGS_DIR, CONFIG_DIR):
        p.mkdir(parents=True, exist_ok=True)
