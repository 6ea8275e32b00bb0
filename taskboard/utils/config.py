# taskboard/utils/config.py
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from .paths import CONFIG_DIR

SETTINGS_FILE = CONFIG_DIR / "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "persistence": {
        "freshness_window_hours": 24,
        "notes_autosave_ms": 2000,
        "orphan_sweep_delay_ms": 1000,
        "scope": "default",
    },
    "session": {
        "author": "User",
    },
}


def _merge(defaults: Dict[str, Any], loaded: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: (dict(v) if isinstance(v, dict) else v) for k, v in defaults.items()}
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = {**out[key], **value}
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or SETTINGS_FILE
    if path.exists():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                return _merge(_DEFAULTS, loaded)
        except (OSError, ValueError):
            pass
    return _merge(_DEFAULTS, {})


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def session_author(settings: Dict[str, Any]) -> str:
    # TASKBOARD_AUTHOR wins over the settings file
    return os.environ.get("TASKBOARD_AUTHOR") or str(settings["session"].get("author") or "User")
