# Rev 0.1.0

"""Persistent key-value adapter (Rev 0.1.0)
Failure-isolated front for the durable store: nothing raises to callers.
get → None, set/remove → False, list_keys → [] when the backend fails.
"""
from __future__ import annotations
from typing import List, Optional, Protocol

from taskboard.models.schema import parse_timestamp, timestamp_key
from taskboard.utils.logging_setup import get_logger


class KeyValueBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> bool: ...
    def keys(self) -> List[str]: ...


class PersistentStore:
    def __init__(self, backend: KeyValueBackend):
        self._backend = backend
        self._log = get_logger("PersistentStore")

    def get(self, key: str) -> Optional[str]:
        try:
            return self._backend.get_item(key)
        except Exception:
            self._log.warning("get(%s) failed; treating as absent", key, exc_info=True)
            return None

    def set(self, key: str, value: str) -> bool:
        try:
            self._backend.set_item(key, value)
            return True
        except Exception:
            self._log.warning("set(%s) failed; value kept in memory only", key, exc_info=True)
            return False

    def remove(self, key: str) -> bool:
        # removing an absent key is not a failure
        try:
            self._backend.remove_item(key)
            return True
        except Exception:
            self._log.warning("remove(%s) failed", key, exc_info=True)
            return False

    def list_keys(self) -> List[str]:
        """Snapshot of every key at call time."""
        try:
            return list(self._backend.keys())
        except Exception:
            self._log.warning("list_keys() failed; returning empty snapshot", exc_info=True)
            return []

    # ---- value + "-timestamp" pairs

    def set_with_timestamp(self, key: str, value: str, ts_ms: int) -> bool:
        if not self.set(key, value):
            return False
        if self.set(timestamp_key(key), str(int(ts_ms))):
            return True
        # an older timestamp must not outlive the value it described
        self.remove(timestamp_key(key))
        return False

    def get_timestamp(self, key: str) -> Optional[int]:
        raw = self.get(timestamp_key(key))
        ts = parse_timestamp(raw)
        if raw is not None and ts is None:
            self._log.warning("Ignoring malformed timestamp for %s: %r", key, raw)
        return ts

    def remove_with_timestamp(self, key: str) -> bool:
        ok_value = self.remove(key)
        ok_ts = self.remove(timestamp_key(key))
        return ok_value and ok_ts
