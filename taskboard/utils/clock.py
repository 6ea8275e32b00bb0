# taskboard/utils/clock.py
from __future__ import annotations
import time
from datetime import datetime, timezone
from typing import Callable

# Millisecond clock; injected wherever "now" matters so tests can pin it
Clock = Callable[[], int]

HOUR_MS = 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_from_ms(ms: int) -> str:
    """Epoch milliseconds → ISO-8601 UTC with millisecond precision and a Z suffix."""
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
