# Rev 0.1.0

"""Orphan sweep over persisted task fields (Rev 0.1.0)
Runs once, a short delay after hydration. Any key under task-notes-/task-comments-
whose task id is no longer live is removed together with its -timestamp pair.
Best-effort: one failed removal does not stop the sweep.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

from taskboard.models.schema import SCHEMAS, parse_key, timestamp_key
from taskboard.services.persistent_store import PersistentStore
from taskboard.services.scheduler import Scheduler, ScheduledTask
from taskboard.utils.logging_setup import get_logger

DEFAULT_SWEEP_DELAY_MS = 1000


@dataclass
class SweepReport:
    scanned: int = 0
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class OrphanSweeper:
    def __init__(
        self,
        store: PersistentStore,
        live_ids: Callable[[], Set[str]],
        scheduler: Scheduler,
        *,
        delay_ms: int = DEFAULT_SWEEP_DELAY_MS,
    ):
        self._store = store
        self._live_ids = live_ids
        self._scheduler = scheduler
        self.delay_ms = int(delay_ms)
        self._pending: Optional[ScheduledTask] = None
        self.last_report: Optional[SweepReport] = None
        self._log = get_logger("OrphanSweeper")

    def schedule(self) -> ScheduledTask:
        """Arm the deferred sweep; re-arming replaces a pending one."""
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._scheduler.schedule(self.delay_ms, self._run_scheduled)
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _run_scheduled(self) -> None:
        self._pending = None
        try:
            self.sweep()
        except Exception:
            # housekeeping only; the app stays correct without it
            self._log.warning("Orphan sweep aborted", exc_info=True)

    def sweep(self) -> SweepReport:
        report = SweepReport()
        live = set(self._live_ids())
        handled: Set[str] = set()

        for key in self._store.list_keys():
            parsed = parse_key(key)
            if parsed is None:
                continue
            report.scanned += 1
            if any(owner in live for owner in parsed.owner_ids()):
                continue

            value_key = SCHEMAS[parsed.kind].key(parsed.entity_id)
            for k in (value_key, timestamp_key(value_key)):
                if k in handled:
                    continue
                handled.add(k)
                if self._store.get(k) is None:
                    continue
                if self._store.remove(k):
                    report.removed.append(k)
                else:
                    report.failed.append(k)

        if report.removed or report.failed:
            self._log.info(
                "Orphan sweep: scanned=%d removed=%d failed=%d",
                report.scanned, len(report.removed), len(report.failed),
            )
        else:
            self._log.debug("Orphan sweep: scanned=%d, nothing to remove", report.scanned)
        self.last_report = report
        return report
