# Rev 0.1.0

"""Deferred work with cancellable handles (Rev 0.1.0)
- schedule(delay_ms, task) -> ScheduledTask
- QtScheduler: single-shot QTimers on the running event loop
- ManualScheduler: deterministic clock for tests and headless runs
- Debouncer: trailing debounce on top of either
"""
from __future__ import annotations
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Set, Tuple

from PySide6.QtCore import QObject, QTimer


class ScheduledTask:
    def __init__(self, task: Callable[[], None], on_cancel: Optional[Callable[[], None]] = None):
        self._task = task
        self._on_cancel = on_cancel
        self.cancelled = False
        self.done = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)

    def cancel(self) -> None:
        if not self.pending:
            return
        self.cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def run(self) -> None:
        if not self.pending:
            return
        self.done = True
        self._task()


class Scheduler(Protocol):
    def schedule(self, delay_ms: int, task: Callable[[], None]) -> ScheduledTask: ...


class QtScheduler(QObject):
    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        # strong refs until the timer fires or is cancelled
        self._live: Set[QTimer] = set()

    def schedule(self, delay_ms: int, task: Callable[[], None]) -> ScheduledTask:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))

        def _release() -> None:
            timer.stop()
            if timer in self._live:
                self._live.discard(timer)
                timer.deleteLater()

        handle = ScheduledTask(task, on_cancel=_release)

        def _fire() -> None:
            _release()
            handle.run()

        timer.timeout.connect(_fire)
        self._live.add(timer)
        timer.start()
        return handle

    def pending_count(self) -> int:
        return len(self._live)


class ManualScheduler:
    """Runs due tasks only when advance() is called; ties run in scheduling order."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._seq = itertools.count()
        self._queue: List[Tuple[int, int, ScheduledTask]] = []

    def schedule(self, delay_ms: int, task: Callable[[], None]) -> ScheduledTask:
        handle = ScheduledTask(task)
        heapq.heappush(self._queue, (self.now_ms + max(0, int(delay_ms)), next(self._seq), handle))
        return handle

    def advance(self, ms: int) -> int:
        """Move time forward, running everything that falls due. Returns tasks run."""
        target = self.now_ms + max(0, int(ms))
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now_ms = due
            if handle.pending:
                handle.run()
                ran += 1
        self.now_ms = target
        return ran

    def run_all(self) -> int:
        ran = 0
        while self._queue:
            ran += self.advance(self._queue[0][0] - self.now_ms)
        return ran

    def pending_count(self) -> int:
        return sum(1 for _, _, h in self._queue if h.pending)


class Debouncer:
    """Trailing debounce: each call() replaces the pending one."""

    def __init__(self, scheduler: Scheduler, delay_ms: int):
        self._scheduler = scheduler
        self.delay_ms = int(delay_ms)
        self._pending: Optional[ScheduledTask] = None
        self._fn: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.pending

    def call(self, fn: Callable[[], None]) -> ScheduledTask:
        self.cancel()
        self._fn = fn
        self._pending = self._scheduler.schedule(self.delay_ms, self._fire)
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None
        self._fn = None

    def flush(self) -> bool:
        """Run the pending call now. Returns False if nothing was pending."""
        if not self.pending:
            return False
        handle = self._pending
        handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        fn = self._fn
        self._pending = None
        self._fn = None
        if fn is not None:
            fn()
