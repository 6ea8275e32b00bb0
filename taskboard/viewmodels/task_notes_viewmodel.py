# Rev 0.1.0
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, Signal

from taskboard.services.scheduler import Debouncer, Scheduler
from taskboard.utils.logging_setup import get_logger

DEFAULT_AUTOSAVE_MS = 2000


class TaskNotesViewModel(QObject):
    """
    Draft state for a task's notes editor with debounced auto-save.

    Every edit re-arms a single trailing save; only the last draft reaches
    the store once typing stops. Switching task flushes the pending save.
    """

    saved = Signal(str)          # task_id
    draftChanged = Signal(str)   # current draft

    def __init__(self, store, scheduler: Scheduler, *, autosave_ms: int = DEFAULT_AUTOSAVE_MS):
        super().__init__()
        self._store = store
        self._debounce = Debouncer(scheduler, autosave_ms)
        self._task_id: Optional[str] = None
        self._draft = ""
        self._log = get_logger("TaskNotesViewModel")

    @property
    def task_id(self) -> Optional[str]:
        return self._task_id

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def dirty(self) -> bool:
        return self._debounce.pending

    def set_task(self, task_id: str) -> str:
        self._debounce.flush()
        self._task_id = task_id
        task = self._store.get_task_by_id(task_id)
        self._draft = (task.notes if task else "") or ""
        self.draftChanged.emit(self._draft)
        return self._draft

    def edit(self, text: str) -> None:
        if self._task_id is None:
            raise ValueError("TaskNotesViewModel has no task selected.")
        self._draft = text
        self.draftChanged.emit(text)
        if text == self._stored_notes():
            self._debounce.cancel()
            return
        task_id = self._task_id
        self._debounce.call(lambda: self._save(task_id, text))

    def save_now(self) -> bool:
        return self._debounce.flush()

    def discard(self) -> None:
        self._debounce.cancel()
        self._draft = self._stored_notes()
        self.draftChanged.emit(self._draft)

    def recover(self) -> Optional[str]:
        if self._task_id is None:
            return None
        return self._store.recover_notes(self._task_id)

    # ---- internals
    def _stored_notes(self) -> str:
        task = self._store.get_task_by_id(self._task_id) if self._task_id else None
        return (task.notes if task else "") or ""

    def _save(self, task_id: str, text: str) -> None:
        if self._store.update_task(task_id, notes=text):
            self.saved.emit(task_id)
        else:
            self._log.info("Notes for task %s dropped; task no longer exists", task_id)
