# taskboard application context
# Rev 0.1.0

from __future__ import annotations
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .models.entities import Milestone, Project, Task
from .repositories.db import MEMORY, Database
from .repositories.sqlite_kv_repository import SQLiteKeyValueRepository
from .services.comment_log import CommentLogManager
from .services.conflict_resolver import ConflictResolver
from .services.orphan_sweeper import OrphanSweeper
from .services.persistent_store import PersistentStore
from .services.scheduler import QtScheduler, Scheduler
from .utils.clock import HOUR_MS, Clock, now_ms
from .utils.config import load_settings, session_author
from .utils.logging_setup import get_logger
from .utils.paths import storage_path
from .viewmodels.entity_store import EntityStore
from .viewmodels.task_notes_viewmodel import TaskNotesViewModel


def _open_database(path: Path | str) -> Database:
    log = get_logger("AppContext")
    db: Optional[Database] = None
    try:
        db = Database(path)
        db.run_migrations()
        return db
    except (sqlite3.Error, OSError):
        log.warning("Storage at %s unavailable; persistence is memory-only this session", path, exc_info=True)
        if db is not None:
            db.close()
    db = Database(MEMORY)
    db.run_migrations()
    return db


@dataclass
class AppContext:
    """Central container for the store and its persistence collaborators."""
    settings: Dict[str, Any]
    db: Database
    persistent_store: PersistentStore
    store: EntityStore
    sweeper: OrphanSweeper
    scheduler: Scheduler

    @classmethod
    def create(
        cls,
        db_path: Optional[Path | str] = None,
        *,
        settings: Optional[Dict[str, Any]] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Clock = now_ms,
        projects: Optional[Iterable[Project]] = None,
        milestones: Optional[Iterable[Milestone]] = None,
        tasks: Optional[Iterable[Task]] = None,
    ) -> "AppContext":
        """Open storage, build the store, hydrate it and arm the orphan sweep."""
        log = get_logger("AppContext")
        settings = settings if settings is not None else load_settings()
        persistence = settings["persistence"]
        scheduler = scheduler if scheduler is not None else QtScheduler()

        db = _open_database(db_path if db_path is not None else storage_path())
        kv = SQLiteKeyValueRepository(db, scope=str(persistence["scope"]))
        persistent = PersistentStore(kv)

        store = EntityStore(
            persistent,
            comment_log=CommentLogManager(persistent, author=session_author(settings), clock=clock),
            resolver=ConflictResolver(int(float(persistence["freshness_window_hours"]) * HOUR_MS)),
            clock=clock,
            projects=projects,
            milestones=milestones,
            tasks=tasks,
        )
        store.hydrate()

        sweeper = OrphanSweeper(
            persistent,
            store.task_ids,
            scheduler,
            delay_ms=int(persistence["orphan_sweep_delay_ms"]),
        )
        sweeper.schedule()

        log.info("AppContext initialized with storage=%s", db.path)
        return cls(
            settings=settings,
            db=db,
            persistent_store=persistent,
            store=store,
            sweeper=sweeper,
            scheduler=scheduler,
        )

    def notes_editor(self) -> TaskNotesViewModel:
        return TaskNotesViewModel(
            self.store,
            self.scheduler,
            autosave_ms=int(self.settings["persistence"]["notes_autosave_ms"]),
        )

    def close(self) -> None:
        self.sweeper.cancel()
        self.db.close()
