# Rev 0.1.0

"""Pytest fixtures for taskboard (Rev 0.1.0)"""
from __future__ import annotations
import sqlite3
import pytest
from pathlib import Path

from taskboard.models.entities import Milestone, Project, Task
from taskboard.repositories.db import Database
from taskboard.repositories.sqlite_kv_repository import SQLiteKeyValueRepository
from taskboard.services.comment_log import CommentLogManager
from taskboard.services.persistent_store import PersistentStore
from taskboard.services.scheduler import ManualScheduler
from taskboard.utils.clock import HOUR_MS
from taskboard.viewmodels.entity_store import EntityStore

# 2025-03-01T00:00:00Z
T0 = 1_740_787_200_000


class FakeClock:
    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    def advance_hours(self, hours: float) -> None:
        self.now += int(hours * HOUR_MS)


class FlakyBackend:
    """Wraps a real backend; flip the fail_* flags to simulate storage errors."""

    def __init__(self, inner):
        self.inner = inner
        self.fail_get = False
        self.fail_set = False
        self.fail_set_keys: set[str] = set()
        self.fail_remove: set[str] = set()
        self.fail_keys = False

    def get_item(self, key):
        if self.fail_get:
            raise sqlite3.OperationalError("disk I/O error")
        return self.inner.get_item(key)

    def set_item(self, key, value):
        if self.fail_set or key in self.fail_set_keys:
            raise sqlite3.OperationalError("database or disk is full")
        return self.inner.set_item(key, value)

    def remove_item(self, key):
        if key in self.fail_remove:
            raise sqlite3.OperationalError("attempt to write a readonly database")
        return self.inner.remove_item(key)

    def keys(self):
        if self.fail_keys:
            raise sqlite3.OperationalError("no such table: kv_store")
        return self.inner.keys()


@pytest.fixture()
def db(tmp_path: Path):
    db = Database(tmp_path / "storage.db")
    try:
        db.run_migrations()
        yield db
    finally:
        db.close()


@pytest.fixture()
def kv(db):
    return SQLiteKeyValueRepository(db, scope="test")


@pytest.fixture()
def flaky(kv):
    return FlakyBackend(kv)


@pytest.fixture()
def persistent(flaky):
    return PersistentStore(flaky)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


def sample_entities():
    projects = [
        Project(id="p1", title="Launch"),
        Project(id="p2", title="Empty"),
    ]
    milestones = [
        Milestone(id="m1", project_id="p1", title="Beta", tasks=("t1", "t2")),
    ]
    tasks = [
        Task(id="t1", project_id="p1", milestone_id="m1", title="Spec", status="completed"),
        Task(id="t2", project_id="p1", milestone_id="m1", title="Build"),
        Task(id="t3", project_id="p1", title="Ship", notes="seed notes"),
    ]
    return projects, milestones, tasks


@pytest.fixture()
def make_store(persistent, clock):
    """Builds a fresh store over the same persisted data (a 'reload')."""
    def _make(**overrides) -> EntityStore:
        projects, milestones, tasks = sample_entities()
        kwargs = dict(projects=projects, milestones=milestones, tasks=tasks)
        kwargs.update(overrides)
        return EntityStore(
            persistent,
            comment_log=CommentLogManager(persistent, author="alice", clock=clock),
            clock=clock,
            **kwargs,
        )
    return _make


@pytest.fixture()
def store(make_store):
    s = make_store()
    s.hydrate()
    return s
