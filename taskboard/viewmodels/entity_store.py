# Rev 0.1.0
from __future__ import annotations

import math
from dataclasses import fields as dc_fields, replace
from typing import Any, Dict, Iterable, List, Optional, Set

from PySide6.QtCore import QObject, Signal

from taskboard.models.entities import Comment, Milestone, Project, Task
from taskboard.models.schema import NOTES_SCHEMA
from taskboard.models import seed
from taskboard.services.comment_log import CommentLogManager
from taskboard.services.conflict_resolver import ConflictResolver
from taskboard.services.persistent_store import PersistentStore
from taskboard.utils.clock import Clock, now_ms
from taskboard.utils.logging_setup import get_logger

_TASK_FIELDS = frozenset(f.name for f in dc_fields(Task))
_PROJECT_FIELDS = frozenset(f.name for f in dc_fields(Project))
_MILESTONE_FIELDS = frozenset(f.name for f in dc_fields(Milestone))

# Never settable through a partial update
_IMMUTABLE = frozenset({"id"})
_APPEND_ONLY = frozenset({"comments", "comments_sequence"})


class EntityStore(QObject):
    """
    Owns the project, milestone and task collections.

    Persisted task fields (notes, comments) write through the PersistentStore;
    hydrate() reconciles freshly built entities with what was persisted.
    Deletes only touch memory; persisted leftovers are the OrphanSweeper's.

    Emits:
      projectsChanged(), milestonesChanged(), tasksChanged()
      taskUpdated(task_id)
      commentAdded(task_id, sequence)
      hydrated(changed_task_count)
    """

    projectsChanged = Signal()
    milestonesChanged = Signal()
    tasksChanged = Signal()
    taskUpdated = Signal(str)
    commentAdded = Signal(str, int)
    hydrated = Signal(int)

    def __init__(
        self,
        persistent_store: PersistentStore,
        *,
        comment_log: Optional[CommentLogManager] = None,
        resolver: Optional[ConflictResolver] = None,
        clock: Clock = now_ms,
        projects: Optional[Iterable[Project]] = None,
        milestones: Optional[Iterable[Milestone]] = None,
        tasks: Optional[Iterable[Task]] = None,
    ):
        super().__init__()
        self._store = persistent_store
        self._clock = clock
        self._comments = comment_log or CommentLogManager(persistent_store, clock=clock)
        self._resolver = resolver or ConflictResolver()
        self._log = get_logger("EntityStore")

        # insertion-ordered; id → record
        self._projects: Dict[str, Project] = self._index(
            seed.seed_projects() if projects is None else projects, "project")
        self._milestones: Dict[str, Milestone] = self._index(
            seed.seed_milestones() if milestones is None else milestones, "milestone")
        self._tasks: Dict[str, Task] = self._index(
            seed.seed_tasks() if tasks is None else tasks, "task")

    @staticmethod
    def _index(records: Iterable[Any], kind: str) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for r in records:
            if r.id in out:
                raise ValueError(f"duplicate {kind} id: {r.id!r}")
            out[r.id] = r
        return out

    # ---- reads
    @property
    def projects(self) -> List[Project]:
        return list(self._projects.values())

    @property
    def milestones(self) -> List[Milestone]:
        return list(self._milestones.values())

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks.values())

    def get_project_by_id(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def get_milestone_by_id(self, milestone_id: str) -> Optional[Milestone]:
        return self._milestones.get(milestone_id)

    def get_task_by_id(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def tasks_for_project(self, project_id: str) -> List[Task]:
        return [t for t in self._tasks.values() if t.project_id == project_id]

    def task_ids(self) -> Set[str]:
        return set(self._tasks)

    def calculate_dynamic_progress(self, project_id: str) -> int:
        tasks = self.tasks_for_project(project_id)
        if not tasks:
            return 0
        completed = sum(1 for t in tasks if t.status == "completed")
        # half rounds up (12.5 → 13)
        return int(math.floor(100 * completed / len(tasks) + 0.5))

    # ---- projects
    def add_project(self, project: Project) -> Project:
        if project.id in self._projects:
            raise ValueError(f"project {project.id!r} already exists")
        self._projects[project.id] = project
        self.projectsChanged.emit()
        return project

    def update_project(self, project_id: str, **fields: Any) -> bool:
        current = self._projects.get(project_id)
        if current is None:
            return False
        self._check_fields("project", fields, _PROJECT_FIELDS)
        self._projects[project_id] = replace(current, **fields)
        self.projectsChanged.emit()
        return True

    def delete_project(self, project_id: str) -> bool:
        if self._projects.pop(project_id, None) is None:
            return False
        ms = [m for m in self._milestones.values() if m.project_id == project_id]
        for m in ms:
            del self._milestones[m.id]
        ts = [t for t in self._tasks.values() if t.project_id == project_id]
        for t in ts:
            del self._tasks[t.id]
        self._log.info("Deleted project %s (+%d milestones, +%d tasks)", project_id, len(ms), len(ts))
        self.projectsChanged.emit()
        if ms:
            self.milestonesChanged.emit()
        if ts:
            self.tasksChanged.emit()
        return True

    # ---- milestones
    def add_milestone(self, milestone: Milestone) -> Milestone:
        if milestone.id in self._milestones:
            raise ValueError(f"milestone {milestone.id!r} already exists")
        self._milestones[milestone.id] = milestone
        self.milestonesChanged.emit()
        return milestone

    def update_milestone(self, milestone_id: str, **fields: Any) -> bool:
        current = self._milestones.get(milestone_id)
        if current is None:
            return False
        self._check_fields("milestone", fields, _MILESTONE_FIELDS)
        self._milestones[milestone_id] = replace(current, **fields)
        self.milestonesChanged.emit()
        return True

    def delete_milestone(self, milestone_id: str) -> bool:
        if self._milestones.pop(milestone_id, None) is None:
            return False
        ts = [t for t in self._tasks.values() if t.milestone_id == milestone_id]
        for t in ts:
            del self._tasks[t.id]
        self.milestonesChanged.emit()
        if ts:
            self.tasksChanged.emit()
        return True

    # ---- tasks
    def add_task(self, task: Task) -> Task:
        if task.id in self._tasks:
            raise ValueError(f"task {task.id!r} already exists")
        self._tasks[task.id] = task
        self.tasksChanged.emit()
        return task

    def update_task(self, task_id: str, **fields: Any) -> bool:
        """
        Merge fields into a task. A 'notes' field also writes through:
        non-blank → value + timestamp persisted; blank → both keys removed.
        """
        current = self._tasks.get(task_id)
        if current is None:
            return False
        self._check_fields("task", fields, _TASK_FIELDS)
        bad = _APPEND_ONLY.intersection(fields)
        if bad:
            raise ValueError(f"task field(s) {sorted(bad)} are append-only; use add_comment()")
        if "notes" in fields and fields["notes"] is None:
            fields["notes"] = ""

        self._tasks[task_id] = replace(current, **fields)
        if "notes" in fields:
            self._write_notes(task_id, fields["notes"])
        self.taskUpdated.emit(task_id)
        self.tasksChanged.emit()
        return True

    def delete_task(self, task_id: str) -> bool:
        if self._tasks.pop(task_id, None) is None:
            return False
        self.tasksChanged.emit()
        return True

    # ---- generic field update (UI editors that only know an id)
    def update_entity_field(self, entity_id: str, field: str, value: Any) -> bool:
        if entity_id in self._tasks:
            return self.update_task(entity_id, **{field: value})
        if entity_id in self._milestones:
            return self.update_milestone(entity_id, **{field: value})
        if entity_id in self._projects:
            return self.update_project(entity_id, **{field: value})
        return False

    # ---- comments
    def add_comment(self, task_id: str, content: str) -> Optional[Comment]:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        result = self._comments.append(task_id, task.comments, task.comments_sequence, content)
        if result is None:
            return None
        self._tasks[task_id] = replace(task, comments=result.comments, comments_sequence=result.sequence)
        self.commentAdded.emit(task_id, result.sequence)
        self.taskUpdated.emit(task_id)
        return result.comment

    # ---- persistence
    def recover_notes(self, task_id: str) -> Optional[str]:
        """Whatever is persisted for the task's notes, bypassing hydration."""
        return self._store.get(NOTES_SCHEMA.key(task_id))

    def hydrate(self) -> int:
        """Reconcile every task with its persisted notes/comments. Returns tasks changed."""
        now = self._clock()
        changed = 0
        for task_id, task in list(self._tasks.items()):
            updated = self._hydrate_task(task, now)
            if updated != task:
                self._tasks[task_id] = updated
                changed += 1
        self._log.info("Hydrated %d tasks (%d changed from persisted state)", len(self._tasks), changed)
        if changed:
            self.tasksChanged.emit()
        self.hydrated.emit(changed)
        return changed

    def _hydrate_task(self, task: Task, now: int) -> Task:
        key = NOTES_SCHEMA.key(task.id)
        notes = self._resolver.resolve_notes(
            task.notes, self._store.get(key), self._store.get_timestamp(key), now,
        )
        if notes.overridden:
            self._log.debug("Task %s notes taken from storage (%s)", task.id, notes.reason)

        comments, sequence = self._resolver.resolve_comments(
            task.comments, self._comments.load(task.id),
        )
        return replace(task, notes=notes.value, comments=comments, comments_sequence=sequence)

    def _write_notes(self, task_id: str, value: Any) -> bool:
        key = NOTES_SCHEMA.key(task_id)
        text = value if isinstance(value, str) else ("" if value is None else str(value))
        if text.strip():
            return self._store.set_with_timestamp(key, text, self._clock())
        return self._store.remove_with_timestamp(key)

    @staticmethod
    def _check_fields(kind: str, fields: Dict[str, Any], allowed: frozenset) -> None:
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"unknown {kind} field(s): {sorted(unknown)}")
        bad = _IMMUTABLE.intersection(fields)
        if bad:
            raise ValueError(f"{kind} id is immutable")
