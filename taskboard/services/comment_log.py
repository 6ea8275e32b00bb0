# Rev 0.1.0
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from taskboard.models.entities import Comment
from taskboard.models.schema import (
    COMMENTS_SCHEMA, ParseFailure, ParseOk, ParseResult, serialize_comments,
)
from taskboard.services.persistent_store import PersistentStore
from taskboard.utils.clock import Clock, iso_from_ms, now_ms
from taskboard.utils.logging_setup import get_logger


@dataclass(frozen=True)
class AppendResult:
    comment: Comment
    comments: Tuple[Comment, ...]
    sequence: int
    persisted: bool   # False → session-only, lost on reload


def sorted_comments(comments: Sequence[Comment]) -> list[Comment]:
    """Display order (by sequence); storage order is left untouched."""
    return sorted(comments, key=lambda c: c.sequence)


def _new_comment_id() -> str:
    return uuid.uuid4().hex


class CommentLogManager:
    """
    Append-only per-task comment log with a monotonically increasing sequence.

    Works on the values handed to it and returns new ones; the entity store
    decides what to keep in memory. Every append rewrites the whole list under
    task-comments-<taskId>, followed by a fresh timestamp.
    """

    def __init__(
        self,
        store: PersistentStore,
        *,
        author: str = "User",
        clock: Clock = now_ms,
        id_factory: Callable[[], str] = _new_comment_id,
    ):
        self._store = store
        self.author = author
        self._clock = clock
        self._new_id = id_factory
        self._log = get_logger("CommentLog")

    def append(
        self,
        task_id: str,
        comments: Sequence[Comment],
        sequence: int,
        content: str,
    ) -> Optional[AppendResult]:
        text = (content or "").strip()
        if not text:
            return None

        next_sequence = sequence + 1
        now = self._clock()
        comment = Comment(
            id=self._new_id(),
            content=text,
            created_at=iso_from_ms(now),
            author=self.author,
            sequence=next_sequence,
            readonly=True,
        )
        updated = tuple(comments) + (comment,)
        persisted = self.persist(task_id, updated, now)
        if not persisted:
            self._log.warning(
                "Comment #%d on task %s kept in memory only (write-through failed)",
                next_sequence, task_id,
            )
        return AppendResult(comment, updated, next_sequence, persisted)

    def persist(self, task_id: str, comments: Sequence[Comment], ts_ms: Optional[int] = None) -> bool:
        try:
            blob = serialize_comments(comments)
        except (TypeError, ValueError):
            self._log.warning("Could not serialize comments for task %s", task_id, exc_info=True)
            return False
        ts = self._clock() if ts_ms is None else ts_ms
        return self._store.set_with_timestamp(COMMENTS_SCHEMA.key(task_id), blob, ts)

    def load(self, task_id: str) -> ParseResult:
        """Persisted list for a task; absent → empty, malformed → ParseFailure (logged)."""
        raw = self._store.get(COMMENTS_SCHEMA.key(task_id))
        if raw is None:
            return ParseOk(())
        result = COMMENTS_SCHEMA.parse(raw)
        if isinstance(result, ParseFailure):
            self._log.warning(
                "Malformed comments for task %s (schema v%d): %s; ignoring persisted copy",
                task_id, COMMENTS_SCHEMA.version, result.reason,
            )
        return result
