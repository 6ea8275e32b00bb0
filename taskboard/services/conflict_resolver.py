# Rev 0.1.0

"""Load-time conflict resolution between in-memory and persisted task fields.

Notes use last-writer-wins with a freshness window:
  1. persisted absent or equal to memory      → keep memory
  2. timestamped and younger than the window  → persisted wins
  3. untimestamped and non-blank              → persisted wins
  4. otherwise                                → keep memory

Comments: a successfully parsed, non-empty persisted list replaces memory
verbatim; the sequence counter follows the highest sequence in the winner.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from taskboard.models.entities import Comment
from taskboard.models.schema import ParseResult
from taskboard.utils.clock import HOUR_MS

FRESHNESS_WINDOW_MS = 24 * HOUR_MS


@dataclass(frozen=True)
class NotesResolution:
    value: str
    overridden: bool
    reason: str   # absent | unchanged | fresh | untimestamped | stale | blank


def max_sequence(comments: Sequence[Comment]) -> int:
    return max((c.sequence for c in comments), default=0)


class ConflictResolver:
    def __init__(self, freshness_window_ms: int = FRESHNESS_WINDOW_MS):
        self.freshness_window_ms = int(freshness_window_ms)

    def resolve_notes(
        self,
        in_memory: str,
        persisted: Optional[str],
        persisted_ts: Optional[int],
        now: int,
    ) -> NotesResolution:
        if persisted is None:
            return NotesResolution(in_memory, False, "absent")
        if persisted == in_memory:
            return NotesResolution(in_memory, False, "unchanged")
        if persisted_ts is not None:
            if now - persisted_ts < self.freshness_window_ms:
                return NotesResolution(persisted, True, "fresh")
            return NotesResolution(in_memory, False, "stale")
        if persisted.strip():
            return NotesResolution(persisted, True, "untimestamped")
        return NotesResolution(in_memory, False, "blank")

    def resolve_comments(
        self,
        in_memory: Sequence[Comment],
        persisted: ParseResult,
    ) -> Tuple[Tuple[Comment, ...], int]:
        if persisted.ok and persisted.value:
            winner = tuple(persisted.value)
        else:
            winner = tuple(in_memory)
        return winner, max_sequence(winner)
