# Rev 0.1.0
"""Persisted key-value schema (Rev 0.1.0)

Key layout (kept byte-compatible with existing stores):

  task-notes-<taskId>                  raw notes text
  task-notes-<taskId>-timestamp        decimal epoch milliseconds
  task-comments-<taskId>               JSON array of comment objects
  task-comments-<taskId>-timestamp     decimal epoch milliseconds

The wire form carries no version marker; each field kind's reader owns its
version and turns raw text into ParseOk / ParseFailure, never a loose object.
"""
from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, NamedTuple, Optional, Sequence, Tuple, TypeVar, Union

from .entities import Comment
from .types import FieldKind

T = TypeVar("T")

TIMESTAMP_SUFFIX = "-timestamp"


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    ok: bool = False


ParseResult = Union[ParseOk[T], ParseFailure]


@dataclass(frozen=True)
class FieldSchema(Generic[T]):
    kind: FieldKind
    version: int
    prefix: str
    parse: Callable[[str], "ParseResult[T]"]

    def key(self, entity_id: str) -> str:
        return f"{self.prefix}{entity_id}"

    def timestamp_key(self, entity_id: str) -> str:
        return timestamp_key(self.key(entity_id))


# ---------- notes ----------

def _parse_notes(raw: str) -> ParseResult[str]:
    if not isinstance(raw, str):
        return ParseFailure(f"notes must be text, got {type(raw).__name__}")
    return ParseOk(raw)


# ---------- comments ----------

_REQUIRED_TEXT = ("id", "content", "createdAt")


def comment_to_record(c: Comment) -> Dict[str, Any]:
    return {
        "id": c.id,
        "content": c.content,
        "createdAt": c.created_at,
        "author": c.author,
        "sequence": c.sequence,
        "readonly": c.readonly,
    }


def _comment_from_record(i: int, rec: Any) -> Union[Comment, ParseFailure]:
    if not isinstance(rec, dict):
        return ParseFailure(f"item {i} is not an object")
    for name in _REQUIRED_TEXT:
        if not isinstance(rec.get(name), str):
            return ParseFailure(f"item {i}: '{name}' missing or not text")
    if not rec["content"].strip():
        return ParseFailure(f"item {i}: empty content")
    seq = rec.get("sequence")
    # bool is an int subclass; a true/false sequence is corrupt
    if not isinstance(seq, int) or isinstance(seq, bool) or seq < 1:
        return ParseFailure(f"item {i}: 'sequence' must be a positive integer")
    author = rec.get("author", "")
    readonly = rec.get("readonly", True)
    if not isinstance(author, str) or not isinstance(readonly, bool):
        return ParseFailure(f"item {i}: 'author'/'readonly' ill-typed")
    return Comment(
        id=rec["id"],
        content=rec["content"],
        created_at=rec["createdAt"],
        author=author,
        sequence=seq,
        readonly=readonly,
    )


def _parse_comments(raw: str) -> ParseResult[Tuple[Comment, ...]]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        return ParseFailure(f"invalid JSON: {e}")
    if not isinstance(data, list):
        return ParseFailure(f"expected a JSON array, got {type(data).__name__}")

    out = []
    last_seq = 0
    for i, rec in enumerate(data):
        c = _comment_from_record(i, rec)
        if isinstance(c, ParseFailure):
            return c
        if c.sequence <= last_seq:
            return ParseFailure(f"item {i}: sequence {c.sequence} does not follow {last_seq}")
        last_seq = c.sequence
        out.append(c)
    return ParseOk(tuple(out))


def serialize_comments(comments: Sequence[Comment]) -> str:
    return json.dumps(
        [comment_to_record(c) for c in comments],
        ensure_ascii=False,
        separators=(",", ":"),
    )


NOTES_SCHEMA: FieldSchema[str] = FieldSchema(
    kind="notes", version=1, prefix="task-notes-", parse=_parse_notes,
)
COMMENTS_SCHEMA: FieldSchema[Tuple[Comment, ...]] = FieldSchema(
    kind="comments", version=1, prefix="task-comments-", parse=_parse_comments,
)

SCHEMAS: Dict[FieldKind, FieldSchema] = {
    NOTES_SCHEMA.kind: NOTES_SCHEMA,
    COMMENTS_SCHEMA.kind: COMMENTS_SCHEMA,
}


# ---------- keys ----------

def notes_key(task_id: str) -> str:
    return NOTES_SCHEMA.key(task_id)


def comments_key(task_id: str) -> str:
    return COMMENTS_SCHEMA.key(task_id)


def timestamp_key(key: str) -> str:
    return key + TIMESTAMP_SUFFIX


class ParsedKey(NamedTuple):
    kind: FieldKind
    entity_id: str
    is_timestamp: bool

    def owner_ids(self) -> Tuple[str, ...]:
        """Ids that may own this key; "x-timestamp" is also a valid task id."""
        if self.is_timestamp:
            return (self.entity_id, self.entity_id + TIMESTAMP_SUFFIX)
        return (self.entity_id,)


def parse_key(key: str) -> Optional[ParsedKey]:
    """Map a persisted key back to (kind, entity id, is_timestamp); None if not ours."""
    for schema in SCHEMAS.values():
        if not key.startswith(schema.prefix):
            continue
        rest = key[len(schema.prefix):]
        is_ts = rest.endswith(TIMESTAMP_SUFFIX)
        if is_ts:
            rest = rest[: -len(TIMESTAMP_SUFFIX)]
        if not rest:
            return None
        return ParsedKey(schema.kind, rest, is_ts)
    return None


def parse_timestamp(raw: Optional[str]) -> Optional[int]:
    """Decimal epoch-ms text → int; anything else counts as no timestamp."""
    if raw is None:
        return None
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)
