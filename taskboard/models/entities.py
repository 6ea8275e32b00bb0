# Rev 0.1.0
"""In-memory entities for the dashboard store (projects → milestones → tasks).

Records are frozen; the entity store swaps whole records on update so nothing
outside it can mutate a collection member in place.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .types import (
    MilestoneStatus, ProjectStatus, RiskLevel, RiskStatus, RiskType,
    TaskPriority, TaskStatus,
)


@dataclass(frozen=True)
class Risk:
    id: str
    type: RiskType
    description: str
    impact: RiskLevel
    status: RiskStatus = "identified"
    probability: Optional[RiskLevel] = None
    mitigation: Optional[str] = None


@dataclass(frozen=True)
class Project:
    id: str
    title: str
    description: str = ""
    status: ProjectStatus = "planning"
    progress: int = 0           # manual figure; see calculate_dynamic_progress for the derived one
    created_at: str = ""
    updated_at: str = ""
    due_date: Optional[str] = None
    budget: Optional[float] = None
    risks: Tuple[Risk, ...] = ()
    benefits: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Milestone:
    id: str
    project_id: str
    title: str
    description: str = ""
    status: MilestoneStatus = "planned"
    due_date: str = ""
    progress: int = 0
    tasks: Tuple[str, ...] = ()   # task ids


@dataclass(frozen=True)
class Comment:
    id: str
    content: str
    created_at: str             # ISO-8601 UTC, e.g. 2025-01-20T10:00:00.000Z
    author: str
    sequence: int
    readonly: bool = True


@dataclass(frozen=True)
class Task:
    id: str
    project_id: str
    title: str
    description: str = ""
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    created_at: str = ""
    milestone_id: Optional[str] = None
    due_date: Optional[str] = None
    completed_at: Optional[str] = None
    assignee: Optional[str] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    notes: str = ""                                 # persisted
    comments: Tuple[Comment, ...] = field(default=())  # persisted, append-only
    comments_sequence: int = 0                      # highest sequence issued so far
