# taskboard type definitions
# Rev 0.1.0

from __future__ import annotations
from typing import Literal

# Entity classification hierarchy: project → milestone → task
EntityType = Literal["project", "milestone", "task"]

ProjectStatus = Literal["planning", "in-progress", "completed", "on-hold", "cancelled"]
MilestoneStatus = Literal["planned", "in-progress", "completed", "delayed"]
TaskStatus = Literal["todo", "in-progress", "review", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]

RiskType = Literal["risk", "issue", "dependency", "assumption", "constraint"]
RiskLevel = Literal["low", "medium", "high"]
RiskStatus = Literal["identified", "analyzing", "mitigating", "resolved"]

# Task fields mirrored into the key-value store
FieldKind = Literal["notes", "comments"]
