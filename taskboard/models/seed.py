# Rev 0.1.0
"""Canonical seed data the store starts from when no collections are supplied."""
from __future__ import annotations
from typing import List

from .entities import Milestone, Project, Risk, Task


def seed_projects() -> List[Project]:
    return [
        Project(
            id="1",
            title="Website Redesign",
            description="Modernize our company website with a fresh design and improved UX",
            status="in-progress",
            progress=65,
            created_at="2025-01-15T00:00:00.000Z",
            updated_at="2025-02-28T00:00:00.000Z",
            budget=15000,
            risks=(
                Risk(
                    id="r1",
                    type="risk",
                    description="Content migration might take longer than expected",
                    impact="medium",
                    probability="high",
                    status="mitigating",
                ),
            ),
            benefits=(
                "Improved user experience",
                "Higher conversion rates",
                "Better mobile responsiveness",
            ),
        ),
    ]


def seed_milestones() -> List[Milestone]:
    return [
        Milestone(
            id="m1",
            project_id="1",
            title="Design Phase",
            description="Complete all design assets and get approval",
            status="in-progress",
            due_date="2025-03-15T00:00:00.000Z",
            progress=75,
            tasks=("t1", "t2"),
        ),
    ]


def seed_tasks() -> List[Task]:
    return [
        Task(
            id="t1",
            project_id="1",
            milestone_id="m1",
            title="Create wireframes",
            description="Design wireframes for all main pages",
            status="completed",
            priority="high",
            created_at="2025-01-20T00:00:00.000Z",
            due_date="2025-02-01T00:00:00.000Z",
            completed_at="2025-01-30T00:00:00.000Z",
            estimated_hours=20,
            actual_hours=18,
        ),
    ]
