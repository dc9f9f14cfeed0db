"""
Data schemas for the sales task tracker.

Defines:
- Priority / Status: allowed enum values for a Task
- Task: a single unit of sales work with revenue and time cost
- DerivedTask: a Task plus computed ranking fields
- Metrics: aggregate snapshot over a Task collection
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Status(str, Enum):
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


@dataclass
class Task:
    """
    Represents a single sales task.

    time_taken is in hours and is always > 0 once a Task has passed through
    the normalizer or the store. Timestamps are ISO-8601 strings.
    completed_at is present if and only if status is Done.
    """

    id: str
    title: str
    revenue: float
    time_taken: float
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    notes: str = ""
    created_at: str = ""
    completed_at: Optional[str] = None

    def __post_init__(self) -> None:
        self.revenue = float(self.revenue)
        self.time_taken = float(self.time_taken)
        self.priority = Priority(self.priority)
        self.status = Status(self.status)

    def to_record(self) -> Dict[str, Any]:
        """
        Serialize to the camelCase document shape used by tasks.json.

        completedAt is omitted when absent.
        """
        record: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "revenue": self.revenue,
            "timeTaken": self.time_taken,
            "priority": self.priority.value,
            "status": self.status.value,
            "notes": self.notes,
            "createdAt": self.created_at,
        }
        if self.completed_at is not None:
            record["completedAt"] = self.completed_at
        return record


@dataclass
class DerivedTask(Task):
    """
    A Task augmented with computed fields.

    roi is revenue per hour of effort; priority_weight is the secondary
    ranking key (lower sorts first).
    """

    roi: float = 0.0
    priority_weight: int = 0


@dataclass
class Metrics:
    """
    Aggregate dashboard metrics over the full Task collection.
    """

    total_revenue: float = 0.0
    total_time_taken: float = 0.0
    time_efficiency_pct: float = 0.0
    revenue_per_hour: float = 0.0
    average_roi: float = 0.0
    performance_grade: str = "Needs Improvement"
