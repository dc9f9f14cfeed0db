"""
Synthetic sales tasks.

Used as the fallback collection when the fetched document normalizes to
nothing, and by `app.cli generate` to produce a sample tasks.json.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from .normalizer import format_timestamp, utc_now
from .schema import Priority, Status, Task

_ACTIONS = [
    "Follow up with",
    "Demo for",
    "Renewal call with",
    "Send proposal to",
    "Negotiate contract with",
    "Discovery call with",
    "Upsell review for",
    "Onboarding for",
]

_ACCOUNTS = [
    "Acme Corp",
    "Globex",
    "Initech",
    "Umbrella",
    "Stark Industries",
    "Wayne Enterprises",
    "Hooli",
    "Soylent",
    "Vandelay Imports",
    "Wonka Industries",
]

_PRIORITIES = list(Priority)
_STATUSES = list(Status)


def generate_sales_tasks(
    count: int,
    *,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Task]:
    """
    Generate `count` valid tasks.

    - revenue: 0 .. 10000 (whole currency units)
    - time_taken: 1 .. 40 hours, one decimal
    - created within the last 60 days; Done tasks complete 1..7 days later
    """
    rng = np.random.default_rng(seed)
    now = now or utc_now()
    count = max(0, int(count))

    revenues = rng.integers(0, 10_001, size=count)
    hours = np.round(rng.uniform(1.0, 40.0, size=count), 1)
    age_minutes = rng.integers(0, 60 * 24 * 60, size=count)
    completion_days = rng.integers(1, 8, size=count)

    tasks: List[Task] = []
    for i in range(count):
        status = _STATUSES[int(rng.integers(len(_STATUSES)))]
        created = now - timedelta(minutes=int(age_minutes[i]))
        completed_at = None
        if status is Status.DONE:
            completed_at = format_timestamp(
                created + timedelta(days=int(completion_days[i]))
            )

        action = _ACTIONS[int(rng.integers(len(_ACTIONS)))]
        account = _ACCOUNTS[int(rng.integers(len(_ACCOUNTS)))]
        tasks.append(
            Task(
                id=f"seed-{i + 1:03d}",
                title=f"{action} {account}",
                revenue=float(revenues[i]),
                time_taken=float(hours[i]),
                priority=_PRIORITIES[int(rng.integers(len(_PRIORITIES)))],
                status=status,
                notes="",
                created_at=format_timestamp(created),
                completed_at=completed_at,
            )
        )
    return tasks
