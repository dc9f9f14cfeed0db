# tests/conftest.py

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from sales_tasks.config import Config
from sales_tasks.store import TaskStore

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
FIXED_NOW_ISO = "2024-03-01T12:00:00.000Z"


class FakeClock:
    """Settable clock so tests can assert exact timestamps."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def config() -> Config:
    """
    Explicit Config so tests never depend on ST_* variables of the host.
    """
    return Config(
        seed_url="http://testserver/tasks.json",
        fallback_task_count=50,
        load_on_startup=False,
        grade_excellent_roi=500.0,
        grade_good_roi=200.0,
        undo_auto_hide_seconds=60.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock, config: Config) -> TaskStore:
    counter = itertools.count(1)
    s = TaskStore(
        clock=clock,
        id_factory=lambda: f"id-{next(counter)}",
        config=config,
    )
    s.apply_load_result([])
    return s
