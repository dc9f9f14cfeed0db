"""
Pure math for derived task fields and dashboard metrics.

No I/O, no state. Just:
- Per-task return on effort (ROI = revenue / hours)
- Deterministic sort of the derived task list
- Aggregate metrics and the performance grade
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import GRADE_NEEDS_IMPROVEMENT, Config, get_config
from .schema import DerivedTask, Metrics, Priority, Status, Task

PRIORITY_WEIGHTS = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}

BASELINE_METRICS = Metrics()


def compute_roi(task: Task) -> float:
    """
    Revenue per hour of effort.

    time_taken > 0 is guaranteed upstream; the guard only keeps a
    hand-built Task from dividing by zero.
    """
    if task.time_taken <= 0.0:
        return 0.0
    return task.revenue / task.time_taken


def with_derived(task: Task) -> DerivedTask:
    base = {f.name: getattr(task, f.name) for f in fields(Task)}
    return DerivedTask(
        **base,
        roi=compute_roi(task),
        priority_weight=PRIORITY_WEIGHTS[task.priority],
    )


def sort_tasks(tasks: Iterable[DerivedTask]) -> List[DerivedTask]:
    """
    Highest ROI first, then High -> Medium -> Low priority.

    sorted() is stable, so tasks with equal keys keep their input order.
    """
    return sorted(tasks, key=lambda t: (-t.roi, t.priority_weight))


def derive_sorted(tasks: Iterable[Task]) -> List[DerivedTask]:
    return sort_tasks(with_derived(t) for t in tasks)


# --- Aggregates --------------------------------------------------------------


def _column(tasks: Sequence[Task], attr: str) -> np.ndarray:
    return np.asarray([getattr(t, attr) for t in tasks], dtype=float)


def compute_total_revenue(tasks: Sequence[Task]) -> float:
    return float(_column(tasks, "revenue").sum())


def compute_total_time(tasks: Sequence[Task]) -> float:
    return float(_column(tasks, "time_taken").sum())


def compute_time_efficiency(tasks: Sequence[Task]) -> float:
    """
    Percentage of all logged hours that went into Done tasks.

    0 when no time is logged.
    """
    total = compute_total_time(tasks)
    if total <= 0.0:
        return 0.0
    done = sum(t.time_taken for t in tasks if t.status is Status.DONE)
    return float(done / total * 100.0)


def compute_revenue_per_hour(tasks: Sequence[Task]) -> float:
    total_time = compute_total_time(tasks)
    if total_time <= 0.0:
        return 0.0
    return compute_total_revenue(tasks) / total_time


def compute_average_roi(tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    rois = np.asarray([compute_roi(t) for t in tasks], dtype=float)
    return float(rois.mean())


def compute_performance_grade(
    average_roi: float,
    thresholds: Optional[Sequence[Tuple[float, str]]] = None,
) -> str:
    """
    Map average ROI onto an ordered grade label.

    thresholds are (min_roi, label) pairs, highest first; the first pair
    whose min_roi is reached wins. Below all of them -> "Needs Improvement".
    """
    if thresholds is None:
        thresholds = get_config().grade_thresholds()
    for min_roi, label in thresholds:
        if average_roi >= min_roi:
            return label
    return GRADE_NEEDS_IMPROVEMENT


def compute_metrics(
    tasks: Sequence[Task],
    config: Optional[Config] = None,
) -> Metrics:
    """
    Aggregate snapshot over the whole collection.

    An empty collection yields the zero baseline instead of NaNs.
    """
    if not tasks:
        return Metrics(**asdict(BASELINE_METRICS))

    cfg = config or get_config()
    average_roi = compute_average_roi(tasks)
    return Metrics(
        total_revenue=compute_total_revenue(tasks),
        total_time_taken=compute_total_time(tasks),
        time_efficiency_pct=compute_time_efficiency(tasks),
        revenue_per_hour=compute_revenue_per_hour(tasks),
        average_roi=average_roi,
        performance_grade=compute_performance_grade(
            average_roi, cfg.grade_thresholds()
        ),
    )
