"""
Task normalizer.

Turns arbitrary, untrusted records (the fetched tasks.json document, a
hand-edited file, API input) into valid Task objects. Nothing is ever
rejected: each invalid or missing field is replaced with a default.

No I/O here, only the coercion rules.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Optional

from .schema import Priority, Status, Task

ONE_DAY = timedelta(days=1)

_PRIORITIES = {p.value: p for p in Priority}
_STATUSES = {s.value: s for s in Status}


# --- Timestamps --------------------------------------------------------------


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Format as UTC ISO-8601 with millisecond precision, e.g.
    2024-03-01T09:30:00.000Z.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string or an epoch-milliseconds number.

    Returns an aware UTC datetime, or None if the value is not a valid date.
    Naive strings are read as UTC.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            if not math.isfinite(value):
                return None
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        # offsets can push dates near year 1 or 9999 out of range
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


# --- Single-field coercion ---------------------------------------------------


def _finite_number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a meaningful amount.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def coerce_revenue(value: Any) -> float:
    """Finite numbers clamped to >= 0; anything else becomes 0."""
    number = _finite_number(value)
    if number is None:
        return 0.0
    return max(0.0, number)


def coerce_time_taken(value: Any) -> float:
    """Finite numbers > 0 are kept; anything else becomes 1."""
    number = _finite_number(value)
    if number is None or number <= 0.0:
        return 1.0
    return number


def coerce_priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    return _PRIORITIES.get(value, Priority.MEDIUM) if isinstance(value, str) else Priority.MEDIUM


def coerce_status(value: Any) -> Status:
    if isinstance(value, Status):
        return value
    return _STATUSES.get(value, Status.TODO) if isinstance(value, str) else Status.TODO


# --- Records -----------------------------------------------------------------


def normalize_task(
    record: Any,
    index: int,
    *,
    now: Optional[datetime] = None,
) -> Task:
    """
    Normalize a single record found at position `index` of a batch.

    `index` drives the positional fallbacks (placeholder title, synthesized
    id and createdAt).
    """
    now = now or utc_now()
    raw: Mapping[str, Any] = record if isinstance(record, Mapping) else {}

    raw_id = raw.get("id")
    if isinstance(raw_id, str) and raw_id:
        task_id = raw_id
    else:
        task_id = f"task-{int(now.timestamp() * 1000)}-{index}"

    raw_title = raw.get("title")
    title = raw_title.strip() if isinstance(raw_title, str) else ""
    if not title:
        title = f"Task {index + 1}"

    status = coerce_status(raw.get("status"))

    created = parse_timestamp(raw.get("createdAt"))
    if created is None:
        created = now - (index + 1) * ONE_DAY

    completed_at: Optional[str] = None
    if status is Status.DONE:
        completed = parse_timestamp(raw.get("completedAt"))
        if completed is None:
            try:
                completed = created + ONE_DAY
            except OverflowError:
                completed = created
        completed_at = format_timestamp(completed)

    notes = raw.get("notes")

    return Task(
        id=task_id,
        title=title,
        revenue=coerce_revenue(raw.get("revenue")),
        time_taken=coerce_time_taken(raw.get("timeTaken")),
        priority=coerce_priority(raw.get("priority")),
        status=status,
        notes=notes if isinstance(notes, str) else "",
        created_at=format_timestamp(created),
        completed_at=completed_at,
    )


def normalize_tasks(records: Any, *, now: Optional[datetime] = None) -> List[Task]:
    """
    Normalize a batch of untrusted records into valid Tasks.

    Exactly one Task per input record, in input order. A non-list input
    (e.g. a JSON object at the document root) is treated as an empty batch.

    `now` is sampled once per batch so fallback createdAt values are
    strictly ordered: record i gets now - (i + 1) days.
    """
    if not isinstance(records, (list, tuple)):
        return []
    now = now or utc_now()
    return [normalize_task(r, idx, now=now) for idx, r in enumerate(records)]
