"""
In-memory task store.

Holds the authoritative task collection for the session and exposes the
mutation API (add / update / delete / undo). Nothing is persisted.

Every mutation builds a new tuple and swaps it in with one assignment, then
recomputes the derived view and metrics before notifying listeners. Readers
therefore never see a half-applied change.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, fields, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import Config, get_config
from .metrics import compute_metrics, derive_sorted
from .normalizer import (
    coerce_priority,
    coerce_revenue,
    coerce_status,
    coerce_time_taken,
    format_timestamp,
    parse_timestamp,
    utc_now,
)
from .schema import DerivedTask, Metrics, Status, Task
from .undo import UndoBuffer

logger = logging.getLogger(__name__)

Listener = Callable[["TaskStore"], None]

_TASK_FIELDS = {f.name for f in fields(Task)}
_IMMUTABLE_FIELDS = {"id", "created_at"}

# tasks.json spelling -> attribute name
_RECORD_KEYS = {
    "timeTaken": "time_taken",
    "createdAt": "created_at",
    "completedAt": "completed_at",
}


def _as_mapping(obj: Any) -> Dict[str, Any]:
    """
    Plain dict view of a candidate or patch. Accepts both the snake_case
    attribute names and the camelCase record keys; snake_case wins when a
    field is given both ways.
    """
    if isinstance(obj, Mapping):
        data = dict(obj)
    elif isinstance(obj, Task):
        data = asdict(obj)
    else:
        # pydantic models and other simple objects
        dump = getattr(obj, "model_dump", None)
        data = dump(exclude_unset=True) if callable(dump) else dict(vars(obj))

    for record_key, attr in _RECORD_KEYS.items():
        if record_key in data:
            value = data.pop(record_key)
            data.setdefault(attr, value)
    return data


class TaskStore:
    """
    Session task store.

    Dependencies are injectable so tests can pin time and ids:
    - clock: returns an aware datetime for "now"
    - id_factory: returns a new unique task id
    """

    def __init__(
        self,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        config: Optional[Config] = None,
    ) -> None:
        self._clock = clock or utc_now
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._config = config or get_config()

        self._tasks: Tuple[Task, ...] = ()
        self._derived_sorted: List[DerivedTask] = []
        self._metrics: Metrics = compute_metrics((), self._config)
        self._undo = UndoBuffer()
        self._listeners: List[Listener] = []

        self._loading = True
        self._error: Optional[str] = None

    # ---- read-only state ----

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return self._tasks

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def derived_sorted(self) -> List[DerivedTask]:
        return list(self._derived_sorted)

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    @property
    def last_deleted(self) -> Optional[Task]:
        return self._undo.task

    def get_task(self, task_id: str) -> Optional[Task]:
        index = self._index_of(task_id)
        return self._tasks[index] if index is not None else None

    def _index_of(self, task_id: str) -> Optional[int]:
        return next((i for i, t in enumerate(self._tasks) if t.id == task_id), None)

    def _fresh_id(self, wanted: Any = None) -> str:
        """`wanted` if it is a usable id not already in the collection, else a new one."""
        if wanted and self._index_of(str(wanted)) is None:
            return str(wanted)
        if wanted:
            logger.warning("Task id %s already in use; assigning a new one", wanted)
        task_id = self._id_factory()
        while self._index_of(task_id) is not None:
            task_id = self._id_factory()
        return task_id

    # ---- subscriptions ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Task store listener failed")

    def _commit(self, tasks: Tuple[Task, ...]) -> None:
        if tasks is not self._tasks:
            self._tasks = tasks
            self._derived_sorted = derive_sorted(tasks)
            self._metrics = compute_metrics(tasks, self._config)
        self._notify()

    # ---- initial load ----

    def apply_load_result(self, tasks: List[Task], error: Optional[str] = None) -> None:
        self._loading = False
        self._error = error
        if error:
            logger.error("Initial task load failed: %s", error)
            self._commit(())
            return
        logger.info("Loaded %d tasks", len(tasks))
        self._commit(tuple(tasks))

    # ---- mutations ----

    def add_task(self, candidate: Any) -> Task:
        """
        Append a new task.

        Invalid values are corrected rather than rejected: time_taken <= 0
        becomes 1, negative revenue becomes 0, unknown enums fall back to
        their defaults. created_at is always "now"; completed_at is "now"
        only for tasks created as Done.
        """
        data = _as_mapping(candidate)
        now = format_timestamp(self._clock())

        task_id = self._fresh_id(data.get("id"))
        status = coerce_status(data.get("status"))
        title = data.get("title")
        notes = data.get("notes")

        task = Task(
            id=task_id,
            title=title.strip() if isinstance(title, str) and title.strip() else "Untitled task",
            revenue=coerce_revenue(data.get("revenue")),
            time_taken=coerce_time_taken(data.get("time_taken")),
            priority=coerce_priority(data.get("priority")),
            status=status,
            notes=notes if isinstance(notes, str) else "",
            created_at=now,
            completed_at=now if status is Status.DONE else None,
        )
        self._commit(self._tasks + (task,))
        logger.debug("Task added id=%s status=%s", task.id, task.status.value)
        return task

    def update_task(self, task_id: str, patch: Any) -> Optional[Task]:
        """
        Merge `patch` into the task with `task_id`.

        Returns the updated task, or None (and leaves the collection as is)
        when no task matches.
        """
        index = self._index_of(task_id)
        if index is None:
            logger.debug("update_task: no task id=%s", task_id)
            return None

        current = self._tasks[index]
        changes = {
            k: v
            for k, v in _as_mapping(patch).items()
            if k in _TASK_FIELDS and k not in _IMMUTABLE_FIELDS
        }

        title = changes.get("title")
        if "title" in changes and not (isinstance(title, str) and title.strip()):
            del changes["title"]
        elif title is not None:
            changes["title"] = title.strip()
        if "notes" in changes and not isinstance(changes["notes"], str):
            changes["notes"] = ""
        if "revenue" in changes:
            changes["revenue"] = coerce_revenue(changes["revenue"])
        # non-positive or garbage time_taken reverts to 1
        if "time_taken" in changes:
            changes["time_taken"] = coerce_time_taken(changes["time_taken"])
        if "priority" in changes:
            changes["priority"] = coerce_priority(changes["priority"])
        if "status" in changes:
            changes["status"] = coerce_status(changes["status"])
        supplied = parse_timestamp(changes.pop("completed_at", None))

        merged = replace(current, **changes)

        if merged.status is not Status.DONE:
            merged.completed_at = None
        elif supplied is not None:
            merged.completed_at = format_timestamp(supplied)
        elif current.status is not Status.DONE or not current.completed_at:
            merged.completed_at = format_timestamp(self._clock())

        tasks = self._tasks[:index] + (merged,) + self._tasks[index + 1 :]
        self._commit(tasks)
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return merged

    def delete_task(self, task_id: str) -> Optional[Task]:
        """
        Remove a task and buffer it for undo, replacing any buffered task.

        Unknown ids are ignored and leave the undo buffer untouched.
        """
        index = self._index_of(task_id)
        if index is None:
            logger.debug("delete_task: no task id=%s", task_id)
            return None

        target = self._tasks[index]
        self._undo.hold(target)
        self._commit(self._tasks[:index] + self._tasks[index + 1 :])
        logger.debug("Task deleted id=%s", task_id)
        return target

    def undo_delete(self) -> Optional[Task]:
        """
        Re-append the buffered task (at the end). No-op when empty.

        If its id was taken in the meantime the restored task gets a new one.
        """
        task = self._undo.take()
        if task is None:
            return None
        task_id = self._fresh_id(task.id)
        if task_id != task.id:
            task = replace(task, id=task_id)
        self._commit(self._tasks + (task,))
        logger.debug("Task restored id=%s", task.id)
        return task

    def clear_last_deleted(self) -> None:
        if self._undo.task is None:
            return
        self._undo.clear()
        self._notify()
