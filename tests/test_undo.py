# tests/test_undo.py

from __future__ import annotations

import asyncio

import pytest

from sales_tasks.schema import Task
from sales_tasks.store import TaskStore
from sales_tasks.undo import UndoBuffer, UndoEmpty, UndoHolding, UndoNotice


def _task(task_id: str) -> Task:
    return Task(id=task_id, title=task_id, revenue=1, time_taken=1)


def test_buffer_transitions() -> None:
    buf = UndoBuffer()
    assert isinstance(buf.state, UndoEmpty)
    assert buf.take() is None

    a, b = _task("a"), _task("b")
    buf.hold(a)
    assert buf.state == UndoHolding(a)

    buf.hold(b)
    assert buf.task is b

    assert buf.take() is b
    assert isinstance(buf.state, UndoEmpty)
    assert buf.take() is None


def test_buffer_clear() -> None:
    buf = UndoBuffer()
    buf.hold(_task("a"))
    buf.clear()
    assert buf.task is None
    buf.clear()
    assert isinstance(buf.state, UndoEmpty)


def _notice_for(store: TaskStore, seconds: float = 4.0) -> UndoNotice:
    return UndoNotice(
        is_open=lambda: store.last_deleted is not None,
        on_close=store.clear_last_deleted,
        on_undo=store.undo_delete,
        auto_hide_seconds=seconds,
    )


def test_clickaway_does_not_dismiss(store: TaskStore) -> None:
    task = store.add_task({"title": "A", "time_taken": 1})
    store.delete_task(task.id)
    notice = _notice_for(store)

    assert notice.open is True
    assert notice.handle_close("clickaway") is False
    assert store.last_deleted == task
    assert notice.open is True


def test_close_clears_without_restoring(store: TaskStore) -> None:
    task = store.add_task({"title": "A", "time_taken": 1})
    store.delete_task(task.id)
    notice = _notice_for(store)

    assert notice.handle_close() is True
    assert notice.open is False
    assert store.tasks == ()


def test_undo_then_exit_animation_restores_once(store: TaskStore) -> None:
    task = store.add_task({"title": "A", "time_taken": 1})
    store.delete_task(task.id)
    notice = _notice_for(store)

    notice.handle_undo()
    notice.handle_exited()

    assert store.tasks == (task,)
    assert store.last_deleted is None


@pytest.mark.asyncio
async def test_auto_dismiss_after_delay(store: TaskStore) -> None:
    task = store.add_task({"title": "A", "time_taken": 1})
    store.delete_task(task.id)
    notice = _notice_for(store, seconds=0.01)

    notice.arm()
    await asyncio.sleep(0.05)

    assert store.last_deleted is None
    assert store.undo_delete() is None


@pytest.mark.asyncio
async def test_undo_disarms_timer(store: TaskStore) -> None:
    first = store.add_task({"title": "A", "time_taken": 1})
    second = store.add_task({"title": "B", "time_taken": 1})
    store.delete_task(first.id)
    notice = _notice_for(store, seconds=0.01)

    notice.arm()
    notice.handle_undo()
    # a later delete must not be cleared by the old timer
    store.delete_task(second.id)
    await asyncio.sleep(0.05)

    assert store.last_deleted == second
