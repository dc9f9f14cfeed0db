"""
FastAPI app for the sales task tracker.

Endpoints:
- GET    /tasks.json          seed document (camelCase records)
- GET    /state               everything a dashboard needs in one call
- GET    /tasks               current collection, insertion order
- GET    /tasks/sorted        derived tasks, ROI ranking
- GET    /metrics
- POST   /tasks
- PATCH  /tasks/{task_id}
- DELETE /tasks/{task_id}     buffers the task for undo
- POST   /undo
- POST   /undo/dismiss

State is in memory only and lives as long as the process. All handlers are
async so every store mutation runs on the event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from sales_tasks.config import Config, get_config
from sales_tasks.loader import InitialLoader
from sales_tasks.schema import Task
from sales_tasks.store import TaskStore
from sales_tasks.undo import UndoNotice

logger = logging.getLogger(__name__)


# --- State wiring ------------------------------------------------------------


def install_store(app: FastAPI, store: TaskStore, config: Optional[Config] = None) -> None:
    """
    Attach a store and its undo notice to the app.

    The notice auto-clears the undo buffer `undo_auto_hide_seconds` after a
    delete unless the client undoes first.
    """
    cfg = config or get_config()
    app.state.store = store
    app.state.notice = UndoNotice(
        is_open=lambda: store.last_deleted is not None,
        on_close=store.clear_last_deleted,
        on_undo=store.undo_delete,
        auto_hide_seconds=cfg.undo_auto_hide_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = get_config()
    store: TaskStore = app.state.store
    loader = InitialLoader(
        store,
        cfg.seed_url,
        fallback_count=cfg.fallback_task_count,
    )
    load_task: Optional[asyncio.Task] = None
    if cfg.load_on_startup:
        logger.info("Starting initial task load from %s", cfg.seed_url)
        # Not awaited: the seed URL may point back at this server.
        load_task = asyncio.create_task(loader.run())
    else:
        store.apply_load_result([])
    try:
        yield
    finally:
        loader.cancel()
        app.state.notice.disarm()
        if load_task is not None and not load_task.done():
            load_task.cancel()


app = FastAPI(title="Sales Task Tracker API", lifespan=lifespan)
install_store(app, TaskStore())


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


def get_notice(request: Request) -> UndoNotice:
    return request.app.state.notice


# --- Request / Response schemas ----------------------------------------------


class TaskCreatePayload(BaseModel):
    """
    Input payload for POST /tasks.

    Value fields are untyped on purpose: the store corrects garbage
    (unknown enums, non-numeric amounts) instead of the request being
    rejected.
    """

    id: Optional[str] = None
    title: Any = ""
    revenue: Any = 0.0
    time_taken: Any = 1.0
    priority: Any = "Medium"
    status: Any = "Todo"
    notes: Any = ""


class TaskPatchPayload(BaseModel):
    """
    Input payload for PATCH /tasks/{task_id}. Only fields that are sent with
    a non-null value are merged.
    """

    title: Optional[Any] = None
    revenue: Optional[Any] = None
    time_taken: Optional[Any] = None
    priority: Optional[Any] = None
    status: Optional[Any] = None
    notes: Optional[Any] = None
    completed_at: Optional[Any] = None


class DeleteResponse(BaseModel):
    deleted: dict
    undo_seconds: float


class UndoResponse(BaseModel):
    restored: Optional[dict]


class DismissResponse(BaseModel):
    dismissed: bool


def _dump(task: Task) -> Dict[str, Any]:
    out = asdict(task)
    out["priority"] = task.priority.value
    out["status"] = task.status.value
    return out


def _task_out(task: Optional[Task]) -> Optional[Dict[str, Any]]:
    return _dump(task) if task is not None else None


# --- Endpoints ---------------------------------------------------------------


@app.get("/tasks.json")
async def tasks_document(store: TaskStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [t.to_record() for t in store.tasks]


@app.get("/state")
async def read_state(store: TaskStore = Depends(get_store)) -> Dict[str, Any]:
    return {
        "tasks": [_dump(t) for t in store.tasks],
        "loading": store.loading,
        "error": store.error,
        "derived_sorted": [_dump(t) for t in store.derived_sorted],
        "metrics": asdict(store.metrics),
        "last_deleted": _task_out(store.last_deleted),
    }


@app.get("/tasks")
async def list_tasks(store: TaskStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [_dump(t) for t in store.tasks]


@app.get("/tasks/sorted")
async def list_sorted(store: TaskStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [_dump(t) for t in store.derived_sorted]


@app.get("/metrics")
async def read_metrics(store: TaskStore = Depends(get_store)) -> Dict[str, Any]:
    return asdict(store.metrics)


@app.post("/tasks", status_code=201)
async def create_task(
    payload: TaskCreatePayload,
    store: TaskStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Add a task. Never rejects on field values:

    {
      "title": "Renewal call with Globex",
      "revenue": 1200,
      "time_taken": -2,
      "priority": "Low",
      "status": "Todo"
    }

    is stored with time_taken = 1.
    """
    task = store.add_task(payload.model_dump())
    return _dump(task)


@app.patch("/tasks/{task_id}")
async def patch_task(
    task_id: str,
    payload: TaskPatchPayload,
    store: TaskStore = Depends(get_store),
) -> Dict[str, Any]:
    # null means "leave as is", not "reset to default"
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    task = store.update_task(task_id, changes)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return _dump(task)


@app.delete("/tasks/{task_id}", response_model=DeleteResponse)
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_store),
    notice: UndoNotice = Depends(get_notice),
) -> DeleteResponse:
    task = store.delete_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    notice.arm()
    return DeleteResponse(deleted=_dump(task), undo_seconds=notice.auto_hide_seconds)


@app.post("/undo", response_model=UndoResponse)
async def undo_delete(
    notice: UndoNotice = Depends(get_notice),
) -> UndoResponse:
    restored = notice.handle_undo()
    return UndoResponse(restored=_task_out(restored))


@app.post("/undo/dismiss", response_model=DismissResponse)
async def dismiss_undo(
    reason: Optional[str] = None,
    notice: UndoNotice = Depends(get_notice),
) -> DismissResponse:
    """
    Dismiss the undo prompt, dropping the buffered task.

    reason=clickaway is ignored so an accidental outside click keeps the
    undo available.
    """
    return DismissResponse(dismissed=notice.handle_close(reason))


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    from sales_tasks.logging_setup import setup_logging

    cfg = get_config()
    setup_logging(log_dir=cfg.log_dir, console_level=cfg.log_level)
    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
