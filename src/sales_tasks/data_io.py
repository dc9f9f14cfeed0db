"""
Data I/O utilities.

Provides thin helpers to:
- Load raw task records / normalized tasks from a local tasks.json document
- Save tasks as a tasks.json document
- Export tasks (with derived ROI) to CSV for spreadsheet use

Standard library only. These are one-off imports/exports; the running
application keeps its state in memory.
"""

from __future__ import annotations

import csv
import json
from typing import Any, Iterable, List

from .metrics import compute_roi
from .normalizer import normalize_tasks
from .schema import Task

CSV_FIELDNAMES = [
    "id",
    "title",
    "revenue",
    "timeTaken",
    "roi",
    "priority",
    "status",
    "notes",
    "createdAt",
    "completedAt",
]


def load_records_from_json(path: str) -> Any:
    """
    Read a tasks.json document without validating it.

    Raises json.JSONDecodeError for malformed files; the caller decides.
    """
    with open(path, mode="r", encoding="utf-8") as f:
        return json.load(f)


def load_tasks_from_json(path: str) -> List[Task]:
    """Read a tasks.json document and normalize every record in it."""
    return normalize_tasks(load_records_from_json(path))


def save_tasks_to_json(tasks: Iterable[Task], path: str) -> None:
    """
    Save tasks as a camelCase JSON array, the same shape the loader fetches.
    """
    records = [t.to_record() for t in tasks]
    with open(path, mode="w", encoding="utf-8") as f:
        json.dump(records, f, indent=2)
        f.write("\n")


def save_tasks_to_csv(tasks: Iterable[Task], path: str) -> None:
    """
    Save tasks to a CSV file.

    Columns:
    id, title, revenue, timeTaken, roi, priority, status, notes,
    createdAt, completedAt
    """
    with open(path, mode="w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDNAMES)
        writer.writeheader()
        for task in tasks:
            row = task.to_record()
            row["roi"] = round(compute_roi(task), 2)
            # Ensure all expected keys exist
            out = {key: row.get(key, "") for key in CSV_FIELDNAMES}
            writer.writerow(out)
