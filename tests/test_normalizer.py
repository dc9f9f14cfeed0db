# tests/test_normalizer.py

from __future__ import annotations

import math

from sales_tasks.normalizer import (
    format_timestamp,
    normalize_tasks,
    parse_timestamp,
)
from sales_tasks.schema import Priority, Status

from .conftest import FIXED_NOW

GARBAGE = [
    {},
    None,
    "not a record",
    42,
    {"revenue": "100", "timeTaken": "3"},
    {"revenue": float("nan"), "timeTaken": float("inf")},
    {"revenue": -1e9, "timeTaken": -0.5},
    {"revenue": True, "timeTaken": False},
    {"revenue": float("-inf"), "timeTaken": 0},
    {"priority": "urgent", "status": "done", "createdAt": "yesterday"},
    {"id": 7, "title": 12, "notes": ["a"]},
    # valid JSON that does not fit a float or a datetime
    {"revenue": 10**400, "timeTaken": -(10**400), "createdAt": 10**400},
    {"status": "Done", "createdAt": "9999-12-31T12:00:00Z"},
    {"createdAt": "0001-01-01T00:00:00+05:00", "completedAt": "9999-12-31T23:00:00-05:00"},
]


def test_numeric_invariants_hold_for_malformed_input() -> None:
    tasks = normalize_tasks(GARBAGE, now=FIXED_NOW)

    assert len(tasks) == len(GARBAGE)
    for t in tasks:
        assert t.time_taken > 0
        assert t.revenue >= 0
        assert math.isfinite(t.revenue)
        assert math.isfinite(t.time_taken)


def test_done_iff_completed_at() -> None:
    records = GARBAGE + [
        {"status": "Done"},
        {"status": "Done", "completedAt": "2024-01-05T10:00:00Z"},
        {"status": "Done", "completedAt": "garbage"},
        {"status": "Todo", "completedAt": "2024-01-05T10:00:00Z"},
        {"status": "In Progress", "completedAt": "2024-01-05T10:00:00Z"},
    ]
    for t in normalize_tasks(records, now=FIXED_NOW):
        assert (t.status is Status.DONE) == (t.completed_at is not None)


def test_done_without_completion_gets_created_plus_one_day() -> None:
    [task] = normalize_tasks(
        [{"revenue": -5, "timeTaken": 0, "status": "Done"}], now=FIXED_NOW
    )

    assert task.revenue == 0
    assert task.time_taken == 1
    assert task.status is Status.DONE
    # fallback createdAt for index 0 is now - 1 day
    assert task.created_at == "2024-02-29T12:00:00.000Z"
    assert task.completed_at == "2024-03-01T12:00:00.000Z"


def test_defaults_for_empty_record() -> None:
    [task] = normalize_tasks([{}], now=FIXED_NOW)

    assert task.id == f"task-{int(FIXED_NOW.timestamp() * 1000)}-0"
    assert task.title == "Task 1"
    assert task.revenue == 0
    assert task.time_taken == 1
    assert task.priority is Priority.MEDIUM
    assert task.status is Status.TODO
    assert task.notes == ""
    assert task.completed_at is None


def test_valid_record_is_kept() -> None:
    record = {
        "id": "t-1",
        "title": "  Demo for Globex  ",
        "revenue": 2500,
        "timeTaken": 2.5,
        "priority": "High",
        "status": "Done",
        "notes": "went well",
        "createdAt": "2024-01-10T09:00:00Z",
        "completedAt": "2024-01-12T17:30:00+02:00",
    }
    [task] = normalize_tasks([record], now=FIXED_NOW)

    assert task.id == "t-1"
    assert task.title == "Demo for Globex"
    assert task.revenue == 2500
    assert task.time_taken == 2.5
    assert task.priority is Priority.HIGH
    assert task.status is Status.DONE
    assert task.notes == "went well"
    assert task.created_at == "2024-01-10T09:00:00.000Z"
    assert task.completed_at == "2024-01-12T15:30:00.000Z"


def test_blank_title_and_empty_id_use_fallbacks() -> None:
    tasks = normalize_tasks(
        [{"title": "x"}, {"id": "", "title": "   "}], now=FIXED_NOW
    )

    assert tasks[1].title == "Task 2"
    assert tasks[1].id.endswith("-1")
    assert tasks[0].id != tasks[1].id


def test_fallback_created_at_is_strictly_ordered() -> None:
    tasks = normalize_tasks([{}, {}, {}, {}], now=FIXED_NOW)
    created = [parse_timestamp(t.created_at) for t in tasks]

    assert created == sorted(created, reverse=True)
    assert len(set(created)) == 4
    assert (FIXED_NOW - created[3]).days == 4


def test_status_done_with_invalid_completion_is_synthesized() -> None:
    [task] = normalize_tasks(
        [{"status": "Done", "createdAt": "2024-01-01T00:00:00Z", "completedAt": "nope"}],
        now=FIXED_NOW,
    )
    assert task.completed_at == "2024-01-02T00:00:00.000Z"


def test_epoch_millis_created_at() -> None:
    [task] = normalize_tasks([{"createdAt": 1704067200000}], now=FIXED_NOW)
    assert task.created_at == "2024-01-01T00:00:00.000Z"


def test_non_list_input_is_empty() -> None:
    assert normalize_tasks({"tasks": []}) == []
    assert normalize_tasks(None) == []
    assert normalize_tasks("[]") == []


def test_order_preserved() -> None:
    tasks = normalize_tasks([{"id": c} for c in "abc"], now=FIXED_NOW)
    assert [t.id for t in tasks] == ["a", "b", "c"]


def test_format_timestamp_reads_naive_as_utc() -> None:
    parsed = parse_timestamp("2024-05-06T07:08:09.123456")
    assert format_timestamp(parsed) == "2024-05-06T07:08:09.123Z"
    assert parse_timestamp("") is None
    assert parse_timestamp(True) is None
    assert parse_timestamp(float("nan")) is None


def test_out_of_range_values_fall_back_to_defaults() -> None:
    huge = 10**400
    big, early, late_done = normalize_tasks(
        [
            {"revenue": huge, "timeTaken": huge, "createdAt": huge},
            {"createdAt": "0001-01-01T00:00:00+05:00"},
            {"status": "Done", "createdAt": "9999-12-31T12:00:00Z"},
        ],
        now=FIXED_NOW,
    )

    assert big.revenue == 0
    assert big.time_taken == 1
    assert big.created_at == "2024-02-29T12:00:00.000Z"
    assert early.created_at == "2024-02-28T12:00:00.000Z"
    # no room for created + 1 day at the end of the calendar
    assert late_done.created_at == "9999-12-31T12:00:00.000Z"
    assert late_done.completed_at == late_done.created_at


def test_parse_timestamp_out_of_range_is_none() -> None:
    assert parse_timestamp(10**400) is None
    assert parse_timestamp(-(10**400)) is None
    assert parse_timestamp("0001-01-01T00:00:00+05:00") is None
    assert parse_timestamp("9999-12-31T23:00:00-05:00") is None
