"""
CLI for the sales task tracker.

Usage examples:

    # Clean up a hand-edited or exported tasks.json
    python -m app.cli normalize raw_tasks.json --out tasks.json

    # Print dashboard metrics and the top-ranked tasks
    python -m app.cli metrics tasks.json --top 5

    # Generate a sample tasks.json with 50 synthetic tasks
    python -m app.cli generate tasks.json --count 50

    # Export tasks (with ROI column) to CSV
    python -m app.cli export-csv tasks.json tasks.csv
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from sales_tasks.config import get_config
from sales_tasks.data_io import (
    load_records_from_json,
    load_tasks_from_json,
    save_tasks_to_csv,
    save_tasks_to_json,
)
from sales_tasks.logging_setup import setup_logging
from sales_tasks.metrics import compute_metrics, derive_sorted
from sales_tasks.normalizer import normalize_tasks
from sales_tasks.seed import generate_sales_tasks

logger = logging.getLogger(__name__)


def _require_file(command: str, path: Path) -> None:
    if not path.exists():
        raise SystemExit(f"[{command}] File not found: {path}")


def _read_tasks(command: str, path: Path):
    _require_file(command, path)
    try:
        return load_tasks_from_json(str(path))
    except json.JSONDecodeError as e:
        raise SystemExit(f"[{command}] Not valid JSON: {path} ({e})")


# --- Commands ----------------------------------------------------------------


def cmd_normalize(args: argparse.Namespace) -> None:
    """
    Normalize a raw task document and write the cleaned tasks.json.
    """
    src_path = Path(args.json_path).resolve()
    _require_file("normalize", src_path)

    try:
        records = load_records_from_json(str(src_path))
    except json.JSONDecodeError as e:
        raise SystemExit(f"[normalize] Not valid JSON: {src_path} ({e})")

    if not isinstance(records, list):
        print("[normalize] Document root is not a list; treating it as empty.")
    tasks = normalize_tasks(records)

    if args.out:
        out_path = Path(args.out).resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        save_tasks_to_json(tasks, str(out_path))
        print(f"[normalize] Wrote {len(tasks)} tasks to {out_path}")
    else:
        print(json.dumps([t.to_record() for t in tasks], indent=2))


def cmd_metrics(args: argparse.Namespace) -> None:
    """
    Print aggregate metrics and the top-N tasks by ROI.
    """
    json_path = Path(args.json_path).resolve()
    tasks = _read_tasks("metrics", json_path)
    print(f"[metrics] Loaded {len(tasks)} tasks from {json_path}")

    metrics = compute_metrics(tasks, get_config())
    print(json.dumps(asdict(metrics), indent=2))

    if args.top > 0 and tasks:
        print()
        print(f"[metrics] Top {args.top} by ROI:")
        for t in derive_sorted(tasks)[: args.top]:
            print(
                f"  {t.roi:10.2f}/h  {t.priority.value:<6}  {t.status.value:<11}  {t.title}"
            )


def cmd_generate(args: argparse.Namespace) -> None:
    """
    Write a tasks.json with synthetic sales tasks.
    """
    out_path = Path(args.out_path).resolve()
    tasks = generate_sales_tasks(args.count, seed=args.seed)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    save_tasks_to_json(tasks, str(out_path))
    print(f"[generate] Wrote {len(tasks)} tasks to {out_path}")


def cmd_export_csv(args: argparse.Namespace) -> None:
    """
    Convert a tasks.json document to CSV, adding an ROI column.
    """
    json_path = Path(args.json_path).resolve()
    csv_path = Path(args.csv_path).resolve()
    tasks = _read_tasks("export-csv", json_path)

    csv_path.parent.mkdir(parents=True, exist_ok=True)
    save_tasks_to_csv(tasks, str(csv_path))
    print(f"[export-csv] Exported {len(tasks)} tasks to {csv_path}")


# --- Main --------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sales Task Tracker CLI – normalize, metrics, generate, export."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to the console.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # normalize
    norm_p = subparsers.add_parser(
        "normalize",
        help="Normalize a raw task document.",
    )
    norm_p.add_argument("json_path", help="Path to the raw JSON array of task records.")
    norm_p.add_argument(
        "--out",
        default=None,
        help="Write the cleaned document here instead of printing it.",
    )
    norm_p.set_defaults(func=cmd_normalize)

    # metrics
    met_p = subparsers.add_parser(
        "metrics",
        help="Print dashboard metrics for a tasks.json document.",
    )
    met_p.add_argument("json_path", help="Path to tasks.json.")
    met_p.add_argument(
        "--top",
        type=int,
        default=5,
        help="How many top-ROI tasks to list (default: 5, 0 to skip).",
    )
    met_p.set_defaults(func=cmd_metrics)

    # generate
    gen_p = subparsers.add_parser(
        "generate",
        help="Generate a tasks.json with synthetic sales tasks.",
    )
    gen_p.add_argument("out_path", help="Destination path for the generated tasks.json.")
    gen_p.add_argument(
        "--count",
        type=int,
        default=get_config().fallback_task_count,
        help="Number of tasks to generate (default: ST_FALLBACK_TASK_COUNT or 50).",
    )
    gen_p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible output.",
    )
    gen_p.set_defaults(func=cmd_generate)

    # export-csv
    exp_p = subparsers.add_parser(
        "export-csv",
        help="Export a tasks.json document to CSV.",
    )
    exp_p.add_argument("json_path", help="Path to tasks.json.")
    exp_p.add_argument("csv_path", help="Destination CSV path.")
    exp_p.set_defaults(func=cmd_export_csv)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = get_config()
    setup_logging(
        log_dir=cfg.log_dir,
        console_level=logging.DEBUG if args.verbose else cfg.log_level,
    )
    logger.debug("Running command %s", args.command)
    args.func(args)


if __name__ == "__main__":
    main()
