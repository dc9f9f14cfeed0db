"""
Configuration module for the sales task tracker.

Single source of truth for:
- Where the initial task document is fetched from
- Metric policy constants (performance grade thresholds)
- Undo notice timing
- Logging destination

All values can be overridden via environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional, Tuple


GRADE_EXCELLENT = "Excellent"
GRADE_GOOD = "Good"
GRADE_NEEDS_IMPROVEMENT = "Needs Improvement"


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class Config:
    """
    Runtime configuration for the sales task tracker.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    # Initial data source
    seed_url: str = "http://localhost:8000/tasks.json"
    fallback_task_count: int = 50
    load_on_startup: bool = True

    # Performance grade thresholds on average ROI (revenue per hour).
    grade_excellent_roi: float = 500.0
    grade_good_roi: float = 200.0

    # Undo notice auto-dismiss delay
    undo_auto_hide_seconds: float = 4.0

    # Logging
    log_dir: str = ".local/sales_tasks"
    log_level: str = "INFO"

    def grade_thresholds(self) -> Tuple[Tuple[float, str], ...]:
        """
        Ordered (min_roi, label) pairs, highest first.

        The good threshold is capped at the excellent one so the mapping
        stays monotonic even with odd env values.
        """
        good = min(self.grade_good_roi, self.grade_excellent_roi)
        return (
            (self.grade_excellent_roi, GRADE_EXCELLENT),
            (good, GRADE_GOOD),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - ST_SEED_URL
        - ST_FALLBACK_TASK_COUNT     (int)
        - ST_LOAD_ON_STARTUP         (true/false)
        - ST_GRADE_EXCELLENT_ROI     (float)
        - ST_GRADE_GOOD_ROI          (float)
        - ST_UNDO_AUTO_HIDE_SECONDS  (float)
        - ST_LOG_DIR
        - ST_LOG_LEVEL
        """
        return cls(
            seed_url=os.getenv("ST_SEED_URL", cls.seed_url),
            fallback_task_count=_get_env_int(
                "ST_FALLBACK_TASK_COUNT", default=cls.fallback_task_count
            ),
            load_on_startup=_get_env_bool("ST_LOAD_ON_STARTUP", default=True),
            grade_excellent_roi=_get_env_float(
                "ST_GRADE_EXCELLENT_ROI", default=cls.grade_excellent_roi
            ),
            grade_good_roi=_get_env_float(
                "ST_GRADE_GOOD_ROI", default=cls.grade_good_roi
            ),
            undo_auto_hide_seconds=_get_env_float(
                "ST_UNDO_AUTO_HIDE_SECONDS", default=cls.undo_auto_hide_seconds
            ),
            log_dir=os.getenv("ST_LOG_DIR", cls.log_dir),
            log_level=os.getenv("ST_LOG_LEVEL", cls.log_level).upper(),
        )


# Convenience singleton-style accessor if you want a shared config
_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """
    Return a process-wide Config instance.

    Use `force_reload=True` if environment variables changed at runtime
    and you want to refresh.
    """
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None or force_reload:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG
