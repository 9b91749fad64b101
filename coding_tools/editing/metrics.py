"""
Edit metrics: an append-only JSONL journal of batch-edit runs, and rolling
statistics computed from it.

Each line is one run::

    {"timestamp": "...", "total": 3, "applied": 2, "skipped": 0,
     "failed": 1, "rolled_back": 2, "cancelled": false}
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone

from .models import BatchResult

logger = logging.getLogger(__name__)

METRICS_DIR = ".coding-tools"
METRICS_FILE = "edit_metrics.jsonl"


def metrics_path(project_root: str | None = None) -> str:
    """Journal location under *project_root* (default: CWD)."""
    return os.path.join(project_root or os.getcwd(), METRICS_DIR, METRICS_FILE)


def log_edit_metric(result: BatchResult, project_root: str | None = None) -> None:
    """Append one journal line for a finished, non-dry-run batch.

    I/O errors are logged and swallowed; the journal never changes the
    outcome of the batch it records.
    """
    summary = result.summary
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total": summary.total,
        "applied": summary.applied,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "rolled_back": len(result.rolled_back),
        "cancelled": result.cancelled,
    }
    path = metrics_path(project_root)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[EditMetrics] Could not append to %s: %s", path, exc)


def _read_entries(path: str) -> list[dict]:
    if not os.path.isfile(path):
        return []
    entries: list[dict] = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            for lineno, raw in enumerate(f, start=1):
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    entry = json.loads(raw)
                except json.JSONDecodeError:
                    logger.debug("[EditMetrics] Skipping corrupt line %d of %s", lineno, path)
                    continue
                if isinstance(entry, dict):
                    entries.append(entry)
    except OSError as exc:
        logger.warning("[EditMetrics] Could not read %s: %s", path, exc)
    return entries


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def read_edit_stats(last_n: int = 50, project_root: str | None = None) -> dict:
    """Rolling statistics over the *last_n* most recent runs.

    Returns
    -------
    dict
        ``total_runs`` and ``total_edits``; ``apply_rate``, ``skip_rate``
        and ``failure_rate`` as a percentage of edits; ``rollback_rate`` as
        a percentage of runs. Rates are ``0.0`` when there is nothing to
        divide by.
    """
    entries = _read_entries(metrics_path(project_root))[-last_n:] if last_n > 0 else []

    runs = len(entries)
    edits = sum(e.get("total", 0) for e in entries)
    applied = sum(e.get("applied", 0) for e in entries)
    skipped = sum(e.get("skipped", 0) for e in entries)
    failed = sum(e.get("failed", 0) for e in entries)
    rolled_back_runs = sum(1 for e in entries if e.get("rolled_back", 0))

    return {
        "total_runs": runs,
        "total_edits": edits,
        "apply_rate": _percent(applied, edits),
        "skip_rate": _percent(skipped, edits),
        "failure_rate": _percent(failed, edits),
        "rollback_rate": _percent(rolled_back_runs, runs),
    }
