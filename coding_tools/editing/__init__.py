"""File editing: batch find/replace with rollback, plus unified diffs."""

from .models import EditOperation, EditResult, EditStatus, EditSummary, BatchResult, RollbackError
from .batch_editor import BatchEditor, EmptyBatchError
from .diff_engine import (
    DiffEngine, DiffResult, DiffHunk, DiffChange, DiffStats,
    PatchApplyError, apply_hunks, create_patch,
)
from .safe_regex import InvalidPatternError
from .metrics import log_edit_metric, read_edit_stats

__all__ = [
    "EditOperation", "EditResult", "EditStatus", "EditSummary", "BatchResult", "RollbackError",
    "BatchEditor", "EmptyBatchError",
    "DiffEngine", "DiffResult", "DiffHunk", "DiffChange", "DiffStats",
    "PatchApplyError", "apply_hunks", "create_patch",
    "InvalidPatternError",
    "log_edit_metric", "read_edit_stats",
]
