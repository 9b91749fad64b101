"""
coding_tools: code search, diff review and batch multi-file editing.

Public API for library usage::

    from coding_tools import BatchEditor, EditOperation

    editor = BatchEditor(project_root=".", dry_run=True)
    result = editor.run([EditOperation("src/app.py", "foo", "bar")])
    print(result.summary)
"""

from .editing import (
    BatchEditor, BatchResult, EditOperation, EditResult, EditStatus,
    DiffEngine, DiffResult, InvalidPatternError, EmptyBatchError,
)
from .search import PatternSearch, SearchResult
from .progress import ProgressEvent

__all__ = [
    "BatchEditor", "BatchResult", "EditOperation", "EditResult", "EditStatus",
    "DiffEngine", "DiffResult", "InvalidPatternError", "EmptyBatchError",
    "PatternSearch", "SearchResult",
    "ProgressEvent",
]
