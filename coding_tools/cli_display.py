"""
CLI display: log file setup, tqdm progress bars and plain-text rendering
of search / diff / batch-edit results for the terminal.
"""

import logging
import os
from datetime import datetime

from tqdm import tqdm

from .editing.diff_engine import DiffResult
from .editing.models import BatchResult, EditStatus
from .progress import STATUS_DONE, ProgressEvent
from .search.pattern_search import SearchResult


_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(log_dir: str = ".coding-tools/logs") -> logging.Logger:
    """Route the package's DEBUG-and-up records to a per-run log file.

    The terminal stays reserved for results and the progress bar. Calling
    this again replaces the previous run's file handler.
    """
    pkg_logger = logging.getLogger("coding_tools")
    pkg_logger.setLevel(logging.DEBUG)
    for handler in list(pkg_logger.handlers):
        if getattr(handler, "_coding_tools_run_log", False):
            pkg_logger.removeHandler(handler)
            handler.close()

    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    handler = logging.FileHandler(
        os.path.join(log_dir, f"coding_tools_{stamp}.log"), encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    handler._coding_tools_run_log = True
    pkg_logger.addHandler(handler)
    return pkg_logger


class ProgressBar:
    """Progress callback that drives a tqdm bar from ProgressEvents."""

    def __init__(self, desc: str, unit: str = "item", disable: bool = False):
        self._pbar = tqdm(total=None, unit=unit, desc=desc, disable=disable)
        self._position = 0

    def __call__(self, event: ProgressEvent) -> None:
        if event.total is not None and self._pbar.total != event.total:
            self._pbar.total = event.total
            self._pbar.refresh()
        if event.current is not None and event.current > self._position:
            self._pbar.update(event.current - self._position)
            self._position = event.current
        self._pbar.set_postfix_str(event.message[-50:], refresh=False)
        if event.status == STATUS_DONE:
            self.close()

    def close(self) -> None:
        self._pbar.close()


_STATUS_ICONS = {
    EditStatus.APPLIED: "✔",
    EditStatus.SKIPPED: "-",
    EditStatus.FAILED: "✘",
}


def print_batch_result(result: BatchResult) -> None:
    """Pretty-print a batch edit outcome."""
    mode = " (dry run)" if result.dry_run else ""
    print(f"\nMulti-string edit{mode}  [{result.summary.total} edit(s)]")
    print("-" * 60)
    for r in result.results:
        icon = _STATUS_ICONS[r.status]
        line = f"  {icon} {r.status.value:<8} {r.file_path}"
        if r.reason:
            line += f": {r.reason}"
        print(line)
        if r.backup:
            print(f"      backup: {r.backup}")

    s = result.summary
    print(
        f"\n  Applied: {s.applied}   Skipped: {s.skipped}   Failed: {s.failed}"
    )
    if result.cancelled:
        print("  Run was cancelled.")
    if result.rolled_back:
        print(f"  Rolled back {len(result.rolled_back)} file(s):")
        for path in result.rolled_back:
            print(f"    {path}")
    for err in result.rollback_errors:
        print(f"  [ERROR] Rollback failed for {err.file_path}: {err.error}")


def print_search_result(result: SearchResult, base_dir: str = ".") -> None:
    """Pretty-print search matches grep-style, with context when present."""
    base = os.path.abspath(base_dir)
    if not result.matches:
        print("  (no matches)")
    for m in result.matches:
        rel = os.path.relpath(m.file, base)
        if m.context:
            for offset, text in enumerate(m.context.before):
                lineno = m.line - len(m.context.before) + offset
                print(f"{rel}-{lineno}-{text}")
        print(f"{rel}:{m.line}:{m.column}:{m.content}")
        if m.context:
            for offset, text in enumerate(m.context.after, start=1):
                print(f"{rel}-{m.line + offset}-{text}")
            print("--")

    st = result.stats
    print(
        f"\n{st.total_matches} match(es) in {st.files_with_matches} file(s); "
        f"{st.files_searched} searched, {st.files_skipped} skipped"
        f"{' (truncated)' if result.truncated else ''}"
    )


def print_diff_result(result: DiffResult) -> None:
    """Print the colored patch followed by its summary line."""
    from .diff_display import format_colored_diff

    if result.hunks:
        print(format_colored_diff(result.unified_diff))
    print(result.summary)
