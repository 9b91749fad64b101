"""
Batch editor: applies an ordered list of find/replace edits across files
with a project-root boundary, dry-run preview, ``.bak`` backups and
best-effort rollback when any edit fails.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from typing import Iterable, Optional

from ..progress import STATUS_DONE, ProgressCallback, emit
from .boundary import is_within_boundary, read_text, resolve_path, resolve_root, safe_write
from .diff_engine import create_patch
from .metrics import log_edit_metric
from .models import (
    BatchResult,
    EditOperation,
    EditResult,
    EditStatus,
    EditSummary,
    RollbackError,
)
from .safe_regex import compile_regex

logger = logging.getLogger(__name__)

TOOL_ID = "coding:multiStringEdit"
BACKUP_SUFFIX = ".bak"
DEFAULT_MAX_FILE_SIZE = 1_000_000

NOT_FOUND_REASON = "Old string/pattern not found in file"
DRY_RUN_REASON = "Dry run - changes not written"
CANCELLED_REASON = "Cancelled before processing"


class EmptyBatchError(ValueError):
    """Raised when a batch contains no edit operations."""


class BatchEditor:
    """Apply a batch of find/replace edits, rolling back on failure.

    Edits run strictly in input order; each edit re-reads its file, so an
    edit sees the effect of every earlier edit to the same file.
    """

    def __init__(
        self,
        project_root: str | None = None,
        *,
        dry_run: bool = False,
        create_backup: bool = True,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        diff_context: int = 3,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        metrics: bool = False,
    ) -> None:
        self._root = resolve_root(project_root)
        self._dry_run = dry_run
        self._create_backup = create_backup
        self._max_file_size = max_file_size
        self._diff_context = diff_context
        self._progress = progress
        self._cancel_event = cancel_event
        self._metrics = metrics

    @property
    def project_root(self) -> str:
        return self._root

    def run(self, edits: Iterable[EditOperation]) -> BatchResult:
        """Process every edit and return the aggregate result.

        Parameters
        ----------
        edits:
            Ordered edit operations; must not be empty.

        Returns
        -------
        BatchResult
            One EditResult per edit, in input order.

        Raises
        ------
        EmptyBatchError
            If *edits* is empty.
        InvalidPatternError
            If any regex edit carries a pattern RE2 cannot compile.
            Raised before any file is touched.
        """
        edits = list(edits)
        if not edits:
            raise EmptyBatchError("At least one edit operation is required")
        for edit in edits:
            if edit.use_regex:
                compile_regex(edit.old_string)

        total = len(edits)
        emit(
            self._progress, TOOL_ID,
            f"Starting multi-string edit: {total} edits"
            f"{' (dry run)' if self._dry_run else ''}",
            current=0, total=total,
        )
        logger.info(
            "[BatchEdit] Running %d edit(s) under %s (dry_run=%s, backup=%s)",
            total, self._root, self._dry_run, self._create_backup,
        )

        results: list[EditResult] = []
        backups: dict[str, str] = {}  # resolved path → backup path
        cancelled = False

        for index, edit in enumerate(edits, start=1):
            if self._cancel_event is not None and self._cancel_event.is_set():
                cancelled = True
                logger.warning(
                    "[BatchEdit] Cancelled after %d of %d edit(s)",
                    index - 1, total,
                )
                for remaining in edits[index - 1:]:
                    results.append(EditResult(
                        file_path=remaining.file_path,
                        status=EditStatus.FAILED,
                        reason=CANCELLED_REASON,
                    ))
                break

            emit(
                self._progress, TOOL_ID,
                f"Processing edit {index} of {total}: {edit.file_path}",
                current=index, total=total,
            )
            result = self._process_edit(edit, backups)
            if result.status is EditStatus.FAILED:
                logger.warning(
                    "[BatchEdit] Edit %d failed for %s: %s",
                    index, edit.file_path, result.reason,
                )
            else:
                logger.debug(
                    "[BatchEdit] Edit %d %s for %s",
                    index, result.status.value, edit.file_path,
                )
            results.append(result)

        summary = EditSummary.from_results(results)
        batch = BatchResult(
            success=summary.failed == 0,
            results=results,
            summary=summary,
            dry_run=self._dry_run,
            cancelled=cancelled,
        )

        if not batch.success and not self._dry_run:
            self._rollback(backups, batch)

        if self._metrics and not self._dry_run:
            log_edit_metric(batch, project_root=self._root)

        emit(
            self._progress, TOOL_ID,
            f"Multi-string edit complete: {summary.applied} applied, "
            f"{summary.failed} failed, {summary.skipped} skipped",
            status=STATUS_DONE, current=len(results), total=total,
        )
        return batch

    # ------------------------------------------------------------------
    # Single edit
    # ------------------------------------------------------------------

    def _process_edit(
        self,
        edit: EditOperation,
        backups: dict[str, str],
    ) -> EditResult:
        """Run one edit through boundary, match, diff, backup and write."""
        path = resolve_path(edit.file_path, self._root)

        if not is_within_boundary(path, self._root):
            return self._result(
                edit, EditStatus.FAILED,
                f"Path outside project boundary: {self._root}",
            )

        try:
            if not os.path.exists(path):
                return self._result(edit, EditStatus.FAILED, "File does not exist")
            if not os.path.isfile(path):
                return self._result(edit, EditStatus.FAILED, "Target path is not a file")

            size = os.path.getsize(path)
            if size > self._max_file_size:
                return self._result(
                    edit, EditStatus.SKIPPED,
                    f"File too large ({size} bytes) - exceeds maxFileSize "
                    f"({self._max_file_size})",
                )

            content = read_text(path)
            new_content, skip_reason = self._replace(edit, content)
            if new_content is None:
                return self._result(edit, EditStatus.SKIPPED, skip_reason)

            diff = create_patch(
                os.path.basename(path), content, new_content,
                context=self._diff_context,
            )

            if self._dry_run:
                return self._result(
                    edit, EditStatus.APPLIED,
                    edit.description or DRY_RUN_REASON,
                    diff=diff,
                )

            if self._create_backup and path not in backups:
                backup_path = path + BACKUP_SUFFIX
                shutil.copy2(path, backup_path)
                backups[path] = backup_path
                logger.debug("[BatchEdit] Backed up %s -> %s", path, backup_path)

            safe_write(path, new_content)
            return self._result(
                edit, EditStatus.APPLIED, edit.description,
                backup=backups.get(path), diff=diff,
            )
        except Exception as exc:
            return self._result(edit, EditStatus.FAILED, str(exc) or type(exc).__name__)

    @staticmethod
    def _replace(edit: EditOperation, content: str) -> tuple[Optional[str], str]:
        """Compute the edited content.

        Returns ``(new_content, "")`` on a match, or ``(None, reason)`` when
        the edit must be skipped.
        """
        if edit.use_regex:
            regex = compile_regex(edit.old_string)
            new_content, count = regex.subn(
                edit.new_string, content, count=0 if edit.replace_all else 1,
            )
            if count == 0:
                return None, NOT_FOUND_REASON
            return new_content, ""

        occurrences = content.count(edit.old_string)
        if occurrences == 0:
            return None, NOT_FOUND_REASON
        if edit.replace_all:
            return content.replace(edit.old_string, edit.new_string), ""
        if occurrences > 1:
            return None, (
                f"Multiple occurrences found ({occurrences}). "
                f"Use replaceAll: true to replace all."
            )
        return content.replace(edit.old_string, edit.new_string, 1), ""

    @staticmethod
    def _result(
        edit: EditOperation,
        status: EditStatus,
        reason: str | None,
        *,
        backup: str | None = None,
        diff: str | None = None,
    ) -> EditResult:
        return EditResult(
            file_path=edit.file_path,
            status=status,
            reason=reason,
            backup=backup,
            diff=diff,
        )

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    @staticmethod
    def _rollback(backups: dict[str, str], batch: BatchResult) -> None:
        """Restore every backed-up file; one failure never stops the rest."""
        if not backups:
            logger.warning("[BatchEdit] Batch failed with no backups to restore")
            return

        logger.error(
            "[BatchEdit] Batch failed, rolling back %d file(s)", len(backups),
        )
        for file_path, backup_path in backups.items():
            try:
                shutil.copy2(backup_path, file_path)
                batch.rolled_back.append(file_path)
            except Exception as exc:
                logger.error(
                    "[BatchEdit] Rollback failed for %s: %s", file_path, exc,
                )
                batch.rollback_errors.append(
                    RollbackError(file_path=file_path, error=str(exc))
                )
