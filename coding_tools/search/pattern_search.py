"""
Pattern search: scans files for a literal or regex pattern and returns
matches with surrounding context, capped at ``max_results``.

Regex patterns are compiled with RE2, so a hostile pattern cannot make
matching run longer than linear time in the scanned text.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..editing.boundary import read_text
from ..editing.safe_regex import InvalidPatternError, compile_literal, compile_regex
from ..progress import STATUS_DONE, ProgressCallback, emit
from .file_resolver import EXCLUDED_DIRS, resolve_targets

logger = logging.getLogger(__name__)

TOOL_ID = "coding:codeSearch"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class MatchContext:
    before: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"before": list(self.before), "after": list(self.after)}


@dataclass
class SearchMatch:
    """
    A single located occurrence.

    Attributes
    ----------
    file:
        Absolute path of the file containing the match.
    line:
        1-indexed line number.
    column:
        1-indexed character offset of the match within the line.
    content:
        Full text of the matched line.
    context:
        Surrounding lines, or None when context was not requested.
    """

    file: str
    line: int
    column: int
    content: str
    context: Optional[MatchContext] = None

    def to_dict(self) -> dict:
        data = {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "content": self.content,
        }
        if self.context is not None:
            data["context"] = self.context.to_dict()
        return data


@dataclass
class SkippedFile:
    file: str
    reason: str

    def to_dict(self) -> dict:
        return {"file": self.file, "reason": self.reason}


@dataclass
class SearchStats:
    total_matches: int = 0
    files_searched: int = 0
    files_with_matches: int = 0
    files_skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "totalMatches": self.total_matches,
            "filesSearched": self.files_searched,
            "filesWithMatches": self.files_with_matches,
            "filesSkipped": self.files_skipped,
        }


@dataclass
class SearchResult:
    matches: list[SearchMatch] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)
    truncated: bool = False
    skipped: list[SkippedFile] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "stats": self.stats.to_dict(),
            "truncated": self.truncated,
            "skipped": [s.to_dict() for s in self.skipped],
            "cancelled": self.cancelled,
        }


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class PatternSearch:
    """Search files for a literal or regex pattern."""

    def __init__(self, exclude_dirs: Iterable[str] = EXCLUDED_DIRS) -> None:
        self._exclude_dirs = frozenset(exclude_dirs)

    def search(
        self,
        pattern: str,
        target: str | Iterable[str],
        *,
        is_regex: bool = False,
        case_sensitive: bool = False,
        max_results: int = 100,
        include_context: bool = True,
        context_lines: int = 2,
        max_file_size: int = 1_000_000,
        base_dir: str | None = None,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> SearchResult:
        """
        Scan every file named by *target* for *pattern*.

        Parameters
        ----------
        pattern:
            Literal text, or RE2 regex source when *is_regex* is set.
        target:
            File path, directory or glob, or a list of them.
        is_regex:
            Treat *pattern* as a regular expression. Every match on a line
            is reported; literal patterns report the first match per line.
        case_sensitive:
            Literal and regex matching are case-insensitive unless set.
        max_results:
            Cap on returned matches; ``truncated`` is set only when a
            further match existed beyond it.
        include_context, context_lines:
            Attach up to *context_lines* lines before/after each match.
        max_file_size:
            Files larger than this (bytes) are skipped.
        base_dir:
            Directory relative targets resolve against (default: CWD).
        progress:
            Optional progress callback.
        cancel_event:
            When set, scanning stops and the partial result is returned
            with ``cancelled=True``.

        Returns
        -------
        SearchResult

        Raises
        ------
        InvalidPatternError
            If *pattern* cannot be compiled. Raised before any file is read.
        """
        if max_results < 0:
            raise ValueError(f"max_results must be >= 0, got {max_results}")
        context_lines = max(0, context_lines)

        emit(progress, TOOL_ID, f"Starting code search for pattern '{pattern}'")

        if is_regex:
            regex = compile_regex(pattern, case_sensitive=case_sensitive)
        else:
            if not pattern:
                raise InvalidPatternError("Search pattern must not be empty")
            regex = compile_literal(pattern, case_sensitive=case_sensitive)

        files = resolve_targets(target, base_dir=base_dir, exclude_dirs=self._exclude_dirs)
        emit(progress, TOOL_ID, f"Files to search: {len(files)}", total=len(files))
        logger.info("[Search] '%s' across %d file(s)", pattern, len(files))

        result = SearchResult()

        for index, file_path in enumerate(files, start=1):
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                break

            lines = self._load(file_path, max_file_size, result)
            if lines is None:
                continue
            result.stats.files_searched += 1

            if self._scan(
                file_path, lines, regex, is_regex, result,
                max_results, include_context, context_lines, cancel_event,
            ):
                result.truncated = True
                logger.debug("[Search] Result cap of %d reached", max_results)
                break
            if result.cancelled:
                break
            emit(
                progress, TOOL_ID, f"Searched {file_path}",
                current=index, total=len(files),
            )

        result.stats.total_matches = len(result.matches)
        result.stats.files_with_matches = len({m.file for m in result.matches})
        result.stats.files_skipped = len(result.skipped)

        emit(
            progress, TOOL_ID,
            f"Code search complete: {result.stats.total_matches} matches "
            f"across {result.stats.files_with_matches} files",
            status=STATUS_DONE,
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load(file_path: str, max_file_size: int, result: SearchResult) -> Optional[list[str]]:
        """Read *file_path* as lines, or record why it was skipped."""
        reason: str | None = None
        lines: list[str] | None = None
        try:
            if not os.path.isfile(file_path):
                reason = "Not a regular file"
            else:
                size = os.path.getsize(file_path)
                if size > max_file_size:
                    reason = f"File too large ({size} bytes)"
                else:
                    lines = read_text(file_path).split("\n")
        except UnicodeDecodeError:
            reason = "Binary or non-UTF-8 content"
        except OSError as exc:
            reason = exc.strerror or str(exc)

        if reason is not None:
            logger.debug("[Search] Skipping %s: %s", file_path, reason)
            result.skipped.append(SkippedFile(file=file_path, reason=reason))
        return lines

    @staticmethod
    def _scan(
        file_path: str,
        lines: list[str],
        regex,
        is_regex: bool,
        result: SearchResult,
        max_results: int,
        include_context: bool,
        context_lines: int,
        cancel_event: threading.Event | None,
    ) -> bool:
        """Record matches in *lines*.

        Returns True as soon as a match beyond *max_results* is found.
        """
        for i, line in enumerate(lines):
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                break

            for match in regex.finditer(line):
                if len(result.matches) >= max_results:
                    return True
                context = None
                if include_context:
                    context = MatchContext(
                        before=lines[max(0, i - context_lines):i],
                        after=lines[i + 1:i + 1 + context_lines],
                    )
                result.matches.append(SearchMatch(
                    file=file_path,
                    line=i + 1,
                    column=match.start() + 1,
                    content=line,
                    context=context,
                ))
                if not is_regex:
                    break
        return False
