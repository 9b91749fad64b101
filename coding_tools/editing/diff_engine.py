"""
Diff engine: unified diffs between two text blobs, decomposed into hunks
and line-level changes with summary statistics.
"""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

NO_NEWLINE_MARKER = "\\ No newline at end of file"
NO_CHANGES_SUMMARY = "No changes detected between the two versions."


class PatchApplyError(Exception):
    """Raised when a patch cannot be applied cleanly."""


@dataclass
class DiffHunk:
    """A contiguous block of a diff.

    ``old_start`` / ``new_start`` are 1-indexed positions of the first hunk
    line on each side. ``lines`` keep their `` ``/``+``/``-`` prefix and
    include ``\\ No newline at end of file`` markers.
    """
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: list[str] = field(default_factory=list)

    @property
    def header(self) -> str:
        return (
            f"@@ -{_format_range(self.old_start, self.old_lines)} "
            f"+{_format_range(self.new_start, self.new_lines)} @@"
        )

    def to_dict(self) -> dict:
        return {
            "oldStart": self.old_start,
            "oldLines": self.old_lines,
            "newStart": self.new_start,
            "newLines": self.new_lines,
            "lines": list(self.lines),
        }


@dataclass
class DiffChange:
    type: str           # "addition" | "deletion" | "context"
    line_number: int
    content: str

    def to_dict(self) -> dict:
        return {"type": self.type, "lineNumber": self.line_number, "content": self.content}


@dataclass
class DiffStats:
    additions: int = 0
    deletions: int = 0

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions

    def to_dict(self) -> dict:
        return {
            "additions": self.additions,
            "deletions": self.deletions,
            "totalChanges": self.total_changes,
        }


@dataclass
class DiffResult:
    unified_diff: str
    hunks: list[DiffHunk] = field(default_factory=list)
    changes: list[DiffChange] = field(default_factory=list)
    stats: DiffStats = field(default_factory=DiffStats)
    summary: str = NO_CHANGES_SUMMARY

    @property
    def has_changes(self) -> bool:
        return self.stats.total_changes > 0

    def to_dict(self) -> dict:
        return {
            "unifiedDiff": self.unified_diff,
            "hunks": [h.to_dict() for h in self.hunks],
            "changes": [c.to_dict() for c in self.changes],
            "stats": self.stats.to_dict(),
            "summary": self.summary,
        }


class DiffEngine:
    """Produce unified diffs and their structured decomposition."""

    def __init__(self, context: int = 3) -> None:
        if context < 0:
            raise ValueError(f"context must be >= 0, got {context}")
        self._context = context

    def diff(
        self,
        original: str,
        modified: str,
        filename: str = "file",
        context: int | None = None,
    ) -> DiffResult:
        """Diff *original* against *modified*.

        Parameters
        ----------
        original, modified:
            The two text versions.
        filename:
            Name used in the ``---``/``+++`` patch headers.
        context:
            Context lines around each change (default: engine setting).

        Returns
        -------
        DiffResult
            Identical inputs yield no hunks, no changes and the
            "no changes" summary.
        """
        n = self._context if context is None else context
        if n < 0:
            raise ValueError(f"context must be >= 0, got {n}")

        hunks = compute_hunks(original, modified, n)
        changes, stats = _decompose(hunks)
        summary = _summarize(stats, len(hunks))
        logger.debug(
            "[Diff] %s: %d hunk(s), +%d -%d",
            filename, len(hunks), stats.additions, stats.deletions,
        )
        return DiffResult(
            unified_diff=format_patch(filename, hunks),
            hunks=hunks,
            changes=changes,
            stats=stats,
            summary=summary,
        )


# ----------------------------------------------------------------------
# Hunk computation and formatting
# ----------------------------------------------------------------------

def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping line terminators."""
    if not text:
        return []
    parts = text.split("\n")
    lines = [p + "\n" for p in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def compute_hunks(original: str, modified: str, context: int = 3) -> list[DiffHunk]:
    """Return the hunks turning *original* into *modified*."""
    old = split_lines(original)
    new = split_lines(modified)
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)

    hunks: list[DiffHunk] = []
    for group in matcher.get_grouped_opcodes(context):
        i1, i2 = group[0][1], group[-1][2]
        j1, j2 = group[0][3], group[-1][4]
        lines: list[str] = []
        for tag, a1, a2, b1, b2 in group:
            if tag == "equal":
                _append_lines(lines, " ", old[a1:a2])
                continue
            if tag in ("replace", "delete"):
                _append_lines(lines, "-", old[a1:a2])
            if tag in ("replace", "insert"):
                _append_lines(lines, "+", new[b1:b2])
        hunks.append(DiffHunk(
            old_start=i1 + 1,
            old_lines=i2 - i1,
            new_start=j1 + 1,
            new_lines=j2 - j1,
            lines=lines,
        ))
    return hunks


def format_patch(filename: str, hunks: list[DiffHunk]) -> str:
    """Render *hunks* as unified diff text."""
    out = [f"--- {filename}\toriginal", f"+++ {filename}\tmodified"]
    for hunk in hunks:
        out.append(hunk.header)
        out.extend(hunk.lines)
    return "\n".join(out) + "\n"


def create_patch(
    filename: str,
    original: str,
    modified: str,
    context: int = 3,
) -> str:
    """Unified diff text for *original* → *modified*."""
    return format_patch(filename, compute_hunks(original, modified, context))


def apply_hunks(original: str, hunks: list[DiffHunk]) -> str:
    """Reconstruct the modified text by applying *hunks* to *original*.

    Raises
    ------
    PatchApplyError
        If a hunk's old side does not match *original*.
    """
    src = split_lines(original)
    out: list[str] = []
    pos = 0

    for hunk in hunks:
        start = hunk.old_start - 1
        if start < pos or start > len(src):
            raise PatchApplyError(
                f"Hunk {hunk.header} starts outside the remaining text"
            )
        out.extend(src[pos:start])
        pos = start
        for prefix, text in _hunk_entries(hunk.lines):
            if prefix in (" ", "-"):
                if pos >= len(src) or src[pos] != text:
                    raise PatchApplyError(
                        f"Hunk {hunk.header} does not match line {pos + 1}"
                    )
                pos += 1
            if prefix in (" ", "+"):
                out.append(text)

    out.extend(src[pos:])
    return "".join(out)


# ----------------------------------------------------------------------
# Internal helpers
# ----------------------------------------------------------------------

def _append_lines(out: list[str], prefix: str, lines: list[str]) -> None:
    for line in lines:
        if line.endswith("\n"):
            out.append(prefix + line[:-1])
        else:
            out.append(prefix + line)
            out.append(NO_NEWLINE_MARKER)


def _hunk_entries(lines: list[str]) -> list[tuple[str, str]]:
    """Pair each prefixed hunk line with its full text (terminator included)."""
    entries: list[tuple[str, str]] = []
    for i, line in enumerate(lines):
        if not line or line.startswith("\\"):
            continue
        followed_by_marker = i + 1 < len(lines) and lines[i + 1].startswith("\\")
        text = line[1:] if followed_by_marker else line[1:] + "\n"
        entries.append((line[0], text))
    return entries


def _format_range(start: int, length: int) -> str:
    """GNU unified range: an empty side names the line before the gap."""
    if length == 1:
        return f"{start}"
    if not length:
        start -= 1
    return f"{start},{length}"


def _decompose(hunks: list[DiffHunk]) -> tuple[list[DiffChange], DiffStats]:
    changes: list[DiffChange] = []
    stats = DiffStats()

    for hunk in hunks:
        old_line = hunk.old_start
        new_line = hunk.new_start
        for line in hunk.lines:
            if line.startswith("+"):
                changes.append(DiffChange("addition", new_line, line[1:]))
                stats.additions += 1
                new_line += 1
            elif line.startswith("-"):
                changes.append(DiffChange("deletion", old_line, line[1:]))
                stats.deletions += 1
                old_line += 1
            elif line.startswith(" "):
                changes.append(DiffChange("context", new_line, line[1:]))
                old_line += 1
                new_line += 1

    return changes, stats


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _summarize(stats: DiffStats, hunk_count: int) -> str:
    if stats.total_changes == 0:
        return NO_CHANGES_SUMMARY
    parts: list[str] = []
    if stats.additions:
        parts.append(_plural(stats.additions, "addition"))
    if stats.deletions:
        parts.append(_plural(stats.deletions, "deletion"))
    return (
        f"{_plural(stats.total_changes, 'change')}: {', '.join(parts)} "
        f"across {_plural(hunk_count, 'hunk')}."
    )
