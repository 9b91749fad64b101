"""
Diff display: colored unified diffs for the terminal, and a Textual review
screen that shows the diffs of a dry-run batch so the user can approve or
reject them before anything is written.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Button, Footer, Static

from .editing.models import BatchResult, EditStatus

logger = logging.getLogger(__name__)

_ANSI = {
    "header": "\033[1m",
    "hunk": "\033[36m",
    "add": "\033[32m",
    "del": "\033[31m",
}
_ANSI_RESET = "\033[0m"

_RICH = {
    "header": "bold white",
    "hunk": "cyan",
    "add": "green",
    "del": "red",
}


def _classify(diff_text: str) -> list[tuple[str | None, str]]:
    """Pair each unified diff line with its kind; ``None`` for context and markers.

    File headers only come before the first hunk, so a deleted line that
    reads ``-- note`` (rendered ``--- note``) still counts as a deletion.
    """
    out = []
    in_hunk = not diff_text.startswith("---")
    for line in diff_text.splitlines():
        if line.startswith("@@"):
            in_hunk = True
            kind = "hunk"
        elif not in_hunk:
            kind = "header" if line.startswith(("+++", "---")) else None
        elif line.startswith("+"):
            kind = "add"
        elif line.startswith("-"):
            kind = "del"
        else:
            kind = None
        out.append((kind, line))
    return out


def format_colored_diff(diff_text: str) -> str:
    """ANSI-colored copy of *diff_text*: bold headers, cyan hunk headers,
    green additions, red deletions."""
    out = []
    for kind, line in _classify(diff_text):
        out.append(f"{_ANSI[kind]}{line}{_ANSI_RESET}" if kind else line)
    return "\n".join(out)


def _escape(text: str) -> str:
    """Escape Rich markup characters."""
    return text.replace("[", "\\[")


def _format_rich_diff(diff_text: str) -> str:
    """Rich-markup copy of *diff_text* for the Textual screen."""
    out = []
    for kind, line in _classify(diff_text):
        escaped = _escape(line)
        out.append(f"[{_RICH[kind]}]{escaped}[/{_RICH[kind]}]" if kind else escaped)
    return "\n".join(out)


class FilePreview(NamedTuple):
    """One pending edit shown for review."""
    file_path: str
    diff: str
    description: str | None = None

    @property
    def counts(self) -> tuple[int, int]:
        """(additions, deletions) in the diff body."""
        kinds = [kind for kind, _ in _classify(self.diff)]
        return kinds.count("add"), kinds.count("del")


def collect_previews(result: BatchResult) -> list[FilePreview]:
    """Previews for every edit of *result* that would apply."""
    return [
        FilePreview(r.file_path, r.diff, r.reason)
        for r in result.results
        if r.status is EditStatus.APPLIED and r.diff
    ]


# ----------------------------------------------------------------------
# Review
# ----------------------------------------------------------------------

def prompt_review(preview: BatchResult, auto: bool = False) -> bool:
    """Show the diffs of a dry-run batch and wait for a decision.

    Returns ``True`` on approval (always, in *auto* mode) and ``False`` on
    rejection or when no edit would apply. The Textual screen is tried
    first; the plain console prompt is used when it cannot run.
    """
    previews = collect_previews(preview)
    if not previews:
        return False

    if auto:
        for item in previews:
            logger.info("[Review] auto-approving %s:\n%s", item.file_path, item.diff)
        return True

    try:
        return _textual_review(previews, preview)
    except Exception as exc:
        logger.warning("[Review] Textual screen unavailable: %s", exc)

    return _console_review(previews)


class EditReviewApp(App):
    """Scrollable per-file diffs with approve/reject."""

    CSS = """
    #title-bar {
        dock: top;
        height: 3;
        padding: 1;
        text-align: center;
        text-style: bold;
        background: $primary-darken-2;
    }
    #diff-scroll {
        height: 1fr;
        margin: 1 2;
        padding: 1;
        border: round $secondary;
    }
    .file-header {
        margin: 1 0 0 0;
        color: $warning;
        text-style: bold;
    }
    #summary {
        dock: bottom;
        height: 1;
        color: $text-muted;
        text-align: center;
    }
    #action-buttons {
        dock: bottom;
        height: 3;
        align: center middle;
    }
    #action-buttons Button {
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("a", "approve", "Approve"),
        Binding("r", "reject", "Reject"),
        Binding("escape", "reject", "Reject"),
    ]

    def __init__(self, previews: list[FilePreview], preview: BatchResult) -> None:
        super().__init__()
        self._previews = previews
        self._batch = preview
        self.approved = False

    def compose(self) -> ComposeResult:
        yield Static(
            f"Edit review: {len(self._previews)} file change(s) pending",
            id="title-bar",
        )
        with VerticalScroll(id="diff-scroll"):
            for item in self._previews:
                added, removed = item.counts
                title = f"{_escape(item.file_path)}  (+{added} -{removed})"
                if item.description:
                    title += f"\n{_escape(item.description)}"
                yield Static(title, classes="file-header")
                yield Static(_format_rich_diff(item.diff))
        s = self._batch.summary
        yield Static(
            f"{s.applied} apply, {s.skipped} skip, {s.failed} fail. "
            f"[bold]A[/bold] approves, [bold]R[/bold] or Esc rejects",
            id="summary",
        )
        with Horizontal(id="action-buttons"):
            yield Button("Approve", id="approve", variant="success")
            yield Button("Reject", id="reject", variant="error")
        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self._finish(event.button.id == "approve")

    def action_approve(self) -> None:
        self._finish(True)

    def action_reject(self) -> None:
        self._finish(False)

    def _finish(self, approved: bool) -> None:
        self.approved = approved
        self.exit()


def _textual_review(previews: list[FilePreview], preview: BatchResult) -> bool:
    app = EditReviewApp(previews, preview)
    app.run()
    return app.approved


def _console_review(previews: list[FilePreview]) -> bool:
    """Line-based fallback prompt."""
    print(f"\n{len(previews)} file change(s) pending review")
    for item in previews:
        added, removed = item.counts
        print(f"\n== {item.file_path} (+{added} -{removed})")
        print(format_colored_diff(item.diff))

    while True:
        try:
            choice = input("\nApply these changes? [a]pprove / [r]eject: ")
        except (EOFError, KeyboardInterrupt):
            return False
        choice = choice.strip().lower()
        if choice in ("a", "approve", "y", "yes"):
            return True
        if choice in ("r", "reject", "n", "no"):
            return False
        print("Please answer a or r.")
