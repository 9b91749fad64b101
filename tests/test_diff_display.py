"""Tests for diff rendering and the edit review prompt."""

from coding_tools import diff_display
from coding_tools.diff_display import (
    _format_rich_diff,
    collect_previews,
    format_colored_diff,
    prompt_review,
)
from coding_tools.editing.models import BatchResult, EditResult, EditStatus, EditSummary

SAMPLE_DIFF = "--- a.py\toriginal\n+++ a.py\tmodified\n@@ -1 +1 @@\n-old\n+new\n"


def _preview(*results: EditResult) -> BatchResult:
    summary = EditSummary.from_results(list(results))
    return BatchResult(
        success=summary.failed == 0, results=list(results),
        summary=summary, dry_run=True,
    )


class TestFormatting:
    def test_colored_diff(self):
        lines = format_colored_diff(SAMPLE_DIFF).split("\n")
        assert lines[0].startswith("\033[1m")
        assert lines[2].startswith("\033[36m")
        assert lines[3] == "\033[31m-old\033[0m"
        assert lines[4] == "\033[32m+new\033[0m"

    def test_rich_markup_escapes_brackets(self):
        markup = _format_rich_diff("+items[0]\n")
        assert markup == "[green]+items\\[0][/green]"

    def test_deleted_dash_line_is_not_a_header(self):
        diff = (
            "--- notes.sql\toriginal\n+++ notes.sql\tmodified\n"
            "@@ -1,2 +1 @@\n--- note\n keep\n"
        )

        lines = format_colored_diff(diff).split("\n")

        assert lines[3] == "\033[31m--- note\033[0m"
        assert "[red]--- note[/red]" in _format_rich_diff(diff)

    def test_added_plus_line_is_not_a_header(self):
        diff = "--- a.c\toriginal\n+++ a.c\tmodified\n@@ -1 +1,2 @@\n+++i;\n x\n"

        lines = format_colored_diff(diff).split("\n")

        assert lines[3] == "\033[32m+++i;\033[0m"


class TestReview:
    def test_collect_previews_only_applied(self):
        preview = _preview(
            EditResult("a.py", EditStatus.APPLIED, diff=SAMPLE_DIFF),
            EditResult("b.py", EditStatus.SKIPPED, reason="not found"),
        )
        previews = collect_previews(preview)
        assert [(p.file_path, p.diff) for p in previews] == [("a.py", SAMPLE_DIFF)]
        assert previews[0].counts == (1, 1)

    def test_counts_include_dash_prefixed_lines(self):
        diff = (
            "--- notes.sql\toriginal\n+++ notes.sql\tmodified\n"
            "@@ -1,2 +1,2 @@\n--- note\n-- old\n+++ added\n+-- new\n"
        )
        preview = _preview(EditResult("notes.sql", EditStatus.APPLIED, diff=diff))

        assert collect_previews(preview)[0].counts == (2, 2)

    def test_nothing_to_apply_rejects(self):
        preview = _preview(EditResult("b.py", EditStatus.SKIPPED))
        assert prompt_review(preview, auto=True) is False

    def test_auto_approves(self):
        preview = _preview(EditResult("a.py", EditStatus.APPLIED, diff=SAMPLE_DIFF))
        assert prompt_review(preview, auto=True) is True

    def test_console_fallback(self, monkeypatch, capsys):
        def _broken(diffs, preview):
            raise RuntimeError("no terminal")

        answers = iter(["maybe", "r"])
        monkeypatch.setattr(diff_display, "_textual_review", _broken)
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        preview = _preview(EditResult("a.py", EditStatus.APPLIED, diff=SAMPLE_DIFF))

        assert prompt_review(preview) is False
        out = capsys.readouterr().out
        assert "Please answer a or r." in out
        assert "== a.py (+1 -1)" in out

    def test_console_eof_rejects(self, monkeypatch):
        def _broken(diffs, preview):
            raise RuntimeError("no terminal")

        def _eof(prompt=""):
            raise EOFError

        monkeypatch.setattr(diff_display, "_textual_review", _broken)
        monkeypatch.setattr("builtins.input", _eof)
        preview = _preview(EditResult("a.py", EditStatus.APPLIED, diff=SAMPLE_DIFF))

        assert prompt_review(preview) is False
