"""Tests for edit metrics logging and stats."""

import json
import os

import pytest

from coding_tools.editing.metrics import log_edit_metric, read_edit_stats
from coding_tools.editing.models import (
    BatchResult,
    EditResult,
    EditStatus,
    EditSummary,
)


@pytest.fixture
def tmp_project(tmp_path):
    return str(tmp_path)


def _batch(*statuses, rolled_back=(), cancelled=False) -> BatchResult:
    results = [EditResult(f"f{i}.py", status) for i, status in enumerate(statuses)]
    summary = EditSummary.from_results(results)
    return BatchResult(
        success=summary.failed == 0,
        results=results,
        summary=summary,
        rolled_back=list(rolled_back),
        cancelled=cancelled,
    )


def _metrics_file(root: str) -> str:
    return os.path.join(root, ".coding-tools", "edit_metrics.jsonl")


class TestLogEditMetric:
    def test_creates_file_and_writes_entry(self, tmp_project):
        log_edit_metric(
            _batch(EditStatus.APPLIED, EditStatus.SKIPPED),
            project_root=tmp_project,
        )

        path = _metrics_file(tmp_project)
        assert os.path.isfile(path)

        with open(path) as f:
            lines = f.readlines()
        assert len(lines) == 1

        entry = json.loads(lines[0])
        assert entry["total"] == 2
        assert entry["applied"] == 1
        assert entry["skipped"] == 1
        assert entry["failed"] == 0
        assert entry["rolled_back"] == 0
        assert "timestamp" in entry

    def test_appends_multiple_entries(self, tmp_project):
        for _ in range(3):
            log_edit_metric(_batch(EditStatus.APPLIED), project_root=tmp_project)

        with open(_metrics_file(tmp_project)) as f:
            lines = f.readlines()
        assert len(lines) == 3


class TestReadEditStats:
    def test_empty_stats(self, tmp_project):
        stats = read_edit_stats(project_root=tmp_project)

        assert stats["total_runs"] == 0
        assert stats["total_edits"] == 0
        assert stats["apply_rate"] == 0.0
        assert stats["failure_rate"] == 0.0
        assert stats["rollback_rate"] == 0.0

    def test_stats_from_entries(self, tmp_project):
        log_edit_metric(
            _batch(EditStatus.APPLIED, EditStatus.APPLIED),
            project_root=tmp_project,
        )
        log_edit_metric(
            _batch(EditStatus.APPLIED, EditStatus.FAILED, rolled_back=["f0.py"]),
            project_root=tmp_project,
        )

        stats = read_edit_stats(last_n=50, project_root=tmp_project)

        assert stats["total_runs"] == 2
        assert stats["total_edits"] == 4
        # 3 applied / 4 edits
        assert stats["apply_rate"] == 75.0
        assert stats["failure_rate"] == 25.0
        assert stats["skip_rate"] == 0.0
        # 1 of 2 runs rolled back
        assert stats["rollback_rate"] == 50.0

    def test_last_n_limits(self, tmp_project):
        for _ in range(10):
            log_edit_metric(_batch(EditStatus.APPLIED), project_root=tmp_project)

        stats = read_edit_stats(last_n=5, project_root=tmp_project)
        assert stats["total_runs"] == 5
        assert stats["total_edits"] == 5

    def test_corrupt_lines_ignored(self, tmp_project):
        log_edit_metric(_batch(EditStatus.APPLIED), project_root=tmp_project)
        with open(_metrics_file(tmp_project), "a") as f:
            f.write("not json\n")

        stats = read_edit_stats(project_root=tmp_project)
        assert stats["total_runs"] == 1
