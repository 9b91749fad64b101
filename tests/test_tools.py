"""Tests for the tool registry and the JSON tool surface."""

import os

import pytest

from coding_tools.config import Config
from coding_tools.tools import (
    Tool,
    ToolInputError,
    ToolRegistry,
    build_default_registry,
    run_tool,
)


@pytest.fixture
def config(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CODING_TOOLS_"):
            monkeypatch.delenv(key)
    return Config({})


def _write(path, content):
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestRegistry:
    def test_default_tools_registered(self):
        registry = build_default_registry()
        assert registry.size == 3
        assert {t.id for t in registry.tools} == {
            "coding:multiStringEdit", "coding:codeSearch", "coding:diffReview",
        }

    def test_unknown_tool(self, config):
        with pytest.raises(KeyError, match="Unknown tool"):
            run_tool("coding:nope", {}, config=config)

    def test_register_custom_tool(self, config):
        registry = ToolRegistry()
        default = build_default_registry().get("coding:diffReview")
        registry.register(Tool(
            id="custom:diff",
            description="diff",
            input_model=default.input_model,
            handler=default.handler,
        ))

        result = registry.run(
            "custom:diff", {"original": "a\n", "modified": "b\n"}, config=config,
        )
        assert result["stats"]["totalChanges"] == 2

    def test_input_schema_uses_camel_case(self):
        schema = build_default_registry().get("coding:multiStringEdit").input_schema()
        assert "dryRun" in schema["properties"]
        assert schema["required"] == ["edits"]
        edit_schema = schema["$defs"]["EditOperationInput"]
        assert {"filePath", "oldString", "newString"} <= set(edit_schema["required"])

    def test_new_string_documents_group_syntax(self):
        tool = build_default_registry().get("coding:multiStringEdit")
        edit_schema = tool.input_schema()["$defs"]["EditOperationInput"]

        described = edit_schema["properties"]["newString"]["description"]
        assert "\\1" in described
        assert "\\g<name>" in described
        assert "$1" in described
        assert "\\g<name>" in tool.description


class TestMultiStringEditTool:
    def test_dry_run(self, tmp_path, config):
        path = _write(tmp_path / "a.py", "x = 1\n")

        result = run_tool("coding:multiStringEdit", {
            "edits": [{"filePath": path, "oldString": "x = 1", "newString": "x = 2"}],
            "dryRun": True,
            "projectRoot": str(tmp_path),
        }, config=config)

        assert result["success"] is True
        assert result["dryRun"] is True
        assert result["summary"]["applied"] == 1
        assert "+x = 2" in result["results"][0]["diff"]
        assert (tmp_path / "a.py").read_text() == "x = 1\n"

    def test_applies_with_backup_default_from_config(self, tmp_path, config):
        path = _write(tmp_path / "a.py", "x = 1\n")

        result = run_tool("coding:multiStringEdit", {
            "edits": [{"filePath": "a.py", "oldString": "1", "newString": "2"}],
            "projectRoot": str(tmp_path),
        }, config=config)

        assert result["results"][0]["status"] == "applied"
        assert result["results"][0]["backup"].endswith("a.py.bak")
        assert (tmp_path / "a.py").read_text() == "x = 2\n"
        assert os.path.exists(path + ".bak")

    def test_empty_edits_rejected(self, config):
        with pytest.raises(ToolInputError):
            run_tool("coding:multiStringEdit", {"edits": []}, config=config)

    def test_empty_old_string_rejected(self, config):
        with pytest.raises(ToolInputError):
            run_tool("coding:multiStringEdit", {
                "edits": [{"filePath": "a", "oldString": "", "newString": "b"}],
            }, config=config)

    def test_missing_field_rejected(self, config):
        with pytest.raises(ToolInputError):
            run_tool("coding:multiStringEdit", {
                "edits": [{"filePath": "a", "oldString": "x"}],
            }, config=config)


class TestCodeSearchTool:
    def test_search(self, tmp_path, config):
        _write(tmp_path / "a.py", "def handler():\n    pass\n")

        result = run_tool("coding:codeSearch", {
            "pattern": r"def \w+",
            "target": "*.py",
            "baseDir": str(tmp_path),
            "options": {"isRegex": True, "includeContext": False},
        }, config=config)

        assert result["stats"]["totalMatches"] == 1
        match = result["matches"][0]
        assert match["line"] == 1
        assert "context" not in match

    def test_config_supplies_max_results(self, tmp_path, config):
        _write(tmp_path / "a.txt", "hit\nhit\nhit\n")
        config.MAX_RESULTS = 2

        result = run_tool("coding:codeSearch", {
            "pattern": "hit", "target": [str(tmp_path / "a.txt")],
        }, config=config)

        assert len(result["matches"]) == 2
        assert result["truncated"] is True


class TestDiffReviewTool:
    def test_diff(self, config):
        result = run_tool("coding:diffReview", {
            "original": "a\nb\n",
            "modified": "a\nc\n",
            "filename": "x.py",
            "context": 0,
        }, config=config)

        assert result["unifiedDiff"].startswith("--- x.py\toriginal\n")
        assert result["summary"] == "2 changes: 1 addition, 1 deletion across 1 hunk."

    def test_negative_context_rejected(self, config):
        with pytest.raises(ToolInputError):
            run_tool("coding:diffReview", {
                "original": "a", "modified": "b", "context": -1,
            }, config=config)

    def test_progress_forwarded(self, tmp_path, config):
        path = _write(tmp_path / "a.py", "x\n")
        events = []

        run_tool("coding:multiStringEdit", {
            "edits": [{"filePath": path, "oldString": "x", "newString": "y"}],
            "dryRun": True,
            "projectRoot": str(tmp_path),
        }, progress=events.append, config=config)

        assert events[-1].stage == "coding:multiStringEdit"
