"""Tests for configuration loading."""

import os

import pytest

from coding_tools.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CODING_TOOLS_"):
            monkeypatch.delenv(key)


class TestDefaults:
    def test_builtin_defaults(self):
        cfg = Config({})
        assert cfg.MAX_FILE_SIZE == 1_000_000
        assert cfg.MAX_RESULTS == 100
        assert cfg.CONTEXT_LINES == 2
        assert cfg.DIFF_CONTEXT == 3
        assert cfg.CREATE_BACKUP is True
        assert cfg.CASE_SENSITIVE is False
        assert cfg.PROJECT_ROOT is None
        assert cfg.METRICS_ENABLED is False
        assert "node_modules" in cfg.EXCLUDE_DIRS


class TestPriority:
    def test_yaml_overrides_defaults(self):
        cfg = Config({"max_results": 5, "create_backup": False, "exclude_dirs": ["vendor"]})
        assert cfg.MAX_RESULTS == 5
        assert cfg.CREATE_BACKUP is False
        assert cfg.EXCLUDE_DIRS == ["vendor"]

    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("CODING_TOOLS_MAX_RESULTS", "7")
        monkeypatch.setenv("CODING_TOOLS_CREATE_BACKUP", "false")
        monkeypatch.setenv("CODING_TOOLS_METRICS", "TRUE")

        cfg = Config({"max_results": 5, "create_backup": True})

        assert cfg.MAX_RESULTS == 7
        assert cfg.CREATE_BACKUP is False
        assert cfg.METRICS_ENABLED is True

    def test_invalid_exclude_dirs_falls_back(self):
        cfg = Config({"exclude_dirs": "node_modules"})
        assert isinstance(cfg.EXCLUDE_DIRS, list)
        assert ".git" in cfg.EXCLUDE_DIRS


class TestLoad:
    def test_loads_yaml_from_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".coding-tools.yaml").write_text("context_lines: 4\n")
        monkeypatch.chdir(tmp_path)

        assert Config.load().CONTEXT_LINES == 4

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("diff_context: 1\nproject_root: /srv/app\n")

        cfg = Config.load(str(path))

        assert cfg.DIFF_CONTEXT == 1
        assert cfg.PROJECT_ROOT == "/srv/app"

    def test_missing_explicit_path_uses_defaults(self, tmp_path):
        cfg = Config.load(str(tmp_path / "missing.yaml"))
        assert cfg.MAX_RESULTS == 100

    def test_malformed_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("max_results: [unclosed\n")

        assert Config.load(str(path)).MAX_RESULTS == 100

    def test_found_in_parent_directory(self, tmp_path, monkeypatch):
        (tmp_path / ".coding-tools.yml").write_text("max_results: 9\n")
        nested = tmp_path / "pkg" / "sub"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        cfg = Config.load()

        assert cfg.MAX_RESULTS == 9
        assert os.path.realpath(cfg.SOURCE) == os.path.realpath(tmp_path / ".coding-tools.yml")


class TestBadValues:
    def test_bad_env_value_falls_back_to_yaml(self, monkeypatch):
        monkeypatch.setenv("CODING_TOOLS_MAX_RESULTS", "lots")
        assert Config({"max_results": 5}).MAX_RESULTS == 5

    def test_negative_count_falls_back_to_default(self):
        assert Config({"context_lines": -3}).CONTEXT_LINES == 2

    def test_to_dict_round_trips(self):
        cfg = Config({"diff_context": 0, "exclude_dirs": ["out"]})
        data = cfg.to_dict()

        assert data["diff_context"] == 0
        assert data["exclude_dirs"] == ["out"]
        assert Config(data).to_dict() == data
