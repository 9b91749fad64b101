"""Tests for search target resolution."""

import os

from coding_tools.search.file_resolver import EXCLUDED_DIRS, resolve_targets


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("x\n", encoding="utf-8")
    return str(path)


class TestResolveTargets:
    def test_single_file_string(self, tmp_path):
        path = _touch(tmp_path / "a.txt")
        assert resolve_targets(path) == [path]

    def test_directory_sorted(self, tmp_path):
        b = _touch(tmp_path / "b.txt")
        a = _touch(tmp_path / "a.txt")
        nested = _touch(tmp_path / "sub" / "c.txt")

        assert resolve_targets(str(tmp_path)) == [a, b, nested]

    def test_excluded_dirs_pruned(self, tmp_path):
        keep = _touch(tmp_path / "src" / "a.py")
        for name in EXCLUDED_DIRS:
            _touch(tmp_path / name / "x.py")

        assert resolve_targets(str(tmp_path)) == [keep]
        assert resolve_targets("**/*.py", base_dir=str(tmp_path)) == [keep]

    def test_glob_includes_dot_files(self, tmp_path):
        hidden = _touch(tmp_path / ".env.py")
        assert resolve_targets("*.py", base_dir=str(tmp_path)) == [hidden]

    def test_glob_skips_directories(self, tmp_path):
        (tmp_path / "dir.py").mkdir()
        real = _touch(tmp_path / "real.py")
        assert resolve_targets("*.py", base_dir=str(tmp_path)) == [real]

    def test_base_dir_under_excluded_name(self, tmp_path):
        root = tmp_path / "build" / "project"
        path = _touch(root / "a.py")

        assert resolve_targets("*.py", base_dir=str(root)) == [path]

    def test_first_seen_order_and_dedup(self, tmp_path):
        a = _touch(tmp_path / "a.txt")
        b = _touch(tmp_path / "b.txt")

        result = resolve_targets([b, str(tmp_path), a])

        assert result == [b, a]

    def test_paths_normalised(self, tmp_path):
        path = _touch(tmp_path / "a.txt")
        messy = os.path.join(str(tmp_path), "sub", "..", "a.txt")

        assert resolve_targets(messy) == [path]

    def test_missing_target_ignored(self, tmp_path):
        assert resolve_targets([str(tmp_path / "missing")]) == []

    def test_bracketed_file_is_not_a_glob(self, tmp_path):
        page = _touch(tmp_path / "app" / "[id]" / "page.tsx")

        assert resolve_targets(page) == [page]
        assert resolve_targets("app/[id]/page.tsx", base_dir=str(tmp_path)) == [page]

    def test_bracketed_directory_is_walked(self, tmp_path):
        page = _touch(tmp_path / "app" / "[id]" / "page.tsx")

        assert resolve_targets(str(tmp_path / "app" / "[id]")) == [page]

    def test_bracketed_base_dir(self, tmp_path):
        root = tmp_path / "proj[1]"
        a = _touch(root / "a.txt")
        b = _touch(root / "sub" / "b.py")

        assert resolve_targets("a.txt", base_dir=str(root)) == [a]
        assert resolve_targets("**/*.py", base_dir=str(root)) == [b]

    def test_question_mark_in_existing_name(self, tmp_path):
        odd = _touch(tmp_path / "what?.txt")
        _touch(tmp_path / "whatX.txt")

        assert resolve_targets(odd) == [odd]
