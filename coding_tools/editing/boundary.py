"""
File boundary helpers: path resolution, project-root containment and the
small file probes shared by the search and edit tools.
"""

from __future__ import annotations

import os
import shutil


def resolve_root(project_root: str | None = None) -> str:
    """Return the canonical absolute path of *project_root* (default: CWD)."""
    return os.path.realpath(project_root or os.getcwd())


def resolve_path(file_path: str, base_dir: str) -> str:
    """Resolve *file_path* against *base_dir*, following symlinks.

    Absolute paths are kept as given; relative paths are joined to
    *base_dir*. ``..`` segments and symlinks are resolved so that the
    containment check sees the location that would actually be written.
    """
    expanded = os.path.expanduser(file_path)
    if not os.path.isabs(expanded):
        expanded = os.path.join(base_dir, expanded)
    return os.path.realpath(expanded)


def is_within_boundary(resolved_path: str, resolved_root: str) -> bool:
    """True if *resolved_path* equals or is nested under *resolved_root*.

    Both arguments must already be canonical (see :func:`resolve_path`).
    """
    if resolved_path == resolved_root:
        return True
    prefix = resolved_root if resolved_root.endswith(os.sep) else resolved_root + os.sep
    return resolved_path.startswith(prefix)


def read_text(path: str) -> str:
    """Read a UTF-8 text file without translating line endings."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def safe_write(path: str, content: str) -> None:
    """Write *content* atomically via a sibling temp file + replace."""
    tmp_path = path + ".coding_tools_tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
