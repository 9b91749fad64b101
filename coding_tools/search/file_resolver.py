"""
File resolver: turns search targets (files, directories, globs) into a
deduplicated, ordered list of concrete file paths.
"""

from __future__ import annotations

import glob
import logging
import os
from typing import Iterable

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = frozenset({"node_modules", ".git", "dist", "build"})


def resolve_targets(
    targets: str | Iterable[str],
    base_dir: str | None = None,
    exclude_dirs: Iterable[str] = EXCLUDED_DIRS,
) -> list[str]:
    """Resolve *targets* to absolute file paths.

    Each target is a file, a directory (walked recursively) or a glob
    pattern (``**`` recurses; dot files are included). Relative targets
    resolve against *base_dir* (default: CWD). Directory and glob
    expansions skip *exclude_dirs* and are sorted; duplicates keep their
    first position. Targets that do not exist contribute nothing. A target
    naming an existing file or directory is never treated as a glob, and
    glob characters in *base_dir* match literally.
    """
    if isinstance(targets, str):
        targets = [targets]
    base = os.path.abspath(base_dir or os.getcwd())
    excluded = frozenset(exclude_dirs)

    seen: set[str] = set()
    files: list[str] = []

    def _add(path: str) -> None:
        norm = os.path.normpath(path)
        if norm not in seen:
            seen.add(norm)
            files.append(norm)

    for target in targets:
        expanded = os.path.expanduser(target)
        relative = not os.path.isabs(expanded)
        path = os.path.join(base, expanded) if relative else expanded

        # Existing paths win over glob syntax: "app/[id]/page.tsx" is a file
        if os.path.isfile(path):
            _add(path)
        elif os.path.isdir(path):
            for match in _walk_dir(path, excluded):
                _add(match)
        elif glob.has_magic(expanded):
            if relative:
                pattern = os.path.join(glob.escape(base), expanded)
                root = os.path.join(base, _glob_root(expanded))
            else:
                pattern = expanded
                root = _glob_root(expanded) or os.sep
            for match in _expand_glob(pattern, root, excluded):
                _add(match)
        else:
            logger.debug("[Search] Target not found: %s", target)

    return files


def _expand_glob(pattern: str, root: str, excluded: frozenset[str]) -> list[str]:
    """Files matching *pattern*; excluded dirs are checked below *root*."""
    matches = glob.glob(pattern, recursive=True, include_hidden=True)
    return sorted(
        m for m in matches
        if os.path.isfile(m)
        and not _has_excluded_part(os.path.relpath(m, root), excluded)
    )


def _glob_root(pattern: str) -> str:
    """Longest leading directory of *pattern* free of glob magic."""
    parts = pattern.split(os.sep)
    fixed: list[str] = []
    for part in parts[:-1]:
        if glob.has_magic(part):
            break
        fixed.append(part)
    return os.sep.join(fixed)


def _walk_dir(directory: str, excluded: frozenset[str]) -> list[str]:
    found: list[str] = []
    for root, dirs, names in os.walk(directory):
        # Prune in place so os.walk never descends into excluded dirs
        dirs[:] = sorted(d for d in dirs if d not in excluded)
        for name in sorted(names):
            found.append(os.path.join(root, name))
    return found


def _has_excluded_part(path: str, excluded: frozenset[str]) -> bool:
    return any(part in excluded for part in os.path.normpath(path).split(os.sep))
