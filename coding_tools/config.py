"""
Configuration: settings for the search, diff and edit tools.

Resolved per key in priority order: CLI args (applied by the caller) >
``CODING_TOOLS_*`` environment variables > ``.coding-tools.yaml`` > defaults.
"""

import logging
import os

import yaml

logger = logging.getLogger(__name__)

_CONFIG_FILENAMES = (".coding-tools.yaml", ".coding-tools.yml")
_DEFAULT_EXCLUDE_DIRS = ["node_modules", ".git", "dist", "build"]


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_count(value) -> int:
    number = int(value)
    if number < 0:
        raise ValueError(f"expected a non-negative integer, got {value!r}")
    return number


# attribute -> (yaml key, env var, default, cast)
_SETTINGS = {
    "MAX_FILE_SIZE": ("max_file_size", "CODING_TOOLS_MAX_FILE_SIZE", 1_000_000, _to_count),
    "MAX_RESULTS": ("max_results", "CODING_TOOLS_MAX_RESULTS", 100, _to_count),
    "CONTEXT_LINES": ("context_lines", "CODING_TOOLS_CONTEXT_LINES", 2, _to_count),
    "DIFF_CONTEXT": ("diff_context", "CODING_TOOLS_DIFF_CONTEXT", 3, _to_count),
    "CREATE_BACKUP": ("create_backup", "CODING_TOOLS_CREATE_BACKUP", True, _to_bool),
    "CASE_SENSITIVE": ("case_sensitive", "CODING_TOOLS_CASE_SENSITIVE", False, _to_bool),
    # None means "the working directory at call time"
    "PROJECT_ROOT": ("project_root", "CODING_TOOLS_PROJECT_ROOT", None, str),
    "LOG_DIR": ("log_dir", "CODING_TOOLS_LOG_DIR", ".coding-tools/logs", str),
    "METRICS_ENABLED": ("metrics_enabled", "CODING_TOOLS_METRICS", False, _to_bool),
}


def find_config_file(explicit_path: str | None = None, start_dir: str | None = None) -> str | None:
    """Locate the config file.

    An explicit path wins (``None`` if it does not exist). Otherwise the
    search walks from *start_dir* (default: CWD) up to the filesystem root,
    then falls back to the user's home directory.
    """
    if explicit_path:
        return explicit_path if os.path.isfile(explicit_path) else None

    current = os.path.abspath(start_dir or os.getcwd())
    candidates: list[str] = []
    while True:
        candidates.append(current)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    home = os.path.expanduser("~")
    if home not in candidates:
        candidates.append(home)

    for directory in candidates:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(directory, name)
            if os.path.isfile(path):
                return path
    return None


def _read_yaml(path: str) -> dict:
    """Parse *path*; anything unreadable or not a mapping counts as empty."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("[Config] Ignoring %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("[Config] Ignoring %s: top level is not a mapping", path)
        return {}
    return data


class Config:
    """Resolved tool settings.

    Every key of ``_SETTINGS`` becomes an upper-case attribute, plus
    ``EXCLUDE_DIRS`` (YAML only) and ``SOURCE`` (the file loaded, if any).
    A value that cannot be cast is logged and replaced by the next source.
    """

    def __init__(self, yaml_data: dict | None = None, source: str | None = None):
        data = yaml_data or {}
        self.SOURCE = source

        for attr, (yaml_key, env_key, default, cast) in _SETTINGS.items():
            setattr(self, attr, self._resolve(data, yaml_key, env_key, default, cast))

        exclude = data.get("exclude_dirs")
        if isinstance(exclude, list) and all(isinstance(d, str) for d in exclude):
            self.EXCLUDE_DIRS: list[str] = list(exclude)
        else:
            if exclude is not None:
                logger.warning("[Config] exclude_dirs must be a list of names")
            self.EXCLUDE_DIRS = list(_DEFAULT_EXCLUDE_DIRS)

    @staticmethod
    def _resolve(data: dict, yaml_key: str, env_key: str, default, cast):
        for origin, raw in ((env_key, os.getenv(env_key)), (yaml_key, data.get(yaml_key))):
            if raw is None:
                continue
            try:
                return cast(raw)
            except (TypeError, ValueError) as exc:
                logger.warning("[Config] Bad value for %s: %s", origin, exc)
        return default

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Build a Config from the located YAML file (if any), env vars and defaults."""
        path = find_config_file(config_path)
        if path:
            logger.debug("[Config] Loading %s", path)
            return cls(_read_yaml(path), source=path)
        return cls()

    def to_dict(self) -> dict:
        data = {yaml_key: getattr(self, attr) for attr, (yaml_key, *_rest) in _SETTINGS.items()}
        data["exclude_dirs"] = list(self.EXCLUDE_DIRS)
        return data
