"""Code search: literal / RE2 pattern search across files and globs."""

from .file_resolver import EXCLUDED_DIRS, resolve_targets
from .pattern_search import (
    PatternSearch, SearchResult, SearchMatch, SearchStats, MatchContext, SkippedFile,
)

__all__ = [
    "EXCLUDED_DIRS", "resolve_targets",
    "PatternSearch", "SearchResult", "SearchMatch", "SearchStats", "MatchContext", "SkippedFile",
]
