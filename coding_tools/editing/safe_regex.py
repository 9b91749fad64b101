"""
Safe regex: compiles caller-supplied patterns with RE2 so that matching
runs in time linear in the input, whatever the pattern looks like.
"""

from __future__ import annotations

import re

import re2


class InvalidPatternError(ValueError):
    """Raised when a search or edit pattern cannot be compiled."""


def compile_regex(pattern: str, case_sensitive: bool = True):
    """Compile *pattern* with the linear-time RE2 engine.

    Parameters
    ----------
    pattern:
        Regular expression source (RE2 syntax, no backreferences or
        look-around).
    case_sensitive:
        When False the pattern matches case-insensitively.

    Raises
    ------
    InvalidPatternError
        If RE2 rejects the pattern.
    """
    options = re2.Options()
    options.case_sensitive = case_sensitive
    options.log_errors = False
    try:
        return re2.compile(pattern, options)
    except re2.error as exc:
        raise InvalidPatternError(f"Invalid regex: {exc}") from exc


def compile_literal(text: str, case_sensitive: bool = False) -> re.Pattern:
    """Compile *text* as an escaped literal."""
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(re.escape(text), flags)
