"""Wildcard include/exclude patterns for branch names.

An expression is a space separated list of tokens where ``*`` matches any
substring and every other character matches literally, e.g.
``"master feature/* *-hotfix"``. Tokens are compiled into one regular
alternation matched against the whole branch name.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Pattern

MATCH_NOTHING = "(?!)"


def wildcard_to_regex(expression: Optional[str]) -> str:
    """Translate a wildcard expression into a regular expression source.

    Raises:
        ValueError: If ``expression`` is not a string
    """
    if expression is None or not isinstance(expression, str):
        raise ValueError(f"Branch pattern must be a string, got {expression!r}")
    alternatives = []
    for token in expression.split():
        alternatives.append(".*".join(re.escape(piece) for piece in token.split("*")))
    if not alternatives:
        return MATCH_NOTHING
    return "|".join(alternatives)


@lru_cache(maxsize=256)
def compile_pattern(expression: str) -> Pattern[str]:
    """Compile a wildcard expression; an empty expression matches nothing."""
    source = wildcard_to_regex(expression)
    try:
        return re.compile(source)
    except re.error as e:
        raise ValueError(f"Invalid branch pattern {expression!r}: {e}") from e


def matches(name: str, includes: str = "*", excludes: str = "") -> bool:
    """Return True if ``name`` is included and not excluded."""
    if compile_pattern(excludes).fullmatch(name):
        return False
    return compile_pattern(includes).fullmatch(name) is not None


__all__ = ["compile_pattern", "matches", "wildcard_to_regex"]
