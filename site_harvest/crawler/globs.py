# site_harvest/crawler/globs.py
"""
Include/exclude glob filter for discovered links.

Patterns are matched against the whole URL, case-insensitively:

* ``**`` matches anything, ``/`` included, and may match nothing;
  ``**/`` also matches zero path segments.
* ``*`` matches anything except ``/``; ``?`` matches one non-``/`` character.
* ``[abc]`` / ``[!abc]`` character classes, ``{a,b}`` alternation, ``\\`` escapes.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from site_harvest.logger import logger

__all__ = ("GlobPatternError", "GlobFilter", "translate_glob")

# An include list must be non-empty before excludes are consulted at all, so
# "follow nothing" is spelled as a placeholder include plus a catch-all exclude.
_PLACEHOLDER_INCLUDE = "unused"
_CATCH_ALL_EXCLUDE = "**"


class GlobPatternError(ValueError):
    """Raised for a pattern that cannot be compiled."""


def _translate_class(pattern: str, start: int) -> Tuple[Optional[str], int]:
    """Translate ``[...]`` starting at *start*; ``(None, start)`` if unterminated."""
    i = start + 1
    negate = False
    if i < len(pattern) and pattern[i] in "!^":
        negate = True
        i += 1
    body_start = i
    # a leading "]" is part of the class
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern) and pattern[i] != "]":
        i += 1
    if i >= len(pattern):
        return None, start
    body = pattern[body_start:i].replace("\\", "\\\\")
    return ("[^" if negate else "[") + body + "]", i + 1


def translate_glob(pattern: str) -> str:
    """Return a regex source equivalent to *pattern* (without anchors)."""
    out: List[str] = []
    braces = 0
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            if j - i >= 2:
                if j < n and pattern[j] == "/":
                    out.append("(?:.*/)?")
                    j += 1
                else:
                    out.append(".*")
            else:
                out.append("[^/]*")
            i = j
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            cls, nxt = _translate_class(pattern, i)
            if cls is None:
                out.append(re.escape(c))
                i += 1
            else:
                out.append(cls)
                i = nxt
        elif c == "{":
            braces += 1
            out.append("(?:")
            i += 1
        elif c == "}" and braces:
            braces -= 1
            out.append(")")
            i += 1
        elif c == "," and braces:
            out.append("|")
            i += 1
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            out.append(re.escape(c))
            i += 1
    if braces:
        raise GlobPatternError(f"unbalanced '{{' in glob pattern {pattern!r}")
    return "".join(out)


def _compile_all(patterns: Sequence[str]) -> Tuple[Pattern[str], ...]:
    compiled = []
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern.strip():
            raise GlobPatternError(f"empty or non-string glob pattern: {pattern!r}")
        try:
            compiled.append(re.compile(translate_glob(pattern.strip()), re.IGNORECASE | re.DOTALL))
        except re.error as exc:
            raise GlobPatternError(f"invalid glob pattern {pattern!r}: {exc}") from exc
    return tuple(compiled)


class GlobFilter:
    """Compiled include/exclude pair. Immutable, safe to share between workers."""

    __slots__ = ("include", "exclude", "_include_re", "_exclude_re")

    def __init__(self, include: Sequence[str], exclude: Sequence[str]) -> None:
        if not include:
            raise GlobPatternError("include list must not be empty; use GlobFilter.compile()")
        self.include: Tuple[str, ...] = tuple(include)
        self.exclude: Tuple[str, ...] = tuple(exclude)
        self._include_re = _compile_all(self.include)
        self._exclude_re = _compile_all(self.exclude)

    @classmethod
    def compile(
        cls,
        include: Optional[Iterable[str]],
        exclude: Optional[Iterable[str]] = None,
    ) -> GlobFilter:
        """Build a filter; an empty include list means no link is ever followed."""
        include_list = list(include or [])
        exclude_list = list(exclude or [])
        if not include_list:
            logger.warning('Empty include glob patterns - setting exclude patterns to "%s"', _CATCH_ALL_EXCLUDE)
            return cls([_PLACEHOLDER_INCLUDE], [_CATCH_ALL_EXCLUDE])
        return cls(include_list, exclude_list)

    def matches(self, url: str) -> bool:
        if not any(rx.fullmatch(url) for rx in self._include_re):
            return False
        return not any(rx.fullmatch(url) for rx in self._exclude_re)

    def __repr__(self) -> str:
        return f"GlobFilter(include={list(self.include)!r}, exclude={list(self.exclude)!r})"
