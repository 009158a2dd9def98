"""Glob matching of object names against shard patterns.

Path-aware variant of :mod:`fnmatch`: ``*`` and ``?`` never cross a ``/``,
``**`` does, bracket expressions accept ``!`` or ``^`` for negation and a
backslash makes the next character literal. The whole name must match.
"""

from __future__ import annotations

import re
from functools import lru_cache

from multiblob.errors import InvalidUri


def glob_match(name: str, pattern: str) -> bool:
    """Return True when *name* matches *pattern* in full."""
    return _compile(pattern).fullmatch(name) is not None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(translate(pattern), re.DOTALL)
    except re.error as exc:
        raise InvalidUri(f"Invalid pattern {pattern!r}: {exc}") from exc


def translate(pattern: str) -> str:
    """Translate a glob *pattern* into a regular expression string."""
    i, n = 0, len(pattern)
    parts: list[str] = []
    while i < n:
        c = pattern[i]
        i += 1
        if c == "\\":
            if i < n:
                parts.append(re.escape(pattern[i]))
                i += 1
            else:
                parts.append(re.escape(c))
        elif c == "*":
            if i < n and pattern[i] == "*":
                i += 1
                if i < n and pattern[i] == "/":
                    # "**/" also matches zero directories
                    i += 1
                    parts.append("(?:.*/)?")
                else:
                    parts.append(".*")
            else:
                parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "[":
            end, expr = _bracket(pattern, i)
            if expr is None:
                parts.append(re.escape(c))
            else:
                parts.append(expr)
                i = end
        else:
            parts.append(re.escape(c))
    return "".join(parts)


def _bracket(pattern: str, i: int) -> tuple[int, str | None]:
    """Parse a bracket expression starting after ``[``.

    Returns the index after the closing ``]`` and the regex class, or
    ``(i, None)`` when the bracket is unterminated. A reversed range such
    as ``z-a`` contributes nothing to the class.
    """
    n = len(pattern)
    negate = False
    if i < n and pattern[i] in "!^":
        negate = True
        i += 1
    members: list[str] = []
    first = True
    while i < n:
        if pattern[i] == "]" and not first:
            body = "".join(members)
            if negate:
                return i + 1, f"[^/{body}]" if body else "[^/]"
            return i + 1, f"[{body}]" if body else "(?!)"
        first = False
        lo, i = _bracket_char(pattern, i)
        if i + 1 < n and pattern[i] == "-" and pattern[i + 1] != "]":
            hi, i = _bracket_char(pattern, i + 1)
            if lo <= hi:
                members.append(f"{re.escape(lo)}-{re.escape(hi)}")
        else:
            members.append(re.escape(lo))
    return i, None


def _bracket_char(pattern: str, i: int) -> tuple[str, int]:
    if pattern[i] == "\\" and i + 1 < len(pattern):
        return pattern[i + 1], i + 2
    return pattern[i], i + 1
