"""
Exact-glob matching of walk-relative paths.

Policy
------
- Patterns are matched against the whole slash-separated relative path, not
  only the base name.
- Wildcards never cross a ``/``: a pattern and a path match only if they have
  the same number of segments and every segment matches with
  ``fnmatch.fnmatchcase``.
- There are no prefix semantics. ``"lib"`` matches ``lib`` and not
  ``lib/dynalib.so``.
- Supported syntax within a segment: ``*``, ``?``, ``[...]`` and a negated
  class written ``[!...]`` or ``[^...]``. ``[^`` is rewritten to ``[!`` when
  the pattern is validated.
- There is no escape character. A backslash matches a literal backslash; put a
  metacharacter in a class (``[*]``) to match it literally.
"""

from __future__ import annotations

import fnmatch
from typing import Iterable

from archive_walker.errors import WalkerConfigError

SEPARATOR = "/"

_NEGATION_MARKERS = ("!", "^")


def validate_pattern(pattern: str) -> str:
    """
    Validate a glob pattern and return its normalized form.

    Parameters
    ----------
    pattern:
        Glob pattern using ``*``, ``?`` and ``[...]`` within segments.

    Returns
    -------
    str
        The pattern with every ``[^`` negation rewritten as ``[!``.

    Raises
    ------
    WalkerConfigError
        If the pattern is not a string, is empty, or has an unterminated
        character class.
    """
    if not isinstance(pattern, str):
        raise WalkerConfigError(f"Glob pattern must be a string, got {type(pattern).__name__}.")
    if not pattern:
        raise WalkerConfigError("Glob pattern must not be empty.")

    segments: list[str] = []
    for segment in pattern.split(SEPARATOR):
        normalized = _normalize_segment(segment)
        if normalized is None:
            raise WalkerConfigError(f"Unterminated character class in glob pattern: {pattern!r}")
        segments.append(normalized)

    return SEPARATOR.join(segments)


def match_rel_path(pattern: str, rel_path: str) -> bool:
    """Return True if ``rel_path`` matches ``pattern`` segment by segment."""
    pattern_segments = pattern.split(SEPARATOR)
    path_segments = rel_path.split(SEPARATOR)
    if len(pattern_segments) != len(path_segments):
        return False
    return all(
        fnmatch.fnmatchcase(name, segment_pattern)
        for segment_pattern, name in zip(pattern_segments, path_segments)
    )


def match_any(patterns: Iterable[str], rel_path: str) -> bool:
    """Return True if ``rel_path`` matches at least one pattern."""
    return any(match_rel_path(pattern, rel_path) for pattern in patterns)


def _normalize_segment(segment: str) -> str | None:
    # None means a character class is never closed.
    parts: list[str] = []
    index = 0
    length = len(segment)
    while index < length:
        if segment[index] != "[":
            parts.append(segment[index])
            index += 1
            continue

        end = index + 1
        opening = "["
        if end < length and segment[end] in _NEGATION_MARKERS:
            opening = "[!"
            end += 1
        members_start = end
        # A leading "]" is a literal member of the class.
        if end < length and segment[end] == "]":
            end += 1
        while end < length and segment[end] != "]":
            end += 1
        if end >= length:
            return None

        parts.append(opening + segment[members_start : end + 1])
        index = end + 1
    return "".join(parts)
