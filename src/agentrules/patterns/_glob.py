"""Glob pattern compilation and matching.

Dialect:
    - ``/`` is the only separator.
    - ``*`` matches any run of characters except ``/``; ``?`` matches one.
    - ``**`` as a whole segment matches zero or more segments, so
      ``**/*.rs`` matches ``main.rs`` and ``src/**`` matches ``src`` itself.
      Inside a segment it behaves like ``*``.
    - ``[abc]`` / ``[!abc]`` character classes, never matching ``/``.
    - ``{a,b}`` alternation (not nested).
    - ``\\`` escapes the next character.

Matching is case-sensitive and anchored at both ends. Negation (a leading
``!``) is not part of the dialect and is rejected.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from agentrules.exceptions import PatternSyntaxError

if TYPE_CHECKING:
    from collections.abc import Iterable

_WILDCARD_CHARS: frozenset[str] = frozenset("*?[{")

# Compiled pattern cache size; patterns come from configuration so the set is small
_CACHE_SIZE: int = 2048


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A validated glob pattern.

    Attributes:
        pattern: The source glob.
        regex: Anchored regular expression equivalent.
        specificity: Number of literal (wildcard-free) path segments.
    """

    pattern: str
    regex: re.Pattern[str]
    specificity: int

    def matches(self, candidate: str) -> bool:
        """Check whether candidate matches this pattern."""
        return self.regex.fullmatch(normalize_candidate(candidate)) is not None


def normalize_candidate(candidate: str) -> str:
    """Strip leading ``./`` segments from a candidate path."""
    while candidate.startswith("./"):
        candidate = candidate[2:]
    return candidate


def _is_literal_segment(segment: str) -> bool:
    escaped = False
    for char in segment:
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char in _WILDCARD_CHARS:
            return False
    return True


def specificity(pattern: str) -> int:
    """Count the literal path segments of a pattern.

    Empty segments (from a leading or doubled ``/``) are not counted.

    Args:
        pattern: The glob pattern.

    Returns:
        Number of segments containing no wildcard characters.
    """
    return sum(
        1 for segment in pattern.split("/") if segment and _is_literal_segment(segment)
    )


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate a ``[...]`` class starting at ``start``.

    Returns:
        Tuple of (regex fragment, index just past the closing bracket).
    """
    j = start + 1
    negate = False
    if j < len(pattern) and pattern[j] in "!^":
        negate = True
        j += 1
    body_start = j
    # A leading "]" is a literal member of the class
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    while j < len(pattern) and pattern[j] != "]":
        if pattern[j] == "/":
            raise PatternSyntaxError(
                pattern, "separator inside character class", position=j
            )
        j += 1
    if j >= len(pattern):
        raise PatternSyntaxError(
            pattern, "unclosed character class", position=start
        )

    body = pattern[body_start:j]
    if not body:
        raise PatternSyntaxError(pattern, "empty character class", position=start)
    body = body.replace("\\", "\\\\")
    if negate:
        return f"[^/{body}]", j + 1
    # A range such as "[.-0]" spans "/"
    return f"(?!/)[{body}]", j + 1


def _translate(pattern: str) -> str:  # noqa: C901, PLR0912
    if not pattern:
        raise PatternSyntaxError(pattern, "pattern is empty")
    if pattern.startswith("!"):
        raise PatternSyntaxError(pattern, "negation is not supported", position=0)

    parts: list[str] = []
    brace_start: int | None = None
    i = 0
    n = len(pattern)

    while i < n:
        char = pattern[i]

        if char == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            at_segment_start = i == 0 or pattern[i - 1] == "/"
            at_segment_end = j == n or pattern[j] == "/"
            whole_segment = at_segment_start and at_segment_end
            if j - i >= 2 and whole_segment and brace_start is None:
                if j == n and i == 0:
                    parts.append(".*")
                elif j == n:
                    # "dir/**" also matches "dir" itself
                    parts.pop()
                    parts.append("(?:/.*)?")
                else:
                    parts.append("(?:.*/)?")
                    j += 1
            else:
                parts.append("[^/]*")
            i = j
            continue

        if char == "?":
            parts.append("[^/]")
        elif char == "[":
            fragment, i = _translate_class(pattern, i)
            parts.append(fragment)
            continue
        elif char == "{":
            if brace_start is not None:
                raise PatternSyntaxError(
                    pattern, "nested alternation is not supported", position=i
                )
            brace_start = i
            parts.append("(?:")
        elif char == "}" and brace_start is not None:
            brace_start = None
            parts.append(")")
        elif char == "," and brace_start is not None:
            parts.append("|")
        elif char == "\\":
            if i + 1 >= n:
                raise PatternSyntaxError(pattern, "trailing escape", position=i)
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        elif char == "/":
            parts.append("/")
        else:
            parts.append(re.escape(char))
        i += 1

    if brace_start is not None:
        raise PatternSyntaxError(pattern, "unclosed alternation", position=brace_start)

    return "".join(parts)


@functools.lru_cache(maxsize=_CACHE_SIZE)
def compile_pattern(pattern: str) -> CompiledPattern:
    """Validate and compile a glob pattern.

    Args:
        pattern: The glob pattern.

    Returns:
        The compiled pattern.

    Raises:
        PatternSyntaxError: If the pattern is malformed.
    """
    regex_source = _translate(pattern)
    try:
        regex = re.compile(regex_source)
    except re.error as e:
        raise PatternSyntaxError(pattern, str(e)) from e
    return CompiledPattern(
        pattern=pattern,
        regex=regex,
        specificity=specificity(pattern),
    )


def validate_pattern(pattern: str) -> None:
    """Raise PatternSyntaxError if pattern is malformed."""
    _ = compile_pattern(pattern)


def matches(pattern: str, candidate: str) -> bool:
    """Check whether candidate matches a glob pattern.

    Patterns are expected to have been validated when they were loaded; an
    invalid pattern raises PatternSyntaxError here as well.
    """
    return compile_pattern(pattern).matches(candidate)


def matches_any(patterns: Iterable[str], candidate: str) -> bool:
    """Check whether candidate matches any of the given patterns."""
    return any(matches(pattern, candidate) for pattern in patterns)
