"""Glob-style path and name matching."""

from ._glob import (
    CompiledPattern,
    compile_pattern,
    matches,
    matches_any,
    normalize_candidate,
    specificity,
    validate_pattern,
)

__all__ = [
    "CompiledPattern",
    "compile_pattern",
    "matches",
    "matches_any",
    "normalize_candidate",
    "specificity",
    "validate_pattern",
]
