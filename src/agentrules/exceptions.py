"""agentrules exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class AgentRulesError(Exception):
    """Base exception for agentrules errors."""


class PatternSyntaxError(AgentRulesError, ValueError):
    """Raised when a glob pattern is malformed.

    Attributes:
        pattern: The offending pattern.
        position: Character offset of the problem, if known.
        reason: Short description of what is wrong.
    """

    def __init__(
        self,
        pattern: str,
        reason: str,
        *,
        position: int | None = None,
    ) -> None:
        """Initialize with the pattern and what is wrong with it.

        Args:
            pattern: The offending pattern.
            reason: Short description of the problem.
            position: Character offset of the problem, if known.
        """
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Invalid pattern {pattern!r}{where}: {reason}")
        self.pattern: str = pattern
        self.position: int | None = position
        self.reason: str = reason


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(AgentRulesError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a configuration source cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class LoadError(ConfigError):
    """Raised when a full load is rejected.

    Nothing from a rejected load becomes visible; the previous snapshot
    stays active.

    Attributes:
        issues: One human-readable entry per offending document or hook.
        errors: The underlying exceptions, such as PatternSyntaxError.
    """

    def __init__(
        self,
        issues: Sequence[str],
        *,
        errors: Sequence[Exception] = (),
    ) -> None:
        """Initialize with the list of offending documents and patterns.

        Args:
            issues: Human-readable issue descriptions.
            errors: The exceptions behind the issues, where there are any.
        """
        self.issues: tuple[str, ...] = tuple(issues)
        self.errors: tuple[Exception, ...] = tuple(errors)
        count = len(self.issues)
        summary = "; ".join(self.issues)
        super().__init__(f"Load rejected ({count} issue(s)): {summary}")


class DuplicateIdError(ConfigError):
    """Two definitions in one load share an ID.

    Not fatal: the last definition in source order wins. Instances are
    collected as load warnings rather than raised.

    Attributes:
        kind: Either "rule" or "hook".
        item_id: The duplicated ID.
        sources: Descriptions of where each definition came from.
    """

    def __init__(self, kind: str, item_id: str, sources: Sequence[str]) -> None:
        """Initialize with the duplicated ID and its sources."""
        self.kind: str = kind
        self.item_id: str = item_id
        self.sources: tuple[str, ...] = tuple(sources)
        super().__init__(
            f"Duplicate {kind} id {item_id!r} (last wins): {', '.join(self.sources)}"
        )


# =============================================================================
# Hook Exceptions
# =============================================================================


class HookError(AgentRulesError):
    """Base exception for hook errors."""


class RegistrationError(HookError):
    """Raised when hook definitions fail validation during registration.

    Attributes:
        issues: One entry per offending hook definition.
        errors: The underlying exceptions, such as PatternSyntaxError.
    """

    def __init__(
        self,
        issues: Sequence[str],
        *,
        errors: Sequence[Exception] = (),
    ) -> None:
        """Initialize with the list of invalid definitions."""
        self.issues: tuple[str, ...] = tuple(issues)
        self.errors: tuple[Exception, ...] = tuple(errors)
        super().__init__(f"Hook registration failed: {'; '.join(self.issues)}")


class ScriptNotFoundError(HookError):
    """The executable for a hook command could not be found."""

    def __init__(self, message: str, *, command: Sequence[str]) -> None:
        """Initialize with error message and the argv that failed."""
        super().__init__(message)
        self.command: tuple[str, ...] = tuple(command)


class ScriptExecError(HookError):
    """A hook command could not be spawned for a reason other than not found."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str],
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message, argv and underlying cause."""
        super().__init__(message)
        self.command: tuple[str, ...] = tuple(command)
        self.cause: Exception | None = cause


class ServiceClosedError(HookError):
    """Raised when dispatching through a service that has been shut down."""
