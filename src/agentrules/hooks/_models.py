"""Hook dispatch results."""

from __future__ import annotations

from dataclasses import dataclass

from agentrules.enums import OutcomeStatus


@dataclass(frozen=True, slots=True)
class HookOutcome:
    """Result of running a single hook.

    Attributes:
        hook_id: ID of the hook that ran.
        status: Terminal status of the run.
        duration_ms: Wall-clock run time; zero if the hook never started.
        exit_code: Process exit code, or None if there was none.
        cancelled: Whether a FAILED_TIMEOUT was caused by cancellation
            rather than the hook's own timeout.
        timeout_ms: The timeout the hook ran under.
        stdout: Captured standard output (truncated).
        stderr: Captured standard error (truncated).
        error: Error message for spawn failures.
    """

    hook_id: str
    status: OutcomeStatus
    duration_ms: int = 0
    exit_code: int | None = None
    cancelled: bool = False
    timeout_ms: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED

    def failure_kind(self) -> str | None:
        """Short description of why the hook failed, or None if it succeeded.

        Examples: ``exit 1``, ``timed out after 100ms``, ``command not found``,
        ``cancelled``.
        """
        match self.status:
            case OutcomeStatus.SUCCEEDED:
                return None
            case OutcomeStatus.FAILED_NON_ZERO if self.exit_code is not None:
                return f"exit {self.exit_code}"
            case OutcomeStatus.FAILED_NON_ZERO:
                return "could not start"
            case OutcomeStatus.FAILED_TIMEOUT if self.cancelled:
                return "cancelled"
            case OutcomeStatus.FAILED_TIMEOUT if self.timeout_ms is not None:
                return f"timed out after {self.timeout_ms}ms"
            case OutcomeStatus.FAILED_TIMEOUT:
                return "timed out"
            case OutcomeStatus.FAILED_NOT_FOUND:
                return "command not found"


@dataclass(frozen=True, slots=True)
class Decision:
    """Whether a tool-use action may proceed.

    Attributes:
        allow: False only when a blocking PreToolUse hook failed.
        reason: ``"<hook id> failed (<kind>)"`` for a denial, else None.
        outcomes: One outcome per matching hook, in registration order.
    """

    allow: bool
    reason: str | None = None
    outcomes: tuple[HookOutcome, ...] = ()

    @property
    def failures(self) -> tuple[HookOutcome, ...]:
        """Outcomes that did not succeed, blocking or not."""
        return tuple(outcome for outcome in self.outcomes if not outcome.succeeded)
