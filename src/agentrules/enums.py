"""Enumeration types for agentrules."""

from __future__ import annotations

from enum import StrEnum


class HookEvent(StrEnum):
    """Tool-use events a hook can be bound to.

    Values use the host's event names. Snake-case spellings
    ("pre_tool_use") are accepted when parsing.
    """

    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"

    @classmethod
    def _missing_(cls, value: object) -> HookEvent | None:
        if isinstance(value, str):
            normalized = value.replace("_", "").replace("-", "").lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


class RuleScope(StrEnum):
    """Applicability of a rule document."""

    COMMON = "common"
    SCOPED = "scoped"


class OutcomeStatus(StrEnum):
    """Terminal status of a single hook execution."""

    SUCCEEDED = "succeeded"
    FAILED_NON_ZERO = "failed_non_zero"
    FAILED_TIMEOUT = "failed_timeout"
    FAILED_NOT_FOUND = "failed_not_found"


class ExecutionState(StrEnum):
    """Lifecycle of a hook execution.

    PENDING -> RUNNING -> one of the terminal states. Terminal states are
    final; the dispatcher never retries.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED_NON_ZERO = "failed_non_zero"
    FAILED_TIMEOUT = "failed_timeout"
    FAILED_NOT_FOUND = "failed_not_found"

    @property
    def is_terminal(self) -> bool:
        return self not in {ExecutionState.PENDING, ExecutionState.RUNNING}
