"""Hook registry, process runner and dispatch."""

from agentrules.config import HookDefinition
from agentrules.enums import ExecutionState, HookEvent, OutcomeStatus

from ._cancel import CancellationToken
from ._dispatcher import (
    HookDispatcher,
    StateListener,
    build_hook_env,
    build_stdin_payload,
    denial_reason,
)
from ._models import Decision, HookOutcome
from ._registry import HookRegistry
from ._runner import (
    ProcessConfig,
    ProcessResult,
    build_argv,
    run_process,
    truncate_output,
)

__all__ = [
    "CancellationToken",
    "Decision",
    "ExecutionState",
    "HookDefinition",
    "HookDispatcher",
    "HookEvent",
    "HookOutcome",
    "HookRegistry",
    "OutcomeStatus",
    "ProcessConfig",
    "ProcessResult",
    "StateListener",
    "build_argv",
    "build_hook_env",
    "build_stdin_payload",
    "denial_reason",
    "run_process",
    "truncate_output",
]
