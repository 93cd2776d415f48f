"""Hook dispatch for tool-use events.

This module runs the hooks bound to a tool-use event, one after another in
registration order, and turns their outcomes into an allow/deny decision.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import orjson

from agentrules.config import ActivationSettings
from agentrules.enums import ExecutionState, HookEvent, OutcomeStatus
from agentrules.exceptions import ScriptExecError, ScriptNotFoundError
from agentrules.utils._logging import create_logger

from ._models import Decision, HookOutcome
from ._runner import ProcessConfig, build_argv, run_process

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from structlog.typing import FilteringBoundLogger

    from agentrules.config import HookDefinition

    from ._cancel import CancellationToken
    from ._registry import HookRegistry

# Observer of per-hook state transitions: (hook id, new state)
type StateListener = Callable[[str, ExecutionState], None]

_STATUS_TO_STATE: dict[OutcomeStatus, ExecutionState] = {
    OutcomeStatus.SUCCEEDED: ExecutionState.SUCCEEDED,
    OutcomeStatus.FAILED_NON_ZERO: ExecutionState.FAILED_NON_ZERO,
    OutcomeStatus.FAILED_TIMEOUT: ExecutionState.FAILED_TIMEOUT,
    OutcomeStatus.FAILED_NOT_FOUND: ExecutionState.FAILED_NOT_FOUND,
}


def build_stdin_payload(
    hook: HookDefinition,
    tool_name: str,
    context: Mapping[str, str],
) -> bytes:
    """Serialize the activation context a hook receives on stdin."""
    return orjson.dumps(
        {
            "hook_event_name": hook.event.value,
            "tool_name": tool_name,
            "hook_id": hook.id,
            "context": dict(context),
        }
    )


def build_hook_env(hook: HookDefinition, tool_name: str) -> dict[str, str]:
    """Environment variables for a hook process, on top of its own ``env``."""
    return {
        **hook.env,
        "AGENTRULES_HOOK_ID": hook.id,
        "AGENTRULES_HOOK_EVENT": hook.event.value,
        "AGENTRULES_TOOL_NAME": tool_name,
    }


def denial_reason(outcome: HookOutcome) -> str:
    """Format the reason for a denial, e.g. ``H1 failed (exit 1)``."""
    return f"{outcome.hook_id} failed ({outcome.failure_kind()})"


@final
class HookDispatcher:
    """Runs matching hooks for tool-use events and decides allow/deny."""

    __slots__ = ("_logger", "_on_state", "_registry", "_settings")

    def __init__(
        self,
        registry: HookRegistry,
        settings: ActivationSettings | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
        on_state: StateListener | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Source of hook definitions.
            settings: Output cap and kill grace period (defaults if None).
            logger: Logger for hook lifecycle events.
            on_state: Optional observer of per-hook state transitions.
        """
        self._registry = registry
        self._settings = settings if settings is not None else ActivationSettings()
        self._logger = logger if logger is not None else create_logger()
        self._on_state = on_state

    @property
    def registry(self) -> HookRegistry:
        return self._registry

    def _transition(self, hook_id: str, state: ExecutionState) -> None:
        if self._on_state is not None:
            self._on_state(hook_id, state)

    def run_hook(
        self,
        hook: HookDefinition,
        tool_name: str,
        context: Mapping[str, str],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> HookOutcome:
        """Run a single hook and return its outcome.

        Spawn failures become outcomes; nothing is raised.

        Args:
            hook: The hook to run.
            tool_name: Name of the tool being used.
            context: Activation context passed to the hook.
            cancel_token: Optional cancellation token.

        Returns:
            The hook's terminal outcome.
        """
        self._transition(hook.id, ExecutionState.PENDING)

        if cancel_token is not None and cancel_token.cancelled:
            outcome = HookOutcome(
                hook_id=hook.id,
                status=OutcomeStatus.FAILED_TIMEOUT,
                cancelled=True,
                timeout_ms=hook.timeout_ms,
            )
            self._finish(hook, outcome)
            return outcome

        self._transition(hook.id, ExecutionState.RUNNING)
        self._logger.debug(
            "hook_started",
            hook_id=hook.id,
            hook_event=hook.event.value,
            tool_name=tool_name,
        )

        try:
            config = ProcessConfig(
                argv=tuple(build_argv(hook.command, hook.shell)),
                cwd=hook.cwd,
                env=build_hook_env(hook, tool_name),
                stdin=build_stdin_payload(hook, tool_name, context),
                timeout_ms=hook.timeout_ms,
                kill_grace_ms=self._settings.kill_grace_ms,
                max_output_bytes=self._settings.max_output_bytes,
            )
            result = run_process(config, cancel_token=cancel_token)
        except ScriptNotFoundError as e:
            outcome = HookOutcome(
                hook_id=hook.id,
                status=OutcomeStatus.FAILED_NOT_FOUND,
                timeout_ms=hook.timeout_ms,
                error=str(e),
            )
        except (ScriptExecError, ValueError) as e:
            outcome = HookOutcome(
                hook_id=hook.id,
                status=OutcomeStatus.FAILED_NON_ZERO,
                timeout_ms=hook.timeout_ms,
                error=str(e),
            )
        else:
            if result.timed_out or result.cancelled:
                status = OutcomeStatus.FAILED_TIMEOUT
            elif result.exit_code == 0:
                status = OutcomeStatus.SUCCEEDED
            else:
                status = OutcomeStatus.FAILED_NON_ZERO
            outcome = HookOutcome(
                hook_id=hook.id,
                status=status,
                duration_ms=result.duration_ms,
                exit_code=result.exit_code,
                cancelled=result.cancelled,
                timeout_ms=hook.timeout_ms,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        self._finish(hook, outcome)
        return outcome

    def _finish(self, hook: HookDefinition, outcome: HookOutcome) -> None:
        self._transition(hook.id, _STATUS_TO_STATE[outcome.status])
        if outcome.succeeded:
            self._logger.debug(
                "hook_finished",
                hook_id=hook.id,
                status=outcome.status.value,
                duration_ms=outcome.duration_ms,
            )
        else:
            self._logger.warning(
                "hook_failed",
                hook_id=hook.id,
                status=outcome.status.value,
                failure=outcome.failure_kind(),
                blocking=hook.effective_blocking,
                duration_ms=outcome.duration_ms,
                exit_code=outcome.exit_code,
                error=outcome.error,
            )

    def dispatch(
        self,
        event: HookEvent | str,
        tool_name: str,
        context: Mapping[str, str] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Decision:
        """Run every hook bound to event for tool_name and decide.

        Hooks run sequentially in registration order; every matching hook
        runs even after a blocking failure. For PreToolUse the first blocking
        hook that does not succeed denies the action. PostToolUse always
        allows.

        Args:
            event: The tool-use event.
            tool_name: Name of the tool being used.
            context: Activation context passed to each hook.
            cancel_token: Optional token to cancel the dispatch; hooks not yet
                started are not spawned and report FAILED_TIMEOUT (cancelled).

        Returns:
            The decision with one outcome per matching hook.
        """
        hook_event = HookEvent(event)
        hooks = self._registry.hooks_for(hook_event, tool_name)
        activation_context: Mapping[str, str] = context if context is not None else {}

        outcomes: list[HookOutcome] = []
        reason: str | None = None

        for hook in hooks:
            outcome = self.run_hook(
                hook, tool_name, activation_context, cancel_token=cancel_token
            )
            outcomes.append(outcome)
            if reason is None and hook.effective_blocking and not outcome.succeeded:
                reason = denial_reason(outcome)

        decision = Decision(
            allow=reason is None,
            reason=reason,
            outcomes=tuple(outcomes),
        )

        self._logger.debug(
            "hooks_dispatched",
            hook_event=hook_event.value,
            tool_name=tool_name,
            hooks_run=len(outcomes),
            allow=decision.allow,
            reason=reason,
        )

        return decision
