# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# pyright: reportAny=false
# ruff: noqa: D415, A002, T201
"""Hooks subcommands."""

import sys
from collections.abc import Sequence
from typing import Annotated

import orjson
from cyclopts import App, Parameter

from agentrules.config import HookDefinition
from agentrules.enums import HookEvent
from agentrules.hooks import Decision, HookOutcome

from ._shared import (
    ExitCode,
    FormatOption,
    HooksFileOption,
    OutputFormat,
    ProjectRootOption,
    RulesDirOption,
    SourceOptions,
    UserDirOption,
    exit_with_error,
    exit_with_success,
    format_json,
    format_table,
    open_service,
)

app = App(name="hooks", help="Inspect and dispatch tool-use hooks", help_on_error=True)


def _parse_event(event: str) -> HookEvent:
    try:
        return HookEvent(event)
    except ValueError:
        valid = ", ".join(member.value for member in HookEvent)
        exit_with_error(
            f"Unknown event {event!r} (expected one of: {valid})",
            ExitCode.INPUT_ERROR,
        )


def _command_text(hook: HookDefinition) -> str:
    if isinstance(hook.command, str):
        return hook.command
    return " ".join(hook.command)


def hook_to_dict(hook: HookDefinition) -> dict[str, object]:
    """Convert a hook definition to a JSON-serializable dict."""
    return {
        "id": hook.id,
        "event": hook.event.value,
        "tool_matcher": list(hook.tool_matcher),
        "command": (
            hook.command if isinstance(hook.command, str) else list(hook.command)
        ),
        "shell": hook.shell,
        "blocking": hook.effective_blocking,
        "timeout_ms": hook.timeout_ms,
        "registration_order": hook.registration_order,
        "source": str(hook.source_file) if hook.source_file is not None else None,
    }


def outcome_to_dict(outcome: HookOutcome) -> dict[str, object]:
    """Convert a hook outcome to a JSON-serializable dict."""
    return {
        "hook_id": outcome.hook_id,
        "status": outcome.status.value,
        "exit_code": outcome.exit_code,
        "duration_ms": outcome.duration_ms,
        "cancelled": outcome.cancelled,
        "stdout": outcome.stdout,
        "stderr": outcome.stderr,
        "error": outcome.error,
    }


def decision_to_dict(decision: Decision) -> dict[str, object]:
    """Convert a decision to a JSON-serializable dict."""
    return {
        "allow": decision.allow,
        "reason": decision.reason,
        "outcomes": [outcome_to_dict(outcome) for outcome in decision.outcomes],
    }


def _hook_rows(hooks: Sequence[HookDefinition]) -> list[list[str]]:
    return [
        [
            hook.id,
            hook.event.value,
            ", ".join(hook.tool_matcher),
            "yes" if hook.effective_blocking else "no",
            str(hook.timeout_ms),
            _command_text(hook),
        ]
        for hook in hooks
    ]


def parse_context_pairs(pairs: list[str]) -> dict[str, str]:
    """Parse ``key=value`` pairs into a context mapping.

    Raises:
        ValueError: If a pair has no ``=`` or an empty key.
    """
    context: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"Invalid context entry {pair!r}, expected key=value"
            raise ValueError(msg)
        context[key] = value
    return context


def parse_context_json(raw: str | bytes) -> dict[str, str]:
    """Parse a JSON object into a context mapping.

    Non-string values are kept as their JSON text.

    Raises:
        ValueError: If the input is not a JSON object.
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON on stdin: {e}"
        raise ValueError(msg) from e
    if not isinstance(data, dict):
        msg = "Context on stdin must be a JSON object"
        raise ValueError(msg)
    return {
        str(key): value if isinstance(value, str) else orjson.dumps(value).decode()
        for key, value in data.items()
    }


@app.command(name="list")
def _list(
    *,
    event: Annotated[
        str | None,
        Parameter(name=["--event", "-e"], help="Only hooks bound to this event"),
    ] = None,
    tool: Annotated[
        str | None,
        Parameter(
            name=["--tool", "-t"], help="Only hooks whose matcher matches this tool"
        ),
    ] = None,
    project_root: ProjectRootOption = None,
    rules_dir: RulesDirOption = None,
    hooks_file: HooksFileOption = None,
    user_dir: UserDirOption = None,
    format: FormatOption = OutputFormat.TEXT,
) -> None:
    """List registered hooks in registration order

    Use filters to narrow results:
      --event PreToolUse       Show hooks for one event
      --tool Edit              Show hooks that would run for a tool

    Exit codes:
        0: Success
        1: Failed to load configuration
        4: Invalid event
    """
    hook_event = _parse_event(event) if event is not None else None

    options = SourceOptions(
        project_root, rules_dirs=rules_dir, hooks_files=hooks_file, user_dir=user_dir
    )
    service, _ = open_service(options, "hooks list")
    with service:
        if tool is not None:
            events = [hook_event] if hook_event is not None else list(HookEvent)
            hooks = sorted(
                (hook for ev in events for hook in service.hooks_for(ev, tool)),
                key=lambda hook: hook.registration_order,
            )
        else:
            hooks = [
                hook
                for hook in service.hooks
                if hook_event is None or hook.event == hook_event
            ]

    if format == OutputFormat.JSON:
        print(format_json({"hooks": [hook_to_dict(hook) for hook in hooks]}))
    elif not hooks:
        if event is not None or tool is not None:
            print("No hooks match the specified filters.")
        else:
            print("No hooks configured.")
    else:
        headers = ["ID", "Event", "Tool matcher", "Blocking", "Timeout (ms)", "Command"]
        print(format_table(headers, _hook_rows(hooks)).rstrip())

    exit_with_success()


@app.command(name="show")
def _show(
    hook_id: str,
    *,
    project_root: ProjectRootOption = None,
    rules_dir: RulesDirOption = None,
    hooks_file: HooksFileOption = None,
    user_dir: UserDirOption = None,
    format: FormatOption = OutputFormat.TEXT,
) -> None:
    """Show one hook definition

    Args:
        hook_id: ID of the hook.

    Exit codes:
        0: Success
        1: Failed to load configuration
        3: No hook with that ID
    """
    options = SourceOptions(
        project_root, rules_dirs=rules_dir, hooks_files=hooks_file, user_dir=user_dir
    )
    service, _ = open_service(options, "hooks show")
    with service:
        hook = next((hook for hook in service.hooks if hook.id == hook_id), None)

    if hook is None:
        exit_with_error(f"Hook not found: {hook_id}", ExitCode.NOT_FOUND)

    data = hook_to_dict(hook)
    if format == OutputFormat.JSON:
        print(format_json(data))
    else:
        for key, value in data.items():
            print(f"{key}: {value}")

    exit_with_success()


@app.command(name="dispatch")
def _dispatch(
    event: str,
    tool: str,
    *,
    context: Annotated[
        list[str] | None,
        Parameter(
            name=["--context", "-c"],
            help="Context entry as key=value; repeatable",
            negative=(),
        ),
    ] = None,
    stdin: Annotated[
        bool,
        Parameter(name="--stdin", help="Read context as a JSON object from stdin"),
    ] = False,
    project_root: ProjectRootOption = None,
    rules_dir: RulesDirOption = None,
    hooks_file: HooksFileOption = None,
    user_dir: UserDirOption = None,
    format: FormatOption = OutputFormat.TEXT,
) -> None:
    """Run the hooks for a tool-use event and report the decision

    Hooks run one after another in registration order. A failing blocking
    PreToolUse hook denies the action.

    Args:
        event: Event name (PreToolUse or PostToolUse).
        tool: Name of the tool being used.

    Exit codes:
        0: Allowed
        1: Failed to load configuration
        2: Denied
        4: Invalid event or context
    """
    hook_event = _parse_event(event)

    activation_context: dict[str, str] = {}
    try:
        if stdin:
            activation_context.update(parse_context_json(sys.stdin.read()))
        activation_context.update(parse_context_pairs(context or []))
    except ValueError as e:
        exit_with_error(str(e), ExitCode.INPUT_ERROR)

    options = SourceOptions(
        project_root, rules_dirs=rules_dir, hooks_files=hooks_file, user_dir=user_dir
    )
    service, _ = open_service(options, "hooks dispatch")
    with service:
        decision = service.dispatch_hook(hook_event, tool, activation_context)

    if format == OutputFormat.JSON:
        print(format_json(decision_to_dict(decision)))
    else:
        print("allow" if decision.allow else f"deny: {decision.reason}")
        if decision.outcomes:
            rows = [
                [
                    outcome.hook_id,
                    outcome.status.value,
                    str(outcome.exit_code) if outcome.exit_code is not None else "-",
                    str(outcome.duration_ms),
                ]
                for outcome in decision.outcomes
            ]
            print()
            print(
                format_table(["Hook", "Status", "Exit", "Duration (ms)"], rows).rstrip()
            )

    if not decision.allow:
        raise SystemExit(ExitCode.DENIED)
    exit_with_success()
