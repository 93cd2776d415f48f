"""End-to-end hook dispatch against real processes."""

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import MagicMock

import orjson

from agentrules.config import ActivationSettings
from agentrules.hooks import (
    CancellationToken,
    ExecutionState,
    HookDefinition,
    HookDispatcher,
    HookEvent,
    HookRegistry,
    OutcomeStatus,
)

ScriptFactory = Callable[[str, str], Path]


def make_dispatcher(
    *hooks: HookDefinition, logger: MagicMock, **settings: int
) -> HookDispatcher:
    return HookDispatcher(
        HookRegistry(hooks),
        ActivationSettings.model_validate(settings),
        logger=logger,
    )


class TestDecisions:
    def test_blocking_pre_hook_failure_denies(self, mock_logger: MagicMock) -> None:
        dispatcher = make_dispatcher(
            HookDefinition(
                id="H1",
                event=HookEvent.PRE_TOOL_USE,
                tool_matcher=("Write",),
                command="exit 1",
                shell="/bin/sh",
                blocking=True,
            ),
            HookDefinition(
                id="H2",
                event=HookEvent.POST_TOOL_USE,
                tool_matcher=("Write",),
                command="exit 0",
                shell="/bin/sh",
            ),
            logger=mock_logger,
        )

        pre = dispatcher.dispatch(HookEvent.PRE_TOOL_USE, "Write")
        post = dispatcher.dispatch(HookEvent.POST_TOOL_USE, "Write")

        assert pre.allow is False
        assert pre.reason == "H1 failed (exit 1)"
        assert [o.hook_id for o in pre.outcomes] == ["H1"]
        assert pre.outcomes[0].status == OutcomeStatus.FAILED_NON_ZERO
        assert pre.outcomes[0].exit_code == 1
        assert post.allow is True
        assert [(o.hook_id, o.status) for o in post.outcomes] == [
            ("H2", OutcomeStatus.SUCCEEDED)
        ]

    def test_other_tool_is_allowed(self, mock_logger: MagicMock) -> None:
        dispatcher = make_dispatcher(
            HookDefinition(
                id="H1",
                event=HookEvent.PRE_TOOL_USE,
                tool_matcher=("Write",),
                command="false",
                blocking=True,
            ),
            logger=mock_logger,
        )

        decision = dispatcher.dispatch(HookEvent.PRE_TOOL_USE, "Read")

        assert decision.allow is True
        assert decision.outcomes == ()

    def test_hook_timeout_is_reported(self, mock_logger: MagicMock) -> None:
        dispatcher = make_dispatcher(
            HookDefinition(
                id="slow",
                event=HookEvent.PRE_TOOL_USE,
                command=("sleep", "5"),
                blocking=True,
                timeout_ms=100,
            ),
            logger=mock_logger,
        )
        start = time.monotonic()

        decision = dispatcher.dispatch(HookEvent.PRE_TOOL_USE, "Edit")

        assert time.monotonic() - start < 1.0
        outcome = decision.outcomes[0]
        assert outcome.status == OutcomeStatus.FAILED_TIMEOUT
        assert 100 <= outcome.duration_ms < 300
        assert outcome.cancelled is False
        assert outcome.exit_code is None
        assert decision.allow is False
        assert decision.reason == "slow failed (timed out after 100ms)"

    def test_missing_command_is_not_found(
        self, mock_logger: MagicMock, tmp_path: Path
    ) -> None:
        dispatcher = make_dispatcher(
            HookDefinition(
                id="ghost",
                event=HookEvent.PRE_TOOL_USE,
                command=(str(tmp_path / "nope.sh"),),
                blocking=True,
            ),
            HookDefinition(
                id="after",
                event=HookEvent.PRE_TOOL_USE,
                command="true",
            ),
            logger=mock_logger,
        )

        decision = dispatcher.dispatch(HookEvent.PRE_TOOL_USE, "Edit")

        assert decision.allow is False
        assert decision.reason == "ghost failed (command not found)"
        assert [o.status for o in decision.outcomes] == [
            OutcomeStatus.FAILED_NOT_FOUND,
            OutcomeStatus.SUCCEEDED,
        ]


class TestHookInput:
    def test_hook_receives_payload_and_environment(
        self,
        mock_logger: MagicMock,
        create_shell_script: ScriptFactory,
        tmp_path: Path,
    ) -> None:
        captured = tmp_path / "captured.json"
        script = create_shell_script(
            "capture.sh",
            f"cat > {captured}\n"
            'echo "$AGENTRULES_HOOK_ID:$AGENTRULES_TOOL_NAME:$EXTRA"',
        )
        dispatcher = make_dispatcher(
            HookDefinition(
                id="capture",
                event=HookEvent.PRE_TOOL_USE,
                command=(str(script),),
                env={"EXTRA": "yes"},
            ),
            logger=mock_logger,
        )

        decision = dispatcher.dispatch(
            HookEvent.PRE_TOOL_USE, "Edit", {"file_path": "src/main.rs"}
        )

        assert decision.outcomes[0].stdout == "capture:Edit:yes\n"
        assert orjson.loads(captured.read_bytes()) == {
            "hook_event_name": "PreToolUse",
            "tool_name": "Edit",
            "hook_id": "capture",
            "context": {"file_path": "src/main.rs"},
        }

    def test_hook_runs_in_its_working_directory(
        self, mock_logger: MagicMock, tmp_path: Path
    ) -> None:
        dispatcher = make_dispatcher(
            HookDefinition(
                id="where",
                event=HookEvent.POST_TOOL_USE,
                command="pwd",
                cwd=tmp_path,
            ),
            logger=mock_logger,
        )

        decision = dispatcher.dispatch(HookEvent.POST_TOOL_USE, "Edit")

        assert Path(decision.outcomes[0].stdout.strip()).resolve() == tmp_path.resolve()

    def test_output_is_capped_by_settings(self, mock_logger: MagicMock) -> None:
        dispatcher = make_dispatcher(
            HookDefinition(
                id="noisy",
                event=HookEvent.POST_TOOL_USE,
                command="head -c 5000 /dev/zero | tr '\\0' a",
                shell="/bin/sh",
            ),
            logger=mock_logger,
            max_output_bytes=64,
        )

        outcome = dispatcher.dispatch(HookEvent.POST_TOOL_USE, "Edit").outcomes[0]

        assert outcome.stdout == "a" * 64 + "\n... [output truncated]"


class TestCancellation:
    def test_cancel_stops_running_hook_and_skips_the_rest(
        self, mock_logger: MagicMock
    ) -> None:
        states: list[tuple[str, ExecutionState]] = []
        registry = HookRegistry(
            [
                HookDefinition(
                    id="long",
                    event=HookEvent.PRE_TOOL_USE,
                    command=("sleep", "5"),
                    blocking=True,
                ),
                HookDefinition(
                    id="next",
                    event=HookEvent.PRE_TOOL_USE,
                    command="true",
                ),
            ]
        )
        dispatcher = HookDispatcher(
            registry,
            ActivationSettings(kill_grace_ms=200),
            logger=mock_logger,
            on_state=lambda hook_id, state: states.append((hook_id, state)),
        )
        token = CancellationToken()
        timer = threading.Timer(0.2, token.cancel)
        start = time.monotonic()
        timer.start()

        try:
            decision = dispatcher.dispatch(
                HookEvent.PRE_TOOL_USE, "Edit", cancel_token=token
            )
        finally:
            timer.cancel()

        assert time.monotonic() - start < 3.0
        assert decision.allow is False
        assert decision.reason == "long failed (cancelled)"
        assert all(o.status == OutcomeStatus.FAILED_TIMEOUT for o in decision.outcomes)
        assert all(o.cancelled for o in decision.outcomes)
        assert ("next", ExecutionState.RUNNING) not in states
        assert ("long", ExecutionState.FAILED_TIMEOUT) in states


class TestConcurrency:
    def test_concurrent_dispatches_are_independent(
        self, mock_logger: MagicMock, create_shell_script: ScriptFactory
    ) -> None:
        script = create_shell_script(
            "echo-tool.sh", 'printf "%s" "$AGENTRULES_TOOL_NAME"'
        )
        dispatcher = make_dispatcher(
            HookDefinition(
                id="echo",
                event=HookEvent.PRE_TOOL_USE,
                command=(str(script),),
            ),
            logger=mock_logger,
        )
        tools = [f"Tool{i}" for i in range(16)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            decisions = list(
                pool.map(
                    lambda tool: dispatcher.dispatch(HookEvent.PRE_TOOL_USE, tool),
                    tools,
                )
            )

        assert [d.outcomes[0].stdout for d in decisions] == tools
        assert all(d.allow for d in decisions)
