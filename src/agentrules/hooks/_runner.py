"""Out-of-process execution of hook commands.

This module spawns a hook command in its own process group, feeds it stdin,
captures bounded stdout/stderr, and enforces a timeout and cooperative
cancellation. On timeout the whole group is killed at once; on cancellation
the group gets SIGTERM, a grace period, then SIGKILL.
"""

from __future__ import annotations

import contextlib
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from agentrules.exceptions import ScriptExecError, ScriptNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._cancel import CancellationToken

# Default timeout in milliseconds
DEFAULT_TIMEOUT_MS: int = 60000

# Default grace period between SIGTERM and SIGKILL on cancellation
DEFAULT_KILL_GRACE_MS: int = 2000

# Maximum output size in bytes
MAX_OUTPUT_BYTES: int = 102400  # 100KB

# How often the cancellation token is checked while the child runs
POLL_INTERVAL_SECONDS: float = 0.05

# Upper bound on collecting output after the group has been killed
_DRAIN_TIMEOUT_SECONDS: float = 1.0

_HAS_PROCESS_GROUPS: bool = hasattr(os, "killpg")


@dataclass(frozen=True, slots=True)
class ProcessConfig:
    """Configuration for one process run.

    Attributes:
        argv: Program and arguments.
        cwd: Working directory for execution.
        env: Additional environment variables to set.
        stdin: Optional stdin data to pipe to the command.
        timeout_ms: Execution timeout in milliseconds.
        kill_grace_ms: Milliseconds between SIGTERM and SIGKILL on cancellation.
        max_output_bytes: Cap on captured stdout and stderr each.
    """

    argv: tuple[str, ...]
    cwd: str | Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    stdin: bytes | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    kill_grace_ms: int = DEFAULT_KILL_GRACE_MS
    max_output_bytes: int = MAX_OUTPUT_BYTES


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Result of a process run that was spawned.

    Attributes:
        exit_code: Process exit code, or None if it was killed by us.
        stdout: Standard output, truncated to the configured cap.
        stderr: Standard error, truncated to the configured cap.
        duration_ms: Wall-clock time from spawn to reap.
        timed_out: Whether the timeout expired.
        cancelled: Whether the run was stopped by cancellation.
    """

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    timed_out: bool = False
    cancelled: bool = False


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # 'ignore' drops a multi-byte sequence cut at the boundary
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")

    return truncated + "\n... [output truncated]"


def build_argv(command: str | Sequence[str], shell: str | None = None) -> list[str]:
    """Build the argv for a hook command.

    Args:
        command: A command line or an argv list.
        shell: Interpreter to run a command line with, as ``shell -c command``.

    Returns:
        The argv list. Empty if command is empty.
    """
    if isinstance(command, str):
        if shell:
            return [shell, "-c", command]
        return shlex.split(command)

    argv = list(command)
    if shell and argv:
        return [shell, "-c", shlex.join(argv)]
    return argv


def _signal_group(process: subprocess.Popen[bytes], sig: signal.Signals) -> None:
    """Send sig to the process group of process, or to process alone."""
    with contextlib.suppress(ProcessLookupError):
        if _HAS_PROCESS_GROUPS:
            os.killpg(process.pid, sig)
        elif sig == signal.SIGTERM:
            process.terminate()
        else:
            process.kill()


def _kill_signal() -> signal.Signals:
    return getattr(signal, "SIGKILL", signal.SIGTERM)


def _drain(process: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
    """Collect remaining output from a process that has been signalled."""
    try:
        stdout, stderr = process.communicate(timeout=_DRAIN_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired:
        # A descendant outside the group still holds the pipes open
        process.kill()
        _ = process.wait()
        return b"", b""
    return stdout or b"", stderr or b""


def _stop_gracefully(
    process: subprocess.Popen[bytes], grace_ms: int
) -> tuple[bytes, bytes]:
    """SIGTERM the group, wait up to grace_ms, then SIGKILL it."""
    _signal_group(process, signal.SIGTERM)
    try:
        stdout, stderr = process.communicate(timeout=grace_ms / 1000.0)
    except subprocess.TimeoutExpired:
        _signal_group(process, _kill_signal())
        return _drain(process)
    # The leader exited; make sure nothing else in its group survives it
    _signal_group(process, _kill_signal())
    return stdout or b"", stderr or b""


def _spawn(config: ProcessConfig) -> subprocess.Popen[bytes]:
    argv = list(config.argv)
    if not argv:
        msg = "No command specified"
        raise ScriptExecError(msg, command=argv)

    if config.cwd is not None and not Path(config.cwd).is_dir():
        msg = f"Working directory does not exist: {config.cwd}"
        raise ScriptExecError(msg, command=argv)

    try:
        return subprocess.Popen(  # noqa: S603
            argv,
            stdin=subprocess.PIPE if config.stdin is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=str(config.cwd) if config.cwd is not None else None,
            env={**os.environ, **config.env},
            start_new_session=_HAS_PROCESS_GROUPS,
        )
    except FileNotFoundError as e:
        msg = f"Command not found: {argv[0]}"
        raise ScriptNotFoundError(msg, command=argv) from e
    except OSError as e:
        msg = f"Failed to start {argv[0]}: {e}"
        raise ScriptExecError(msg, command=argv, cause=e) from e


def run_process(
    config: ProcessConfig,
    *,
    cancel_token: CancellationToken | None = None,
) -> ProcessResult:
    """Run a process to completion, timeout or cancellation.

    Args:
        config: What to run and its limits.
        cancel_token: Optional token; when cancelled the process group is
            terminated, given the grace period, then killed.

    Returns:
        ProcessResult describing how the run ended.

    Raises:
        ScriptNotFoundError: If the executable does not exist.
        ScriptExecError: If the process cannot be started for another reason.
    """
    process = _spawn(config)
    start = time.monotonic()
    deadline = start + config.timeout_ms / 1000.0
    pending_input = config.stdin
    timed_out = False
    cancelled = False

    with process:
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                timed_out = True
                _signal_group(process, _kill_signal())
                stdout, stderr = _drain(process)
                break

            if cancel_token is not None and cancel_token.cancelled:
                cancelled = True
                grace_ms = cancel_token.grace_ms
                stdout, stderr = _stop_gracefully(
                    process,
                    grace_ms if grace_ms is not None else config.kill_grace_ms,
                )
                break

            try:
                stdout, stderr = process.communicate(
                    input=pending_input,
                    timeout=min(POLL_INTERVAL_SECONDS, remaining),
                )
                break
            except subprocess.TimeoutExpired:
                # communicate keeps feeding the input it was first given
                pending_input = None

    duration_ms = int((time.monotonic() - start) * 1000)
    interrupted = timed_out or cancelled

    return ProcessResult(
        exit_code=None if interrupted else process.returncode,
        stdout=truncate_output(
            (stdout or b"").decode("utf-8", errors="replace"),
            config.max_output_bytes,
        ),
        stderr=truncate_output(
            (stderr or b"").decode("utf-8", errors="replace"),
            config.max_output_bytes,
        ),
        duration_ms=duration_ms,
        timed_out=timed_out,
        cancelled=cancelled,
    )
