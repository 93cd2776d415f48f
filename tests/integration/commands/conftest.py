import os
from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from agentrules.cli import create_app


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated project root with an empty home directory.

    Creates:
        tmp_path/
            project/
                .claude/rules/
                .agentrules/
            home/
    """
    for name in [key for key in os.environ if key.startswith("AGENTRULES_")]:
        monkeypatch.delenv(name)

    project_root = tmp_path / "project"
    (project_root / ".claude" / "rules").mkdir(parents=True)
    (project_root / ".agentrules").mkdir()
    (tmp_path / "home").mkdir()
    return project_root


@pytest.fixture
def agentrules_cli(console: Console, project: Path) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code.

    Every invocation is pointed at the test project and its empty home
    directory, so the real user configuration is never read.
    """

    app = create_app(console=console, error_console=console)
    source_args = (
        "--project-root",
        str(project),
        "--user-dir",
        str(project.parent / "home"),
    )

    def _run(*args: str) -> int:
        """Run CLI app and return exit code (0 if no SystemExit)."""

        try:
            app([*args, *source_args])
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
