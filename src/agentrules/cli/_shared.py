# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- Output formatters (JSON, Markdown table)
- Loading the activation service from command-line source options
"""

from __future__ import annotations

from enum import IntEnum, StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, Never

from cyclopts import Parameter

from agentrules.config import (
    ActivationSettings,
    ConfigSources,
    discover_sources,
    load_settings,
)
from agentrules.exceptions import ConfigLoadError, LoadError
from agentrules.service import ActivationService, LoadReport
from agentrules.utils._logging import create_logger

if TYPE_CHECKING:
    from rich.console import Console
    from structlog.typing import FilteringBoundLogger

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any] | list[Any]

__all__ = [
    "ExitCode",
    "FormatOption",
    "FormattableData",
    "HooksFileOption",
    "OutputFormat",
    "ProjectRootOption",
    "RulesDirOption",
    "SourceOptions",
    "UserDirOption",
    "exit_with_error",
    "exit_with_success",
    "format_json",
    "format_table",
    "get_error_console",
    "open_service",
]


class ExitCode(IntEnum):
    """Standard exit codes for agentrules CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    DENIED = 2
    NOT_FOUND = 3
    INPUT_ERROR = 4
    INTERNAL_ERROR = 5


class OutputFormat(StrEnum):
    """Supported output formats for commands."""

    TEXT = "text"
    JSON = "json"


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Data to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format data as a Markdown table.

    Args:
        headers: Column headers for the table.
        rows: List of rows, where each row is a list of cell values.

    Returns:
        Markdown table string representation.
    """
    from pytablewriter import MarkdownTableWriter

    writer = MarkdownTableWriter(
        headers=headers,
        value_matrix=rows,
        margin=1,
    )
    return writer.dumps()


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    from rich.markup import escape

    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    raise SystemExit(code)


def exit_with_success(
    message: str | None = None,
    *,
    console: Console | None = None,
) -> Never:
    """Print an optional success message and exit with SUCCESS code.

    Raises:
        SystemExit: Always raised with ExitCode.SUCCESS (0).
    """
    if message is not None:
        if console is None:
            console = get_error_console()
        console.print(message)
    raise SystemExit(ExitCode.SUCCESS)


class SourceOptions:
    """Where a command reads its rules, hooks and settings from.

    Explicit rule directories or hook files replace the discovered sources
    of the same kind.
    """

    __slots__ = ("hooks_files", "project_root", "rules_dirs", "user_dir")

    def __init__(
        self,
        project_root: Path | None = None,
        *,
        rules_dirs: list[Path] | None = None,
        hooks_files: list[Path] | None = None,
        user_dir: Path | None = None,
    ) -> None:
        self.project_root: Path = (
            project_root if project_root is not None else Path.cwd()
        )
        self.rules_dirs: list[Path] = rules_dirs or []
        self.hooks_files: list[Path] = hooks_files or []
        self.user_dir: Path | None = user_dir

    @property
    def settings_file(self) -> Path:
        return self.project_root / ".agentrules" / "settings.toml"

    @property
    def log_file(self) -> Path:
        return self.project_root / ".agentrules" / "logs" / "cli.log"

    def sources(self) -> ConfigSources:
        discovered = discover_sources(self.project_root, self.user_dir)
        return ConfigSources(
            rule_paths=tuple(self.rules_dirs) or discovered.rule_paths,
            hook_paths=tuple(self.hooks_files) or discovered.hook_paths,
        )

    def settings(self) -> ActivationSettings:
        path = self.settings_file
        return load_settings(path if path.is_file() else None)

    def logger(
        self, settings: ActivationSettings, command: str
    ) -> FilteringBoundLogger:
        logger = create_logger(
            settings.log_file or self.log_file,
            level=settings.log_level.value,
            log_format=settings.log_format.value,  # pyright: ignore[reportArgumentType]
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count,
        )
        return logger.bind(command=command)


def open_service(
    options: SourceOptions, command: str
) -> tuple[ActivationService, LoadReport]:
    """Create an activation service and load the sources in options.

    Exits with LOAD_ERROR if the settings or sources cannot be loaded.
    """
    try:
        settings = options.settings()
    except ConfigLoadError as e:
        exit_with_error(f"Loading settings: {e}", ExitCode.LOAD_ERROR)

    service = ActivationService(settings, logger=options.logger(settings, command))
    try:
        report = service.load(options.sources())
    except LoadError as e:
        service.shutdown()
        lines = "\n".join(f"  - {issue}" for issue in e.issues)
        exit_with_error(
            f"Loading configuration failed:\n{lines}", ExitCode.LOAD_ERROR
        )
    return service, report


ProjectRootOption = Annotated[
    Path | None,
    Parameter(
        name="--project-root",
        help="Project root (defaults to the current directory)",
    ),
]
RulesDirOption = Annotated[
    list[Path] | None,
    Parameter(
        name="--rules-dir",
        help="Rule directory or file; repeatable, replaces discovered rules",
        negative=(),
    ),
]
HooksFileOption = Annotated[
    list[Path] | None,
    Parameter(
        name="--hooks-file",
        help="Hook file or drop-in directory; repeatable, replaces discovered hooks",
        negative=(),
    ),
]
UserDirOption = Annotated[
    Path | None,
    Parameter(
        name="--user-dir",
        help="Home directory holding user rules (defaults to ~)",
    ),
]
FormatOption = Annotated[
    OutputFormat,
    Parameter(name=["--format", "-f"], help="Output format (text, json)"),
]
