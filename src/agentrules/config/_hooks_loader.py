# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Hook definition loading from TOML, JSON and in-memory records.

Supported sources:

- TOML files with a ``[[hooks]]`` array of records (``hooks.toml`` and
  drop-in ``hooks.d/*.toml`` files).
- JSON files with a top-level ``hooks`` list of the same records.
- JSON files in the host settings layout, where ``hooks`` maps event names
  to ``{"matcher": ..., "hooks": [{"type": "command", ...}]}`` entries.
- In-memory record dicts.

Hooks without an ``id`` are named ``<source name>#<index>``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

from pydantic import ValidationError

from agentrules.config._issues import LoadIssue
from agentrules.config._loader import (
    describe_validation_error,
    read_json_file,
    read_toml_file,
)
from agentrules.config._models import HookDefinition
from agentrules.enums import HookEvent
from agentrules.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from structlog.typing import FilteringBoundLogger

INLINE_SOURCE: str = "inline"

# Interpreter used for commands declared in the host settings layout
SETTINGS_SHELL: str = "/bin/sh"

_MS_PER_SECOND: int = 1000


@dataclass(frozen=True, slots=True)
class HookRecord:
    """A raw hook record together with where it came from.

    Attributes:
        data: The record as read from the source.
        source_name: Short source label, used for generated IDs.
        index: Position of the record within its source.
        source_file: File the record was read from, if any.
    """

    data: Mapping[str, Any]  # pyright: ignore[reportExplicitAny]
    source_name: str
    index: int
    source_file: Path | None = None

    @property
    def label(self) -> str:
        """``<source name>#<index>``, the ID given to unnamed hooks."""
        return f"{self.source_name}#{self.index}"


def discover_drop_in_files(directory: Path) -> list[Path]:
    """Find all *.toml files in directory, sorted lexicographically.

    Args:
        directory: Directory to search for drop-in files.

    Returns:
        List of Path objects to .toml files, sorted by filename.
        Empty list if directory doesn't exist.
    """
    if not directory.is_dir():
        return []

    files = list(directory.glob("*.toml"))
    return sorted(files, key=lambda p: p.name)


def get_dropin_dir(
    project_root: Path,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Get drop-in directory, respecting AGENTRULES_HOOKS__DROPIN_DIR.

    Args:
        project_root: Project root directory.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Path to drop-in directory.
    """
    env = os.environ if environ is None else environ
    env_override = env.get("AGENTRULES_HOOKS__DROPIN_DIR", "").strip()
    if env_override:
        override_path = Path(env_override)
        if override_path.is_absolute():
            return override_path
        return project_root / override_path
    return project_root / ".agentrules" / "hooks.d"


def _split_matcher(matcher: object) -> list[str]:
    """Split a host matcher such as ``Edit|Write`` into glob alternatives."""
    if not isinstance(matcher, str) or not matcher.strip():
        return ["*"]
    parts = [part.strip() for part in matcher.split("|") if part.strip()]
    return parts or ["*"]


def settings_hook_records(
    section: Mapping[str, Any],  # pyright: ignore[reportExplicitAny]
    *,
    logger: FilteringBoundLogger | None = None,
) -> list[dict[str, Any]]:  # pyright: ignore[reportExplicitAny]
    """Convert the host settings ``hooks`` mapping into hook records.

    ``timeout`` in the host layout is in seconds; the records use
    ``timeout_ms``. Events this library does not dispatch and entries whose
    ``type`` is not ``command`` are skipped.

    Args:
        section: The ``hooks`` mapping keyed by event name.
        logger: Optional logger for skipped entries.

    Returns:
        Records in event, entry, hook order.

    Raises:
        ConfigLoadError: If the layout is structurally wrong.
    """
    records: list[dict[str, Any]] = []  # pyright: ignore[reportExplicitAny]

    for event_name, entries in section.items():
        try:
            event = HookEvent(event_name)
        except ValueError:
            if logger is not None:
                logger.debug("settings_event_skipped", event=event_name)
            continue

        if not isinstance(entries, list):
            msg = f"Settings hooks for {event_name} must be a list"
            raise ConfigLoadError(msg)

        for entry in entries:
            if not isinstance(entry, dict):
                msg = f"Settings hook entry for {event_name} must be an object"
                raise ConfigLoadError(msg)
            typed_entry = cast("dict[str, Any]", entry)  # pyright: ignore[reportExplicitAny]
            matcher = _split_matcher(typed_entry.get("matcher"))
            commands: Any = typed_entry.get("hooks", [])  # pyright: ignore[reportExplicitAny]
            if not isinstance(commands, list):
                msg = f"Settings hook entry 'hooks' for {event_name} must be a list"
                raise ConfigLoadError(msg)

            for command in commands:
                if not isinstance(command, dict) or command.get("type") != "command":
                    if logger is not None:
                        logger.debug("settings_hook_skipped", event=event_name)
                    continue

                record: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
                    "event": event.value,
                    "tool_matcher": matcher,
                    "command": command.get("command"),
                    "shell": SETTINGS_SHELL,
                    "blocking": command.get(
                        "blocking", typed_entry.get("blocking", False)
                    ),
                }
                if "id" in command:
                    record["id"] = command["id"]
                timeout = command.get("timeout")
                if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
                    record["timeout_ms"] = int(timeout * _MS_PER_SECOND)
                elif timeout is not None:
                    record["timeout_ms"] = timeout
                records.append(record)

    return records


def read_hook_file(
    path: Path,
    *,
    logger: FilteringBoundLogger | None = None,
) -> list[HookRecord]:
    """Read the hook records of a single TOML or JSON file.

    Args:
        path: The hook file. ``.json`` files are read as JSON (either a
            ``hooks`` list or the host settings layout), anything else as
            TOML with a ``[[hooks]]`` array.
        logger: Optional logger for diagnostics.

    Returns:
        Records in file order. A file without a ``hooks`` key has none.

    Raises:
        ConfigLoadError: If the file cannot be read or has the wrong shape.
        FileNotFoundError: If the file does not exist.
    """
    if path.suffix == ".json":
        data = read_json_file(path)
    else:
        data = read_toml_file(path)

    section: Any = data.get("hooks", [])  # pyright: ignore[reportExplicitAny]
    if isinstance(section, dict):
        try:
            raw_records = settings_hook_records(
                cast("dict[str, Any]", section),  # pyright: ignore[reportExplicitAny]
                logger=logger,
            )
        except ConfigLoadError as e:
            raise ConfigLoadError(f"{path}: {e}", path=path) from e
    elif isinstance(section, list):
        raw_records = cast("list[Any]", section)  # pyright: ignore[reportExplicitAny]
    else:
        msg = f"'hooks' in {path} must be a list or an object"
        raise ConfigLoadError(msg, path=path)

    records: list[HookRecord] = []
    for index, raw in enumerate(raw_records):
        if not isinstance(raw, dict):
            msg = f"Hook entry {index} in {path} is not a table"
            raise ConfigLoadError(msg, path=path)
        records.append(
            HookRecord(
                data=cast("dict[str, Any]", raw),  # pyright: ignore[reportExplicitAny]
                source_name=path.name,
                index=index,
                source_file=path,
            )
        )

    return records


def build_hook_definition(
    record: HookRecord,
    *,
    default_timeout_ms: int,
) -> HookDefinition:
    """Validate a raw record into a HookDefinition.

    Args:
        record: The sourced record.
        default_timeout_ms: Timeout used when the record has none.

    Returns:
        The validated definition, with ``registration_order`` left at zero.

    Raises:
        ValidationError: If the record is invalid.
    """
    data: dict[str, Any] = dict(record.data)  # pyright: ignore[reportExplicitAny]
    if not data.get("id"):
        data["id"] = record.label
    if "timeout_ms" not in data and "timeoutMs" not in data:
        data["timeout_ms"] = default_timeout_ms
    data["source_file"] = record.source_file
    return HookDefinition.model_validate(data)


def collect_hook_definitions(
    paths: Sequence[Path] = (),
    records: Sequence[Mapping[str, Any]] = (),  # pyright: ignore[reportExplicitAny]
    *,
    default_timeout_ms: int = 60000,
    logger: FilteringBoundLogger | None = None,
) -> tuple[list[HookDefinition], list[LoadIssue]]:
    """Load hook definitions from files, drop-in directories and records.

    Every source and record is attempted so that all problems surface in one
    pass. Registration orders are left at zero; the caller assigns them after
    merging.

    Args:
        paths: Hook files or drop-in directories, in precedence order
            (lowest first). Directories contribute their ``*.toml`` files in
            lexicographic order.
        records: In-memory records, after all paths.
        default_timeout_ms: Timeout for records that omit one.
        logger: Optional logger for diagnostics.

    Returns:
        Tuple of (definitions in source order, issues).
    """
    sourced: list[HookRecord] = []
    issues: list[LoadIssue] = []

    for path in paths:
        if path.is_dir():
            files = discover_drop_in_files(path)
        elif path.is_file():
            files = [path]
        else:
            msg = f"hook source {path}: not found"
            issues.append(LoadIssue(msg, ConfigLoadError("not found", path=path)))
            continue

        for file in files:
            try:
                sourced.extend(read_hook_file(file, logger=logger))
            except ConfigLoadError as e:
                issues.append(LoadIssue(f"hook source {file}: {e}", e))
            except OSError as e:
                issues.append(LoadIssue(f"hook source {file}: cannot read ({e})", e))

    sourced.extend(
        HookRecord(data=record, source_name=INLINE_SOURCE, index=index)
        for index, record in enumerate(records)
    )

    definitions: list[HookDefinition] = []
    for record in sourced:
        try:
            definitions.append(
                build_hook_definition(record, default_timeout_ms=default_timeout_ms)
            )
        except ValidationError as e:
            hook_id = record.data.get("id") or record.label
            msg = f"hook {hook_id!r}: {describe_validation_error(e)}"
            issues.append(LoadIssue(msg, e))

    return definitions, issues
