"""Registry of validated hook definitions.

Registration is validated as a whole: if any definition is invalid nothing
is registered. The registry state is replaced copy-on-write, so readers on
other threads see either the old or the new set of hooks, never a mix.
"""

from __future__ import annotations

import os
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, final

from agentrules.enums import HookEvent
from agentrules.exceptions import PatternSyntaxError, RegistrationError
from agentrules.patterns import compile_pattern

from ._runner import build_argv

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agentrules.config import HookDefinition
    from agentrules.patterns import CompiledPattern


@dataclass(frozen=True, slots=True)
class _Entry:
    definition: HookDefinition
    matchers: tuple[CompiledPattern, ...]

    def matches_tool(self, tool_name: str) -> bool:
        return any(matcher.matches(tool_name) for matcher in self.matchers)


def _is_executable(program: str) -> bool:
    if os.sep in program or (os.altsep is not None and os.altsep in program):
        path = Path(program)
        return path.is_file() and os.access(path, os.X_OK)
    return shutil.which(program) is not None


def _validate(
    definition: HookDefinition, *, validate_commands: bool
) -> tuple[tuple[CompiledPattern, ...], list[str], list[Exception]]:
    """Check a definition, returning its matchers, problems and their causes."""
    problems: list[str] = []
    errors: list[Exception] = []
    matchers: list[CompiledPattern] = []

    if definition.timeout_ms <= 0:
        problems.append(f"timeout_ms must be positive, got {definition.timeout_ms}")

    if not definition.tool_matcher:
        problems.append("tool matcher is empty")
    for pattern in definition.tool_matcher:
        try:
            matchers.append(compile_pattern(pattern))
        except PatternSyntaxError as e:
            problems.append(str(e))
            errors.append(e)

    try:
        argv = build_argv(definition.command, definition.shell)
    except ValueError as e:
        problems.append(f"cannot parse command: {e}")
        errors.append(e)
        return tuple(matchers), problems, errors

    if not argv:
        problems.append("command is empty")
    elif validate_commands and not _is_executable(argv[0]):
        problems.append(f"executable not found: {argv[0]}")

    return tuple(matchers), problems, errors


@final
class HookRegistry:
    """Holds hook definitions keyed by ID, ordered by registration.

    Example:
        >>> registry = HookRegistry()
        >>> registry.register([definition])
        >>> registry.hooks_for(HookEvent.PRE_TOOL_USE, "Edit")
        [HookDefinition(id='fmt', ...)]
    """

    __slots__ = ("_entries", "_lock", "_next_order", "_validate_commands")

    def __init__(
        self,
        definitions: Iterable[HookDefinition] = (),
        *,
        validate_commands: bool = False,
    ) -> None:
        """Initialize the registry.

        Args:
            definitions: Initial definitions, registered in order.
            validate_commands: Require hook executables to be resolvable.

        Raises:
            RegistrationError: If any initial definition is invalid.
        """
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._next_order = 0
        self._validate_commands = validate_commands
        initial = list(definitions)
        if initial:
            self.register(initial)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, hook_id: object) -> bool:
        return hook_id in self._entries

    def get(self, hook_id: str) -> HookDefinition | None:
        entry = self._entries.get(hook_id)
        return entry.definition if entry is not None else None

    def register(
        self,
        definitions: Iterable[HookDefinition],
        *,
        reset_order: bool = False,
    ) -> None:
        """Add or replace hook definitions.

        New IDs are appended to the registration order. A definition whose ID
        is already registered replaces the old one and keeps its position,
        unless reset_order is True, in which case it moves to the end.

        Args:
            definitions: Definitions to register.
            reset_order: Give replaced definitions a fresh registration order.

        Raises:
            RegistrationError: If any definition is invalid. The registry is
                left unchanged.
        """
        batch = list(definitions)
        validated: list[tuple[HookDefinition, tuple[CompiledPattern, ...]]] = []
        issues: list[str] = []
        errors: list[Exception] = []

        for definition in batch:
            matchers, problems, causes = _validate(
                definition, validate_commands=self._validate_commands
            )
            issues.extend(f"hook {definition.id!r}: {problem}" for problem in problems)
            errors.extend(causes)
            validated.append((definition, matchers))

        if issues:
            raise RegistrationError(issues, errors=errors)

        with self._lock:
            entries = dict(self._entries)
            next_order = self._next_order
            for definition, matchers in validated:
                existing = entries.get(definition.id)
                if existing is not None and not reset_order:
                    order = existing.definition.registration_order
                else:
                    order = next_order
                    next_order += 1
                    # Re-insert so dict order tracks registration order
                    entries.pop(definition.id, None)
                entries[definition.id] = _Entry(
                    definition.model_copy(update={"registration_order": order}),
                    matchers,
                )
            self._entries = entries
            self._next_order = next_order

    def definitions(self) -> tuple[HookDefinition, ...]:
        """All registered definitions, in registration order."""
        entries = self._entries
        return tuple(
            sorted(
                (entry.definition for entry in entries.values()),
                key=lambda definition: definition.registration_order,
            )
        )

    def hooks_for(
        self, event: HookEvent | str, tool_name: str
    ) -> list[HookDefinition]:
        """Definitions bound to event whose tool matcher matches tool_name.

        Args:
            event: The tool-use event.
            tool_name: Name of the tool being used.

        Returns:
            Matching definitions in registration order.
        """
        hook_event = HookEvent(event)
        entries = self._entries
        matching = [
            entry.definition
            for entry in entries.values()
            if entry.definition.event == hook_event and entry.matches_tool(tool_name)
        ]
        return sorted(matching, key=lambda definition: definition.registration_order)
