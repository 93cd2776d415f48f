"""Activation service: the entry point a host runtime talks to.

The service owns the active snapshot of rule documents and hooks. A load
builds a complete new snapshot and swaps it in only if every source is
valid; readers always see one whole snapshot.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Self, final

from agentrules.config import (
    ActivationSettings,
    ConfigSources,
    discover_sources,
    load_sources,
)
from agentrules.exceptions import LoadError, RegistrationError, ServiceClosedError
from agentrules.hooks import CancellationToken, HookDispatcher, HookRegistry
from agentrules.rules import RuleResolver
from agentrules.utils._logging import close_logger, create_logger_from_settings

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path
    from types import TracebackType

    from structlog.typing import FilteringBoundLogger

    from agentrules.config import HookDefinition
    from agentrules.enums import HookEvent
    from agentrules.exceptions import DuplicateIdError
    from agentrules.hooks import Decision
    from agentrules.rules import RuleDocument


@dataclass(frozen=True, slots=True)
class LoadReport:
    """Summary of a successful load.

    Attributes:
        rules: Number of rule documents now active.
        hooks: Number of hook definitions now active.
        generation: Generation number of the new snapshot.
        warnings: Non-fatal problems, such as duplicate IDs.
    """

    rules: int
    hooks: int
    generation: int
    warnings: tuple[DuplicateIdError, ...] = ()


@dataclass(frozen=True, slots=True)
class _Snapshot:
    resolver: RuleResolver
    registry: HookRegistry
    dispatcher: HookDispatcher
    generation: int


@final
class ActivationService:
    """Resolves rules and dispatches hooks against the active snapshot.

    Example:
        >>> with ActivationService() as service:
        ...     report = service.load(ConfigSources(rule_paths=(rules_dir,)))
        ...     service.resolve_rules("src/main.rs")
        ...     decision = service.dispatch_hook("PreToolUse", "Edit")
    """

    def __init__(
        self,
        settings: ActivationSettings | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the service with an empty snapshot.

        Args:
            settings: Runtime settings (defaults if None).
            logger: Logger for the service and its components. Created from
                settings if None, in which case shutdown closes its log file.
        """
        self._settings = settings if settings is not None else ActivationSettings()
        self._owns_logger = logger is None
        if logger is None:
            logger = create_logger_from_settings(self._settings)
        self._logger = logger
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._in_flight: set[CancellationToken] = set()
        self._closed = False
        self._snapshot = self._build_snapshot((), (), generation=0)

    @classmethod
    def from_project(
        cls,
        project_root: Path,
        user_dir: Path | None = None,
        *,
        settings: ActivationSettings | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> ActivationService:
        """Create a service and load the project's conventional sources.

        Raises:
            LoadError: If any discovered source is invalid.
        """
        service = cls(settings, logger=logger)
        _ = service.load(discover_sources(project_root, user_dir))
        return service

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    @property
    def settings(self) -> ActivationSettings:
        return self._settings

    @property
    def generation(self) -> int:
        """Number of successful loads so far."""
        return self._snapshot.generation

    @property
    def rules(self) -> tuple[RuleDocument, ...]:
        """Active rule documents, in registration order."""
        return self._snapshot.resolver.documents

    @property
    def hooks(self) -> tuple[HookDefinition, ...]:
        """Active hook definitions, in registration order."""
        return self._snapshot.registry.definitions()

    @property
    def closed(self) -> bool:
        return self._closed

    def _build_snapshot(
        self,
        rules: Iterable[RuleDocument],
        hooks: Iterable[HookDefinition],
        *,
        generation: int,
    ) -> _Snapshot:
        registry = HookRegistry(
            hooks, validate_commands=self._settings.validate_commands
        )
        return _Snapshot(
            resolver=RuleResolver(rules, logger=self._logger),
            registry=registry,
            dispatcher=HookDispatcher(registry, self._settings, logger=self._logger),
            generation=generation,
        )

    def load(self, sources: ConfigSources) -> LoadReport:
        """Replace the active snapshot with one built from sources.

        The load is all-or-nothing: on any problem the previous snapshot stays
        active and unchanged. Loading the same sources twice yields the same
        snapshot contents.

        Args:
            sources: Rule and hook sources to load.

        Returns:
            A LoadReport for the new snapshot.

        Raises:
            LoadError: Listing every offending document or hook.
        """
        try:
            loaded = load_sources(
                sources,
                default_timeout_ms=self._settings.default_timeout_ms,
                logger=self._logger,
            )
            try:
                built = self._build_snapshot(loaded.rules, loaded.hooks, generation=0)
            except RegistrationError as e:
                raise LoadError(e.issues, errors=e.errors) from e
        except LoadError as e:
            self._logger.warning("load_rejected", issues=list(e.issues))
            raise

        with self._lock:
            snapshot = replace(built, generation=self._snapshot.generation + 1)
            self._snapshot = snapshot

        self._logger.info(
            "snapshot_swapped",
            generation=snapshot.generation,
            rules=len(loaded.rules),
            hooks=len(loaded.hooks),
            warnings=len(loaded.warnings),
        )

        return LoadReport(
            rules=len(loaded.rules),
            hooks=len(loaded.hooks),
            generation=snapshot.generation,
            warnings=loaded.warnings,
        )

    def resolve_rules(self, path: str) -> list[str]:
        """Ordered rule payloads that apply to path.

        Works before any load (empty result) and after shutdown.
        """
        return self._snapshot.resolver.resolve(path)

    def resolve_documents(self, path: str) -> list[RuleDocument]:
        """Ordered rule documents that apply to path."""
        return self._snapshot.resolver.resolve_documents(path)

    def hooks_for(self, event: HookEvent | str, tool_name: str) -> list[HookDefinition]:
        """Active hooks that would run for event and tool_name, in order."""
        return self._snapshot.registry.hooks_for(event, tool_name)

    def dispatch_hook(
        self,
        event: HookEvent | str,
        tool_name: str,
        context: Mapping[str, str] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Decision:
        """Run the hooks for a tool-use event and decide allow/deny.

        Args:
            event: The tool-use event.
            tool_name: Name of the tool being used.
            context: Activation context passed to each hook.
            cancel_token: Optional token to cancel this dispatch.

        Returns:
            The decision with one outcome per matching hook.

        Raises:
            ServiceClosedError: If the service has been shut down.
        """
        own_token = CancellationToken()
        with self._lock:
            if self._closed:
                msg = "Activation service has been shut down"
                raise ServiceClosedError(msg)
            self._in_flight.add(own_token)
            snapshot = self._snapshot

        token = (
            CancellationToken.any(own_token, cancel_token)
            if cancel_token is not None
            else own_token
        )

        try:
            return snapshot.dispatcher.dispatch(
                event, tool_name, context, cancel_token=token
            )
        finally:
            if token is not own_token:
                token.detach()
            with self._idle:
                self._in_flight.discard(own_token)
                self._idle.notify_all()

    def shutdown(self, grace_ms: int | None = None) -> None:
        """Stop accepting dispatches and cancel the ones in flight.

        Running hook processes get SIGTERM, then SIGKILL after the grace
        period. Returns once every in-flight dispatch has finished. Calling
        it again is a no-op apart from waiting.

        Args:
            grace_ms: Grace period between SIGTERM and SIGKILL (defaults to
                the ``kill_grace_ms`` setting).
        """
        with self._lock:
            first = not self._closed
            self._closed = True
            pending = list(self._in_flight)

        if first:
            self._logger.info("service_shutdown", in_flight=len(pending))

        for token in pending:
            token.cancel(grace_ms=grace_ms)

        with self._idle:
            _ = self._idle.wait_for(lambda: not self._in_flight)

        if first and self._owns_logger:
            close_logger(self._logger)
