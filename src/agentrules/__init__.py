"""Path-scoped rule resolution and tool-use hook dispatch for agent runtimes."""

from agentrules.config import ActivationSettings, ConfigSources, RuleText
from agentrules.enums import ExecutionState, HookEvent, OutcomeStatus, RuleScope
from agentrules.exceptions import (
    AgentRulesError,
    ConfigError,
    ConfigLoadError,
    DuplicateIdError,
    HookError,
    LoadError,
    PatternSyntaxError,
    RegistrationError,
    ScriptExecError,
    ScriptNotFoundError,
    ServiceClosedError,
)
from agentrules.hooks import (
    CancellationToken,
    Decision,
    HookDefinition,
    HookDispatcher,
    HookOutcome,
    HookRegistry,
)
from agentrules.rules import RuleDocument, RuleResolver
from agentrules.service import ActivationService, LoadReport

__version__ = "0.1.0"

__all__ = [
    "ActivationService",
    "ActivationSettings",
    "AgentRulesError",
    "CancellationToken",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSources",
    "Decision",
    "DuplicateIdError",
    "ExecutionState",
    "HookDefinition",
    "HookDispatcher",
    "HookError",
    "HookEvent",
    "HookOutcome",
    "HookRegistry",
    "LoadError",
    "LoadReport",
    "OutcomeStatus",
    "PatternSyntaxError",
    "RegistrationError",
    "RuleDocument",
    "RuleResolver",
    "RuleScope",
    "RuleText",
    "ScriptExecError",
    "ScriptNotFoundError",
    "ServiceClosedError",
    "__version__",
]
