"""Configuration models."""

from ._hooks import HookDefinition
from ._rules import RuleHeader
from ._settings import ActivationSettings, LogFormat, LogLevel

__all__ = [
    "ActivationSettings",
    "HookDefinition",
    "LogFormat",
    "LogLevel",
    "RuleHeader",
]
