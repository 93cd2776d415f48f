"""Hook definition model.

This module provides the Pydantic model for hook definitions loaded from
configuration records. Records may use camelCase keys (``toolMatcher``,
``timeoutMs``) or their snake_case equivalents.
"""

from pathlib import Path  # noqa: TC003
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from agentrules.enums import HookEvent


class HookDefinition(BaseModel):
    """A hook bound to a tool-use event.

    A PostToolUse hook is never blocking: its action has already happened, so
    ``effective_blocking`` is False for it whatever ``blocking`` says.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1, description="Unique identifier for the hook.")
    event: HookEvent = Field(..., description="Event the hook is bound to.")
    tool_matcher: tuple[str, ...] = Field(
        default=("*",),
        description="Glob (or list of globs) matched against the tool name.",
    )
    command: str | tuple[str, ...] = Field(
        ...,
        description="Command line (split with shlex) or argv list to execute.",
    )
    shell: str | None = Field(
        default=None,
        description="Interpreter to run the command with (``shell -c command``).",
    )
    cwd: Path | None = Field(
        default=None, description="Working directory for the command."
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Environment variables to set for the command.",
    )
    blocking: bool = Field(
        default=False,
        description="Whether a failure denies the pending PreToolUse action.",
    )
    timeout_ms: int = Field(
        default=60000, gt=0, description="Timeout for the command in milliseconds."
    )
    description: str | None = Field(default=None, description="What the hook does.")

    # Set by the loader/registry, not user-specified
    registration_order: int = Field(
        default=0, description="Position in registration order."
    )
    source_file: Path | None = Field(
        default=None,
        description="Path to the file this hook was loaded from (for debugging).",
    )

    @field_validator("event", mode="before")
    @classmethod
    def _parse_event(cls, value: object) -> object:
        if isinstance(value, str):
            return HookEvent(value)
        return value

    @field_validator("tool_matcher", mode="before")
    @classmethod
    def _coerce_matcher(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("tool_matcher")
    @classmethod
    def _require_matcher(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            msg = "tool matcher must contain at least one pattern"
            raise ValueError(msg)
        return value

    @field_validator("command")
    @classmethod
    def _require_command(cls, value: str | tuple[str, ...]) -> str | tuple[str, ...]:
        if isinstance(value, str) and not value.strip():
            msg = "command must not be empty"
            raise ValueError(msg)
        if isinstance(value, tuple) and not value:
            msg = "command must not be empty"
            raise ValueError(msg)
        return value

    @property
    def effective_blocking(self) -> bool:
        """Whether a failure of this hook can deny an action."""
        return self.blocking and self.event == HookEvent.PRE_TOOL_USE
