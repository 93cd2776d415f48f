"""Service settings model.

This module provides the ActivationSettings Pydantic model along with the
shared logging enums.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ActivationSettings(BaseModel):
    """Runtime settings for the activation service.

    Attributes:
        log_level: Log level threshold.
        log_format: Log output format.
        log_file: Path to the log file (empty writes to stderr).
        log_max_bytes: Rotation size for the log file.
        log_backup_count: Number of rotated log files to keep.
        default_timeout_ms: Timeout for hook records that omit one.
        kill_grace_ms: Grace period between terminate and kill on cancellation.
        max_output_bytes: Cap on captured stdout/stderr per hook.
        validate_commands: Check hook executables exist at registration.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="Log level threshold."
    )
    log_format: LogFormat = Field(
        default=LogFormat.JSON, description="Log output format."
    )
    log_file: str = Field(
        default="", description="Path to log file (empty writes to stderr)."
    )
    log_max_bytes: int | None = Field(
        default=None,
        description=(
            "Maximum size of the log file in bytes before rotation. "
            "Must be set together with log_backup_count for rotation to be enabled."
        ),
    )
    log_backup_count: int | None = Field(
        default=None,
        description=(
            "Number of rotated log files to keep. "
            "Must be set together with log_max_bytes for rotation to be enabled."
        ),
    )
    default_timeout_ms: int = Field(
        default=60000,
        gt=0,
        description="Timeout applied to hook records without timeoutMs.",
    )
    kill_grace_ms: int = Field(
        default=2000,
        ge=0,
        description="Milliseconds between SIGTERM and SIGKILL on cancellation.",
    )
    max_output_bytes: int = Field(
        default=102400,
        gt=0,
        description="Maximum captured stdout/stderr per hook, in bytes.",
    )
    validate_commands: bool = Field(
        default=False,
        description="Require hook executables to be resolvable at registration.",
    )
