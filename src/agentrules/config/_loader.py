# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration file reading: TOML, JSON, frontmatter and settings."""

from __future__ import annotations

import os
import tomllib
from typing import TYPE_CHECKING, Any, cast

import orjson
import yaml
from pydantic import ValidationError

from agentrules.config._models import ActivationSettings
from agentrules.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ENV_PREFIX: str = "AGENTRULES_"

# Environment variables with the prefix that are not settings fields
_NON_SETTINGS_ENV: frozenset[str] = frozenset({"DEBUG", "HOOKS__DROPIN_DIR"})

_FRONTMATTER_DELIMITER: str = "---"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file {path}: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def read_json_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a JSON file whose top level is an object.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file is not valid JSON or not an object.
    """
    try:
        data = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as e:
        msg = f"Failed to parse JSON file {path}: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e

    if not isinstance(data, dict):
        msg = f"JSON file {path} must contain an object at the top level"
        raise ConfigLoadError(msg, path=path)
    return cast("dict[str, Any]", data)  # pyright: ignore[reportExplicitAny]


def parse_frontmatter(
    content: str,
    *,
    path: Path | None = None,
) -> tuple[dict[str, Any] | None, str]:  # pyright: ignore[reportExplicitAny]
    """Split YAML frontmatter from a markdown document.

    The frontmatter is the block between a first line of ``---`` and the next
    line consisting of ``---``.

    Args:
        content: The full document.
        path: Source path, used in error messages.

    Returns:
        Tuple of (frontmatter mapping or None when there is none, body).

    Raises:
        ConfigLoadError: If the frontmatter is unterminated, is not valid
            YAML, or is not a mapping.
    """
    lines = content.splitlines()
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return None, content

    end_index: int | None = None
    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            end_index = index
            break

    where = f" in {path}" if path is not None else ""
    if end_index is None:
        msg = f"Unterminated frontmatter{where}"
        raise ConfigLoadError(msg, path=path, line=1)

    header_text = "\n".join(lines[1:end_index])
    body = "\n".join(lines[end_index + 1 :]).strip()

    try:
        header = yaml.safe_load(header_text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        msg = f"Invalid YAML frontmatter{where}: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=mark.line + 2 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from e

    if header is None:
        return {}, body
    if not isinstance(header, dict):
        msg = f"Frontmatter{where} must be a mapping"
        raise ConfigLoadError(msg, path=path, line=2)

    return cast("dict[str, Any]", header), body  # pyright: ignore[reportExplicitAny]


def parse_string_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse a string value with automatic type inference.

    Precedence: boolean (true/false), integer, float (with a decimal point),
    JSON array/object, then the string itself.

    Examples:
        >>> parse_string_value("true")
        True
        >>> parse_string_value("42")
        42
        >>> parse_string_value("info")
        'info'
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    if "." not in value:
        try:
            return int(value)
        except ValueError:
            pass
    else:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError:
            pass

    return value


def parse_env_vars(
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect settings overrides from environment variables.

    ``AGENTRULES_LOG_LEVEL=debug`` becomes ``{"log_level": "debug"}``.

    Args:
        environ: Environment mapping (defaults to os.environ).
        prefix: Environment variable prefix.

    Returns:
        Dictionary of parsed values keyed by settings field name.
    """
    env = os.environ if environ is None else environ
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        name = key[len(prefix) :]
        if not name or name in _NON_SETTINGS_ENV:
            continue
        result[name.lower()] = parse_string_value(value)

    return result


def load_settings(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ActivationSettings:
    """Load service settings from an optional TOML file and the environment.

    The file may hold the values in a ``[settings]`` table or at the top
    level. Environment variables override file values.

    Args:
        path: Optional TOML settings file.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        The validated settings.

    Raises:
        ConfigLoadError: If the file cannot be parsed or the values are invalid.
    """
    data: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    if path is not None:
        raw = read_toml_file(path)
        section: Any = raw.get("settings", raw)  # pyright: ignore[reportExplicitAny]
        if isinstance(section, dict):
            data.update(cast("dict[str, Any]", section))  # pyright: ignore[reportExplicitAny]

    data.update(parse_env_vars(environ))

    for key in ("log_level", "log_format"):
        if isinstance(data.get(key), str):
            data[key] = data[key].lower()

    try:
        return ActivationSettings.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid settings: {e}"
        raise ConfigLoadError(msg, path=path) from e


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into a single line.

    Example:
        ``timeoutMs: Input should be greater than 0; command: Field required``
    """
    parts: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "<root>"
        parts.append(f"{location}: {detail['msg']}")
    return "; ".join(parts)
