# pyright: reportAny=false
"""Tests for configuration file reading and settings loading."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from pydantic import BaseModel, Field, ValidationError

from agentrules.config import (
    ActivationSettings,
    LogFormat,
    LogLevel,
    load_settings,
    parse_env_vars,
    parse_frontmatter,
    parse_string_value,
    read_json_file,
    read_toml_file,
)
from agentrules.config._loader import describe_validation_error
from agentrules.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_reads_valid_toml(self, fs: FakeFilesystem) -> None:
        path = Path("/config/hooks.toml")
        fs.create_file(path, contents='[[hooks]]\nevent = "PreToolUse"\n')

        result = read_toml_file(path)

        assert result == {"hooks": [{"event": "PreToolUse"}]}

    def test_invalid_toml_raises_config_load_error(self, fs: FakeFilesystem) -> None:
        path = Path("/config/hooks.toml")
        fs.create_file(path, contents="[hooks\nevent = 1\n")

        with pytest.raises(ConfigLoadError) as exc_info:
            read_toml_file(path)

        assert exc_info.value.path == path
        assert "Failed to parse TOML" in str(exc_info.value)

    def test_missing_file_raises_file_not_found(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            read_toml_file(Path("/config/missing.toml"))


class TestReadJsonFile:
    def test_reads_object(self, fs: FakeFilesystem) -> None:
        path = Path("/config/settings.json")
        fs.create_file(path, contents='{"hooks": []}')

        assert read_json_file(path) == {"hooks": []}

    def test_invalid_json_raises(self, fs: FakeFilesystem) -> None:
        path = Path("/config/settings.json")
        fs.create_file(path, contents='{"hooks": [}')

        with pytest.raises(ConfigLoadError, match="Failed to parse JSON") as exc_info:
            read_json_file(path)

        assert exc_info.value.path == path

    def test_non_object_top_level_raises(self, fs: FakeFilesystem) -> None:
        path = Path("/config/settings.json")
        fs.create_file(path, contents="[1, 2]")

        with pytest.raises(ConfigLoadError, match="must contain an object"):
            read_json_file(path)


class TestParseFrontmatter:
    def test_splits_header_and_body(self) -> None:
        content = '---\npaths:\n  - "src/**/*.ts"\n---\n\nPrefer named exports.\n'

        header, body = parse_frontmatter(content)

        assert header == {"paths": ["src/**/*.ts"]}
        assert body == "Prefer named exports."

    def test_document_without_frontmatter(self) -> None:
        content = "# Style\n\nUse four spaces.\n"

        header, body = parse_frontmatter(content)

        assert header is None
        assert body == content

    def test_empty_frontmatter_is_empty_mapping(self) -> None:
        header, body = parse_frontmatter("---\n---\nBody")

        assert header == {}
        assert body == "Body"

    def test_delimiter_later_in_document_is_not_frontmatter(self) -> None:
        content = "Intro\n---\nkey: value\n---\n"

        header, body = parse_frontmatter(content)

        assert header is None
        assert body == content

    def test_unterminated_frontmatter_raises(self) -> None:
        with pytest.raises(ConfigLoadError, match="Unterminated frontmatter"):
            parse_frontmatter("---\npaths: ['*.py']\nBody without end")

    def test_invalid_yaml_raises_with_line(self) -> None:
        path = Path("rules/bad.md")

        with pytest.raises(ConfigLoadError) as exc_info:
            parse_frontmatter("---\npaths: [unclosed\n---\nBody", path=path)

        assert exc_info.value.path == path
        assert exc_info.value.line is not None
        assert "Invalid YAML frontmatter in rules/bad.md" in str(exc_info.value)

    def test_non_mapping_frontmatter_raises(self) -> None:
        with pytest.raises(ConfigLoadError, match="must be a mapping"):
            parse_frontmatter("---\n- a\n- b\n---\nBody")


class TestParseStringValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("-7", -7),
            ("2.5", 2.5),
            ('["a", "b"]', ["a", "b"]),
            ('{"k": 1}', {"k": 1}),
            ("info", "info"),
            ("1.2.3", "1.2.3"),
            ("[not json", "[not json"),
        ],
    )
    def test_infers_type(self, value: str, expected: object) -> None:
        assert parse_string_value(value) == expected


class TestParseEnvVars:
    def test_collects_prefixed_variables(self) -> None:
        environ = {
            "AGENTRULES_LOG_LEVEL": "debug",
            "AGENTRULES_DEFAULT_TIMEOUT_MS": "5000",
            "HOME": "/home/user",
        }

        result = parse_env_vars(environ)

        assert result == {"log_level": "debug", "default_timeout_ms": 5000}

    def test_skips_non_settings_variables(self) -> None:
        environ = {
            "AGENTRULES_DEBUG": "1",
            "AGENTRULES_HOOKS__DROPIN_DIR": "hooks",
            "AGENTRULES_": "empty",
        }

        assert parse_env_vars(environ) == {}


class TestLoadSettings:
    def test_defaults_without_file_or_env(self) -> None:
        settings = load_settings(environ={})

        assert settings == ActivationSettings()
        assert settings.default_timeout_ms == 60000
        assert settings.kill_grace_ms == 2000
        assert settings.max_output_bytes == 102400
        assert settings.validate_commands is False

    def test_reads_settings_table(self, fs: FakeFilesystem) -> None:
        path = Path("/project/.agentrules/settings.toml")
        fs.create_file(
            path,
            contents='[settings]\nlog_level = "DEBUG"\nkill_grace_ms = 500\n',
        )

        settings = load_settings(path, environ={})

        assert settings.log_level == LogLevel.DEBUG
        assert settings.kill_grace_ms == 500

    def test_reads_top_level_values(self, fs: FakeFilesystem) -> None:
        path = Path("/project/.agentrules/settings.toml")
        fs.create_file(path, contents='log_format = "text"\n')

        settings = load_settings(path, environ={})

        assert settings.log_format == LogFormat.TEXT

    def test_environment_overrides_file(self, fs: FakeFilesystem) -> None:
        path = Path("/project/.agentrules/settings.toml")
        fs.create_file(path, contents="default_timeout_ms = 1000\n")

        settings = load_settings(
            path, environ={"AGENTRULES_DEFAULT_TIMEOUT_MS": "2500"}
        )

        assert settings.default_timeout_ms == 2500

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(ConfigLoadError, match="Invalid settings"):
            load_settings(environ={"AGENTRULES_DEFAULT_TIMEOUT_MS": "0"})

    def test_unknown_keys_are_ignored(self) -> None:
        settings = load_settings(environ={"AGENTRULES_SOMETHING_ELSE": "x"})

        assert settings == ActivationSettings()


class _Sample(BaseModel):
    name: str
    timeout: int = Field(gt=0)


class TestDescribeValidationError:
    def test_joins_locations_and_messages(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            _Sample.model_validate({"timeout": 0})

        description = describe_validation_error(exc_info.value)

        assert "name: Field required" in description
        assert "timeout: Input should be greater than 0" in description
        assert "; " in description
