# pyright: reportAny=false, reportUnknownArgumentType=false
"""Tests for hook definition loading."""

from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import orjson
import pytest
from pydantic import ValidationError

from agentrules.config import (
    HookRecord,
    build_hook_definition,
    collect_hook_definitions,
    discover_drop_in_files,
    get_dropin_dir,
    read_hook_file,
    settings_hook_records,
)
from agentrules.enums import HookEvent
from agentrules.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem

HOOKS_TOML = """
[[hooks]]
id = "fmt"
event = "PreToolUse"
toolMatcher = ["Edit", "Write"]
command = "ruff format"
blocking = true
timeoutMs = 5000

[[hooks]]
event = "PostToolUse"
command = ["notify-send", "done"]
"""


def settings_json(hooks: dict[str, object]) -> str:
    return orjson.dumps({"permissions": {}, "hooks": hooks}).decode()


class TestDiscoverDropInFiles:
    def test_sorts_lexicographically(self, fs: FakeFilesystem) -> None:
        directory = Path("/project/.agentrules/hooks.d")
        fs.create_file(directory / "zzz.toml")
        fs.create_file(directory / "aaa.toml")
        fs.create_file(directory / "mmm.toml")

        result = discover_drop_in_files(directory)

        assert [p.name for p in result] == ["aaa.toml", "mmm.toml", "zzz.toml"]

    def test_ignores_non_toml_files(self, fs: FakeFilesystem) -> None:
        directory = Path("/project/.agentrules/hooks.d")
        fs.create_file(directory / "hooks.toml")
        fs.create_file(directory / "readme.txt")
        fs.create_file(directory / "hooks.json")

        assert [p.name for p in discover_drop_in_files(directory)] == ["hooks.toml"]

    def test_returns_empty_list_if_directory_missing(self, fs: FakeFilesystem) -> None:
        assert discover_drop_in_files(Path("/nonexistent")) == []


class TestGetDropinDir:
    def test_default(self) -> None:
        assert get_dropin_dir(Path("/project"), {}) == Path(
            "/project/.agentrules/hooks.d"
        )

    def test_absolute_override(self) -> None:
        environ = {"AGENTRULES_HOOKS__DROPIN_DIR": "/etc/agentrules/hooks"}

        assert get_dropin_dir(Path("/project"), environ) == (
            Path("/etc/agentrules/hooks")
        )

    def test_relative_override_is_under_project(self) -> None:
        environ = {"AGENTRULES_HOOKS__DROPIN_DIR": "config/hooks"}

        assert get_dropin_dir(Path("/project"), environ) == (
            Path("/project/config/hooks")
        )

    def test_blank_override_is_ignored(self) -> None:
        environ = {"AGENTRULES_HOOKS__DROPIN_DIR": "  "}

        assert get_dropin_dir(Path("/project"), environ) == Path(
            "/project/.agentrules/hooks.d"
        )


class TestSettingsHookRecords:
    def test_converts_host_layout(self) -> None:
        section = {
            "PreToolUse": [
                {
                    "matcher": "Edit|Write",
                    "hooks": [{"type": "command", "command": "lint.sh", "timeout": 30}],
                }
            ]
        }

        records = settings_hook_records(section)

        assert records == [
            {
                "event": "PreToolUse",
                "tool_matcher": ["Edit", "Write"],
                "command": "lint.sh",
                "shell": "/bin/sh",
                "blocking": False,
                "timeout_ms": 30000,
            }
        ]

    @pytest.mark.parametrize("matcher", [None, "", "  "])
    def test_empty_matcher_matches_every_tool(self, matcher: str | None) -> None:
        section = {
            "PostToolUse": [
                {"matcher": matcher, "hooks": [{"type": "command", "command": "x"}]}
            ]
        }

        records = settings_hook_records(section)

        assert records[0]["tool_matcher"] == ["*"]

    def test_fractional_timeout_seconds(self) -> None:
        section = {
            "PreToolUse": [
                {"hooks": [{"type": "command", "command": "x", "timeout": 0.5}]}
            ]
        }

        assert settings_hook_records(section)[0]["timeout_ms"] == 500

    def test_keeps_explicit_id_and_blocking(self) -> None:
        section = {
            "PreToolUse": [
                {
                    "matcher": "Bash",
                    "blocking": True,
                    "hooks": [{"type": "command", "command": "x", "id": "guard"}],
                }
            ]
        }

        record = settings_hook_records(section)[0]

        assert record["id"] == "guard"
        assert record["blocking"] is True

    def test_skips_unknown_events(self, mock_logger: MagicMock) -> None:
        section = {
            "SessionStart": [{"hooks": [{"type": "command", "command": "x"}]}],
            "PreToolUse": [{"hooks": [{"type": "command", "command": "y"}]}],
        }

        records = settings_hook_records(section, logger=mock_logger)

        assert [record["command"] for record in records] == ["y"]
        mock_logger.debug.assert_any_call(
            "settings_event_skipped", event="SessionStart"
        )

    def test_skips_non_command_hooks(self) -> None:
        section = {
            "PreToolUse": [
                {
                    "hooks": [
                        {"type": "prompt", "prompt": "Check this"},
                        {"type": "command", "command": "y"},
                    ]
                }
            ]
        }

        assert [r["command"] for r in settings_hook_records(section)] == ["y"]

    def test_event_entries_must_be_list(self) -> None:
        with pytest.raises(ConfigLoadError, match="must be a list"):
            settings_hook_records({"PreToolUse": {"matcher": "x"}})

    def test_entry_must_be_object(self) -> None:
        with pytest.raises(ConfigLoadError, match="must be an object"):
            settings_hook_records({"PreToolUse": ["x"]})


class TestReadHookFile:
    def test_reads_toml_hooks(self, fs: FakeFilesystem) -> None:
        path = Path("/project/.agentrules/hooks.toml")
        fs.create_file(path, contents=HOOKS_TOML)

        records = read_hook_file(path)

        assert len(records) == 2
        assert records[0].data["id"] == "fmt"
        assert records[1].label == "hooks.toml#1"
        assert records[1].source_file == path

    def test_reads_json_hook_list(self, fs: FakeFilesystem) -> None:
        path = Path("/project/hooks.json")
        fs.create_file(
            path,
            contents='{"hooks": [{"event": "PreToolUse", "command": "true"}]}',
        )

        records = read_hook_file(path)

        assert records[0].data == {"event": "PreToolUse", "command": "true"}
        assert records[0].label == "hooks.json#0"

    def test_reads_settings_layout(self, fs: FakeFilesystem) -> None:
        path = Path("/project/.claude/settings.json")
        fs.create_file(
            path,
            contents=settings_json(
                {
                    "PreToolUse": [
                        {
                            "matcher": "Bash",
                            "hooks": [{"type": "command", "command": "guard.sh"}],
                        }
                    ]
                }
            ),
        )

        records = read_hook_file(path)

        assert records[0].data["command"] == "guard.sh"
        assert records[0].label == "settings.json#0"

    def test_file_without_hooks_has_no_records(self, fs: FakeFilesystem) -> None:
        path = Path("/project/hooks.toml")
        fs.create_file(path, contents='title = "nothing"\n')

        assert read_hook_file(path) == []

    def test_hooks_of_wrong_type_raise(self, fs: FakeFilesystem) -> None:
        path = Path("/project/hooks.toml")
        fs.create_file(path, contents='hooks = "nope"\n')

        with pytest.raises(ConfigLoadError, match="must be a list or an object"):
            read_hook_file(path)

    def test_non_table_entry_raises(self, fs: FakeFilesystem) -> None:
        path = Path("/project/hooks.json")
        fs.create_file(path, contents='{"hooks": ["echo"]}')

        with pytest.raises(ConfigLoadError, match="is not a table"):
            read_hook_file(path)

    def test_bad_settings_layout_names_file(self, fs: FakeFilesystem) -> None:
        path = Path("/project/.claude/settings.json")
        fs.create_file(path, contents=settings_json({"PreToolUse": "x"}))

        with pytest.raises(ConfigLoadError) as exc_info:
            read_hook_file(path)

        assert exc_info.value.path == path
        assert str(path) in str(exc_info.value)


class TestBuildHookDefinition:
    def test_generates_id_from_label(self) -> None:
        record = HookRecord(
            data={"event": "PreToolUse", "command": "x"},
            source_name="hooks.toml",
            index=3,
        )

        hook = build_hook_definition(record, default_timeout_ms=1000)

        assert hook.id == "hooks.toml#3"

    def test_applies_default_timeout(self) -> None:
        record = HookRecord(
            data={"event": "PreToolUse", "command": "x"}, source_name="s", index=0
        )

        hook = build_hook_definition(record, default_timeout_ms=1234)

        assert hook.timeout_ms == 1234

    @pytest.mark.parametrize("key", ["timeoutMs", "timeout_ms"])
    def test_keeps_explicit_timeout(self, key: str) -> None:
        record = HookRecord(
            data={"event": "PreToolUse", "command": "x", key: 50},
            source_name="s",
            index=0,
        )

        hook = build_hook_definition(record, default_timeout_ms=1234)

        assert hook.timeout_ms == 50

    def test_sets_source_file(self) -> None:
        record = HookRecord(
            data={"event": "PreToolUse", "command": "x"},
            source_name="hooks.toml",
            index=0,
            source_file=Path("/p/hooks.toml"),
        )

        hook = build_hook_definition(record, default_timeout_ms=1000)

        assert hook.source_file == Path("/p/hooks.toml")

    def test_invalid_record_raises_validation_error(self) -> None:
        record = HookRecord(data={"event": "PreToolUse"}, source_name="s", index=0)

        with pytest.raises(ValidationError):
            build_hook_definition(record, default_timeout_ms=1000)


class TestCollectHookDefinitions:
    def test_loads_files_then_drop_ins_then_records(self, fs: FakeFilesystem) -> None:
        fs.create_file("/project/.agentrules/hooks.toml", contents=HOOKS_TOML)
        fs.create_file(
            "/project/.agentrules/hooks.d/10-extra.toml",
            contents='[[hooks]]\nid = "extra"\nevent = "PreToolUse"\ncommand = "x"\n',
        )

        hooks, issues = collect_hook_definitions(
            [
                Path("/project/.agentrules/hooks.toml"),
                Path("/project/.agentrules/hooks.d"),
            ],
            [{"id": "inline-hook", "event": "PostToolUse", "command": "y"}],
        )

        assert issues == []
        assert [hook.id for hook in hooks] == [
            "fmt",
            "hooks.toml#1",
            "extra",
            "inline-hook",
        ]
        assert hooks[0].event == HookEvent.PRE_TOOL_USE
        assert hooks[0].blocking is True
        assert hooks[0].timeout_ms == 5000
        assert hooks[1].timeout_ms == 60000
        assert hooks[3].source_file is None

    def test_unnamed_inline_records_get_inline_ids(self) -> None:
        hooks, _ = collect_hook_definitions(
            records=[
                {"event": "PreToolUse", "command": "a"},
                {"event": "PreToolUse", "command": "b"},
            ]
        )

        assert [hook.id for hook in hooks] == ["inline#0", "inline#1"]

    def test_default_timeout_is_configurable(self) -> None:
        hooks, _ = collect_hook_definitions(
            records=[{"event": "PreToolUse", "command": "a"}], default_timeout_ms=42
        )

        assert hooks[0].timeout_ms == 42

    def test_collects_every_problem(self, fs: FakeFilesystem) -> None:
        fs.create_file("/project/broken.toml", contents="[[hooks]\n")
        fs.create_file(
            "/project/invalid.toml",
            contents='[[hooks]]\nid = "no-command"\nevent = "PreToolUse"\n',
        )

        hooks, issues = collect_hook_definitions(
            [
                Path("/project/broken.toml"),
                Path("/project/invalid.toml"),
                Path("/gone"),
            ],
            [{"event": "Nope", "command": "x"}],
        )

        assert hooks == []
        messages = [str(issue) for issue in issues]
        assert len(messages) == 4
        assert messages[0].startswith("hook source /project/broken.toml: ")
        assert isinstance(issues[0].error, ConfigLoadError)
        assert messages[1] == "hook source /gone: not found"
        assert messages[2].startswith("hook 'no-command': ")
        assert "command" in messages[2]
        assert messages[3].startswith("hook 'inline#0': ")
        assert isinstance(issues[3].error, ValidationError)
