"""Configuration models, source readers and loading."""

from ._hooks_loader import (
    HookRecord,
    build_hook_definition,
    collect_hook_definitions,
    discover_drop_in_files,
    get_dropin_dir,
    read_hook_file,
    settings_hook_records,
)
from ._issues import LoadIssue, load_error
from ._loader import (
    ENV_PREFIX,
    load_settings,
    parse_env_vars,
    parse_frontmatter,
    parse_string_value,
    read_json_file,
    read_toml_file,
)
from ._merge import merge_by_id
from ._models import (
    ActivationSettings,
    HookDefinition,
    LogFormat,
    LogLevel,
    RuleHeader,
)
from ._rules_loader import (
    RuleText,
    collect_rule_documents,
    discover_rule_files,
    load_rule_directory,
    parse_rule_document,
)
from ._sources import ConfigSources, LoadedConfig, discover_sources, load_sources

__all__ = [
    "ENV_PREFIX",
    "ActivationSettings",
    "ConfigSources",
    "HookDefinition",
    "HookRecord",
    "LoadIssue",
    "LoadedConfig",
    "LogFormat",
    "LogLevel",
    "RuleHeader",
    "RuleText",
    "build_hook_definition",
    "collect_hook_definitions",
    "collect_rule_documents",
    "discover_drop_in_files",
    "discover_rule_files",
    "discover_sources",
    "get_dropin_dir",
    "load_error",
    "load_rule_directory",
    "load_settings",
    "load_sources",
    "merge_by_id",
    "parse_env_vars",
    "parse_frontmatter",
    "parse_rule_document",
    "parse_string_value",
    "read_hook_file",
    "read_json_file",
    "read_toml_file",
    "settings_hook_records",
]
