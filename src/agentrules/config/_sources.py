# pyright: reportAny=false
"""Configuration source discovery and loading.

A load is all-or-nothing: every source is read, every problem is collected,
and a single LoadError lists them all. Nothing is returned from a load with
any issue.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agentrules.config._hooks_loader import collect_hook_definitions, get_dropin_dir
from agentrules.config._issues import load_error
from agentrules.config._merge import merge_by_id
from agentrules.config._rules_loader import collect_rule_documents

if TYPE_CHECKING:
    from collections.abc import Mapping

    from structlog.typing import FilteringBoundLogger

    from agentrules.config._models import HookDefinition
    from agentrules.config._rules_loader import RuleText
    from agentrules.exceptions import DuplicateIdError
    from agentrules.rules import RuleDocument


@dataclass(frozen=True, slots=True)
class ConfigSources:
    """The sources of one load, each group in precedence order (lowest first).

    Attributes:
        rule_paths: Rule files or directories of ``*.md`` documents.
        rule_texts: In-memory rule documents, loaded after rule_paths.
        hook_paths: Hook files (TOML or JSON) or drop-in directories.
        hook_records: In-memory hook records, loaded after hook_paths.
    """

    rule_paths: tuple[Path, ...] = ()
    rule_texts: tuple[RuleText, ...] = ()
    hook_paths: tuple[Path, ...] = ()
    hook_records: tuple[Mapping[str, Any], ...] = ()  # pyright: ignore[reportExplicitAny]


@dataclass(frozen=True, slots=True)
class LoadedConfig:
    """The validated result of a load.

    Attributes:
        rules: Rule documents with registration orders assigned.
        hooks: Hook definitions with registration orders assigned.
        warnings: Duplicate IDs resolved by last-wins.
    """

    rules: tuple[RuleDocument, ...]
    hooks: tuple[HookDefinition, ...]
    warnings: tuple[DuplicateIdError, ...] = ()


def discover_sources(
    project_root: Path,
    user_dir: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ConfigSources:
    """Assemble the conventional sources that exist on disk.

    Sources (lowest to highest precedence):
        1. User rules (``<user>/.claude/rules``)
        2. Project rules (``<project>/.claude/rules``)
        3. Project hooks file (``<project>/.agentrules/hooks.toml``)
        4. Project drop-in files (``<project>/.agentrules/hooks.d/*.toml``)
        5. Host settings (``<project>/.claude/settings.json``)

    Args:
        project_root: Project root directory.
        user_dir: User home directory (defaults to ``Path.home()``).
        environ: Environment mapping, for AGENTRULES_HOOKS__DROPIN_DIR.

    Returns:
        ConfigSources holding only the locations that exist.
    """
    home = user_dir if user_dir is not None else Path.home()

    rule_candidates = [
        home / ".claude" / "rules",
        project_root / ".claude" / "rules",
    ]
    rule_paths = tuple(path for path in rule_candidates if path.is_dir())

    hook_paths: list[Path] = []
    hooks_file = project_root / ".agentrules" / "hooks.toml"
    if hooks_file.is_file():
        hook_paths.append(hooks_file)
    dropin_dir = get_dropin_dir(project_root, environ)
    if dropin_dir.is_dir():
        hook_paths.append(dropin_dir)
    settings_file = project_root / ".claude" / "settings.json"
    if settings_file.is_file():
        hook_paths.append(settings_file)

    return ConfigSources(rule_paths=rule_paths, hook_paths=tuple(hook_paths))


def _describe_rule(document: RuleDocument) -> str:
    return str(document.source) if document.source is not None else "inline"


def _describe_hook(definition: HookDefinition) -> str:
    if definition.source_file is not None:
        return str(definition.source_file)
    return "inline"


def load_sources(
    sources: ConfigSources,
    *,
    default_timeout_ms: int = 60000,
    logger: FilteringBoundLogger | None = None,
) -> LoadedConfig:
    """Read, validate and merge every source.

    Duplicate IDs are resolved last-wins (keeping the first-seen position)
    and reported as warnings. Registration orders are assigned after merging.

    Args:
        sources: The sources to load.
        default_timeout_ms: Timeout for hook records that omit one.
        logger: Optional logger for diagnostics.

    Returns:
        The loaded configuration.

    Raises:
        LoadError: If any source, document or record is invalid.
    """
    documents, issues = collect_rule_documents(sources.rule_paths, sources.rule_texts)
    definitions, hook_issues = collect_hook_definitions(
        sources.hook_paths,
        sources.hook_records,
        default_timeout_ms=default_timeout_ms,
        logger=logger,
    )
    issues.extend(hook_issues)

    if issues:
        raise load_error(issues)

    merged_rules, rule_warnings = merge_by_id(
        documents, kind="rule", get_id=lambda doc: doc.id, describe=_describe_rule
    )
    merged_hooks, hook_warnings = merge_by_id(
        definitions,
        kind="hook",
        get_id=lambda hook: hook.id,
        describe=_describe_hook,
    )
    warnings = (*rule_warnings, *hook_warnings)

    if logger is not None:
        for warning in warnings:
            logger.warning(
                "duplicate_id",
                kind=warning.kind,
                id=warning.item_id,
                sources=list(warning.sources),
            )

    return LoadedConfig(
        rules=tuple(
            replace(document, registration_order=index)
            for index, document in enumerate(merged_rules)
        ),
        hooks=tuple(
            definition.model_copy(update={"registration_order": index})
            for index, definition in enumerate(merged_hooks)
        ),
        warnings=warnings,
    )
