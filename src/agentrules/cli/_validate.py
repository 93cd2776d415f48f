# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, A002, T201
"""Validate command."""

from agentrules.exceptions import ConfigLoadError, LoadError
from agentrules.service import ActivationService

from ._shared import (
    ExitCode,
    FormatOption,
    HooksFileOption,
    OutputFormat,
    ProjectRootOption,
    RulesDirOption,
    SourceOptions,
    UserDirOption,
    exit_with_success,
    format_json,
)


def validate(
    *,
    project_root: ProjectRootOption = None,
    rules_dir: RulesDirOption = None,
    hooks_file: HooksFileOption = None,
    user_dir: UserDirOption = None,
    format: FormatOption = OutputFormat.TEXT,
) -> None:
    """Validate rule documents and hook configuration

    Loads every source exactly as the service would, checking:
    - TOML, JSON and YAML frontmatter syntax
    - Hook record and rule header schemas
    - Glob syntax of rule paths and tool matchers
    - Hook executables, when validate_commands is enabled

    Duplicate IDs are reported as warnings and do not fail validation.

    Exit codes:
        0: Validation passed
        2: Validation failed
    """
    options = SourceOptions(
        project_root, rules_dirs=rules_dir, hooks_files=hooks_file, user_dir=user_dir
    )

    issues: list[str] = []
    warnings: list[str] = []
    rules = hooks = 0

    try:
        settings = options.settings()
    except ConfigLoadError as e:
        issues.append(f"settings: {e}")
    else:
        with ActivationService(
            settings, logger=options.logger(settings, "validate")
        ) as service:
            try:
                report = service.load(options.sources())
            except LoadError as e:
                issues.extend(e.issues)
            else:
                rules = report.rules
                hooks = report.hooks
                warnings.extend(str(warning) for warning in report.warnings)

    valid = not issues

    if format == OutputFormat.JSON:
        print(
            format_json(
                {
                    "valid": valid,
                    "rules": rules,
                    "hooks": hooks,
                    "issues": issues,
                    "warnings": warnings,
                }
            )
        )
    else:
        for warning in warnings:
            print(f"WARNING: {warning}")
        if valid:
            print(f"Validation OK: {rules} rule(s), {hooks} hook(s)")
        else:
            print(f"Validation FAILED ({len(issues)} issue(s)):")
            for issue in issues:
                print(f"  - {issue}")

    if not valid:
        raise SystemExit(ExitCode.VALIDATION_ERROR)
    exit_with_success()
