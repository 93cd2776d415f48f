# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, A002, T201
"""Rules subcommands."""

from cyclopts import App

from agentrules.rules import RuleDocument

from ._shared import (
    FormatOption,
    HooksFileOption,
    OutputFormat,
    ProjectRootOption,
    RulesDirOption,
    SourceOptions,
    UserDirOption,
    exit_with_success,
    format_json,
    format_table,
    open_service,
)

app = App(name="rules", help="Resolve and inspect rule documents", help_on_error=True)


def document_to_dict(document: RuleDocument) -> dict[str, object]:
    """Convert a rule document to a JSON-serializable dict."""
    return {
        "id": document.id,
        "scope": document.scope.value,
        "patterns": list(document.patterns),
        "registration_order": document.registration_order,
        "source": str(document.source) if document.source is not None else None,
        "payload": document.payload,
    }


@app.command(name="resolve")
def _resolve(
    path: str,
    *,
    project_root: ProjectRootOption = None,
    rules_dir: RulesDirOption = None,
    hooks_file: HooksFileOption = None,
    user_dir: UserDirOption = None,
    format: FormatOption = OutputFormat.TEXT,
) -> None:
    """Print the rules that apply to a path

    Common rules come first, then path-scoped rules from most to least
    specific.

    Args:
        path: Edited file path, relative to the project root, using ``/``.

    Exit codes:
        0: Success
        1: Failed to load configuration
    """
    options = SourceOptions(
        project_root, rules_dirs=rules_dir, hooks_files=hooks_file, user_dir=user_dir
    )
    service, _ = open_service(options, "rules resolve")
    with service:
        documents = service.resolve_documents(path)

    if format == OutputFormat.JSON:
        print(
            format_json(
                {"path": path, "rules": [document_to_dict(d) for d in documents]}
            )
        )
    else:
        print("\n\n".join(document.payload for document in documents))

    exit_with_success()


@app.command(name="list")
def _list(
    *,
    project_root: ProjectRootOption = None,
    rules_dir: RulesDirOption = None,
    hooks_file: HooksFileOption = None,
    user_dir: UserDirOption = None,
    format: FormatOption = OutputFormat.TEXT,
) -> None:
    """List loaded rule documents

    Exit codes:
        0: Success
        1: Failed to load configuration
    """
    options = SourceOptions(
        project_root, rules_dirs=rules_dir, hooks_files=hooks_file, user_dir=user_dir
    )
    service, _ = open_service(options, "rules list")
    with service:
        documents = service.rules

    if format == OutputFormat.JSON:
        print(format_json({"rules": [document_to_dict(d) for d in documents]}))
    elif not documents:
        print("No rule documents configured.")
    else:
        rows = [
            [
                document.id,
                document.scope.value,
                ", ".join(document.patterns) or "-",
                str(document.source) if document.source is not None else "inline",
            ]
            for document in documents
        ]
        print(format_table(["ID", "Scope", "Patterns", "Source"], rows).rstrip())

    exit_with_success()
