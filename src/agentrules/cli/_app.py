"""The command-line interface for agentrules."""

from cyclopts import App
from rich.console import Console

from ._hooks import app as hooks_app
from ._rules import app as rules_app
from ._validate import validate

_HELP = "Resolve path-scoped rules and dispatch tool-use hooks."


def register_commands(app: App) -> None:
    app.command(rules_app)
    app.command(hooks_app)
    app.command(validate, name="validate")


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="agentrules",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `agentrules` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
