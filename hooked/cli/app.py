"""Main Typer app definition and routing.

This is the canonical entry point for the CLI. The app, callback, and
sub-app registrations are all defined here.
"""
from __future__ import annotations

import typer

from hooked import __version__
from hooked.cli.common import configure_logging, get_console, get_err_console, load_config_for_cli
from hooked.config import HookedConfig, get_home_dir

# Create Typer app
app = typer.Typer(
    name="hooked",
    help="Keep agent sessions working and get their attention back to you",
    add_completion=False,
)

# Rich console for output - use singleton from common module
console = get_console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"hooked version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    hooked - continuation loops and attention alerts for agent sessions.

    State lives in $HOOKED_HOME (default ~/.hooked).
    """
    # Hooks must reach their own fail-open handling, so setup never aborts a command
    try:
        config = load_config_for_cli()
    except Exception:
        config = HookedConfig(home=str(get_home_dir()))
    try:
        configure_logging(config)
    except Exception as e:
        get_err_console().print(f"[yellow]Warning: logging setup failed: {e}[/yellow]")

    # If no subcommand and no --help, show help
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# =========================================================================
# Sub-App Registration
# =========================================================================

# Import and register continuation commands
from hooked.cli.continuation import app as continuation_app  # noqa: E402

app.add_typer(continuation_app, name="continue")

# Import and register alert commands
from hooked.cli.alerts import app as alerts_app  # noqa: E402

app.add_typer(alerts_app, name="alerts")

# Import and register config commands
from hooked.cli.config_commands import app as config_app  # noqa: E402

app.add_typer(config_app, name="config")

# Import and register hook entry points
from hooked.cli.hooks import app as hooks_app  # noqa: E402

app.add_typer(hooks_app, name="hook")

# Top-level commands
from hooked.cli.status import history_command, reminder_command, status_command  # noqa: E402

app.command("status")(status_command)
app.command("history")(history_command)
app.command("reminder", hidden=True)(reminder_command)


# =========================================================================
# Entry Point
# =========================================================================


def cli_main() -> None:
    """Entry point for the CLI."""
    app()


__all__ = ["app", "cli_main"]
