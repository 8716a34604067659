"""CLI commands for viewing and toggling configuration."""

from __future__ import annotations

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from hooked.cli.common import get_console
from hooked.cli.display import format_flag

app = typer.Typer(
    name="config",
    help="Show configuration and toggle feature flags",
    add_completion=False,
)

console: Console = get_console()

FLAG_NAMES = ("speak", "logging")
FLAG_VALUES = {"on": True, "off": False}


def _load_strict():
    from hooked.config import ConfigError, get_config

    try:
        return get_config(force_reload=True)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("show")
def show_command() -> None:
    """Print the effective configuration."""
    config = _load_strict()
    console.print(f"[bold]Home:[/bold] {config.home}")
    console.print(f"[bold]Config file:[/bold] {config.config_file}"
                  + ("" if config.config_file.exists() else " [dim](not created, using defaults)[/dim]"))
    console.print(Syntax(yaml.safe_dump(config.to_dict(), sort_keys=False), "yaml"))


@app.command("flag")
def flag_command(
    name: str = typer.Argument(..., help="Flag name: speak or logging"),
    value: str = typer.Argument(..., help="on or off"),
) -> None:
    """
    Turn a feature flag on or off.

    Examples:
        hooked config flag speak off
        hooked config flag logging on
    """
    from hooked.config import ConfigError, set_flag

    if name not in FLAG_NAMES:
        console.print(f"[red]Error: Unknown flag '{name}' (expected: {', '.join(FLAG_NAMES)})[/red]")
        raise typer.Exit(1)
    if value.lower() not in FLAG_VALUES:
        console.print(f"[red]Error: Flag value must be 'on' or 'off', got '{value}'[/red]")
        raise typer.Exit(1)

    config = _load_strict()
    enabled = FLAG_VALUES[value.lower()]
    try:
        path = set_flag(config, name, enabled)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"{name}: {format_flag(enabled)} [dim]({path})[/dim]")
