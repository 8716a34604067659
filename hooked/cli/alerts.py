"""CLI commands for attention alerts."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from hooked.cli.common import get_alerts, get_console, load_config_for_cli
from hooked.cli.display import build_alerts_table

app = typer.Typer(
    name="alerts",
    help="Sessions waiting on user attention",
    add_completion=False,
)

console: Console = get_console()


@app.command("list")
def list_command() -> None:
    """Show pending alerts."""
    alerts = get_alerts(load_config_for_cli()).get_all()
    if not alerts:
        console.print("[dim]No pending alerts[/dim]")
        return
    console.print(build_alerts_table(alerts))


@app.command("clear")
def clear_command(
    session: Optional[str] = typer.Argument(None, help="Session whose alert to clear"),
    all_alerts: bool = typer.Option(False, "--all", help="Clear every alert and stop all watchers"),
) -> None:
    """
    Clear one alert, or all of them.

    Examples:
        hooked alerts clear 3f2a9c1e-...
        hooked alerts clear --all
    """
    from hooked.continuation.registry import ContinuationError
    from hooked.state_store import StateStoreError

    if session and all_alerts:
        console.print("[red]Error: Specify either SESSION or --all, not both[/red]")
        raise typer.Exit(1)
    if not session and not all_alerts:
        console.print("[red]Error: Must specify SESSION or --all[/red]")
        raise typer.Exit(1)

    registry = get_alerts(load_config_for_cli())
    try:
        if all_alerts:
            killed = registry.clear_all()
            console.print(f"[green]All alerts cleared[/green] ({len(killed)} watcher(s) stopped)")
            return
        removed = registry.clear_alert(session, reason="manual")
    except (ContinuationError, StateStoreError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if removed:
        console.print(f"[green]Alert cleared for {session}[/green]")
    else:
        console.print(f"[dim]No alert for {session}[/dim]")
