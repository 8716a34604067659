"""Top-level overview commands: status, history and the reminder watcher."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from hooked.cli.common import (
    get_alerts,
    get_console,
    get_events,
    get_pause,
    get_registry,
    load_config_for_cli,
)
from hooked.cli.display import (
    build_alerts_table,
    build_history_table,
    build_pending_panel,
    build_sessions_table,
    format_flag,
)

console: Console = get_console()


def status_command() -> None:
    """Show the pending continuation, active sessions, pause flag, alerts and flags."""
    config = load_config_for_cli()
    registry = get_registry(config)
    pause = get_pause(config)

    console.print(build_pending_panel(registry.get_pending()))

    sessions = registry.list_sessions()
    if sessions:
        console.print(build_sessions_table(sessions))
    else:
        console.print("[dim]No active continuations[/dim]")

    if pause.is_set():
        console.print(f"[yellow]Pause requested[/yellow] at {pause.created_at()}")

    alerts = get_alerts(config).get_all()
    if alerts:
        console.print(build_alerts_table(alerts))
    else:
        console.print("[dim]No pending alerts[/dim]")

    console.print(
        f"Speak: {format_flag(config.flags.speak)}  "
        f"Logging: {format_flag(config.flags.logging)}  "
        f"Alerts: {format_flag(config.alerts.enabled)}"
    )


def history_command(
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Only events for this session"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum number of events"),
) -> None:
    """
    Show recent events, newest first.

    Examples:
        hooked history
        hooked history --session 3f2a9c1e-... --limit 50
    """
    events = get_events(load_config_for_cli())
    if session:
        entries = list(reversed(events.get_session_events(session, limit=limit)))
    else:
        entries = events.get_recent(limit)

    if not entries:
        console.print("[dim]No events recorded[/dim]")
        return
    console.print(build_history_table(entries))


def reminder_command(
    session_id: str = typer.Argument(..., help="Session whose alert to watch"),
) -> None:
    """Run the reminder watcher for one alert (spawned by the notification hook)."""
    from hooked.alerts.watcher import ReminderWatcher
    from hooked.speak import Speaker

    config = load_config_for_cli()
    watcher = ReminderWatcher(
        config=config,
        alerts=get_alerts(config),
        speaker=Speaker(config),
        events=get_events(config),
    )
    watcher.run(session_id)
