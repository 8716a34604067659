"""Display helpers and formatters for the CLI.

Contains Rich formatting utilities for continuations, alerts and the event history.
This module should NOT import from the command modules to avoid circular imports.
"""
from __future__ import annotations

from typing import Any, Optional

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hooked.models import AlertType, ContinuationMode, PendingAlert, PendingContinuation, SessionContinuation

# Mode display names and colors
MODE_DISPLAY: dict[ContinuationMode, tuple[str, str]] = {
    ContinuationMode.MANUAL: ("Manual", "cyan"),
    ContinuationMode.CHECK: ("Check", "blue"),
}

ALERT_DISPLAY: dict[AlertType, tuple[str, str]] = {
    AlertType.PERMISSION: ("Permission", "yellow bold"),
    AlertType.INPUT: ("Input", "yellow"),
    AlertType.ERROR: ("Error", "red bold"),
}

EVENT_STYLES: dict[str, str] = {
    "claimed": "cyan",
    "blocked": "yellow",
    "completed": "green",
    "paused": "magenta",
    "alert_set": "yellow bold",
    "alert_cleared": "green",
    "reminder": "yellow",
    "hook_error": "red bold",
}


def format_mode(mode: ContinuationMode) -> Text:
    """Format a continuation mode with color."""
    name, style = MODE_DISPLAY.get(mode, (mode.value, "white"))
    return Text(name, style=style)


def format_alert_type(alert_type: AlertType) -> Text:
    name, style = ALERT_DISPLAY.get(alert_type, (alert_type.value, "white"))
    return Text(name, style=style)


def format_target(pending: PendingContinuation) -> str:
    if pending.target_session_id:
        return f"session {pending.target_session_id}"
    if pending.target_project_key:
        return f"project {pending.target_project_key}"
    return "any session"


def short_id(session_id: Optional[str], length: int = 8) -> str:
    if not session_id:
        return "-"
    return session_id[:length]


def build_pending_panel(pending: Optional[PendingContinuation]) -> Panel:
    """Panel describing the unclaimed continuation."""
    if pending is None:
        return Panel("[dim]No pending continuation[/dim]", title="Pending", border_style="dim")
    body = Text()
    body.append_text(format_mode(pending.mode))
    body.append(f"  {pending.goal}\n")
    body.append(f"Target: {format_target(pending)}\n", style="dim")
    body.append(f"Created: {pending.created_at}", style="dim")
    return Panel(body, title="Pending", border_style="cyan")


def build_sessions_table(sessions: list[SessionContinuation]) -> Table:
    """Table of active session continuations."""
    table = Table(title="Active Continuations")
    table.add_column("Session", style="cyan")
    table.add_column("Mode")
    table.add_column("Goal")
    table.add_column("Round", justify="right")
    table.add_column("Claimed", style="dim")

    for state in sessions:
        table.add_row(
            short_id(state.session_id),
            format_mode(state.mode),
            state.goal,
            str(state.iteration) if state.mode == ContinuationMode.MANUAL else "-",
            state.claimed_at,
        )
    return table


def build_alerts_table(alerts: list[PendingAlert]) -> Table:
    """Table of sessions waiting on the user."""
    table = Table(title="Pending Alerts")
    table.add_column("Session", style="cyan")
    table.add_column("Project")
    table.add_column("Type")
    table.add_column("Age", justify="right")
    table.add_column("Reminders", justify="right")
    table.add_column("Watcher", style="dim")
    table.add_column("Message")

    for alert in alerts:
        table.add_row(
            short_id(alert.session_id),
            alert.project_label,
            format_alert_type(alert.alert_type),
            f"{alert.age_minutes()}m",
            str(alert.reminder_count),
            str(alert.watcher_pid) if alert.watcher_pid else "-",
            alert.message,
        )
    return table


def build_history_table(events: list[dict[str, Any]]) -> Table:
    """Table of event history entries."""
    table = Table(title="Event History")
    table.add_column("Time", style="dim")
    table.add_column("Event")
    table.add_column("Session", style="cyan")
    table.add_column("Project")
    table.add_column("Message")

    for entry in events:
        event = str(entry.get("event", ""))
        table.add_row(
            str(entry.get("ts", ""))[:19].replace("T", " "),
            Text(event, style=EVENT_STYLES.get(event, "white")),
            short_id(entry.get("session_id")),
            entry.get("project") or "-",
            entry.get("message") or "",
        )
    return table


def format_flag(enabled: bool) -> str:
    return "[green]on[/green]" if enabled else "[dim]off[/dim]"
