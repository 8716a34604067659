"""
CLI commands for continuations.

Provides operator commands:
- manual: keep a session working toward an objective until paused
- check: keep a session working until a command exits 0
- off: clear everything (pending, active sessions, pause)
- clear-pending: drop the unclaimed continuation
- pause / resume: request or cancel a graceful stop
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from hooked.cli.common import (
    get_console,
    get_events,
    get_pause,
    get_registry,
    load_config_for_cli,
)
from hooked.cli.display import format_target
from hooked.models import ContinuationMode
from hooked.project import normalize_project_key, path_to_project_key

# Create sub-app for continuation commands
app = typer.Typer(
    name="continue",
    help="Keep agent sessions working (manual objective or check command)",
    add_completion=False,
)

console: Console = get_console()


def _resolve_project_key(project: Optional[str], project_key: Optional[str]) -> Optional[str]:
    if project and project_key:
        console.print("[red]Error: Specify either --project or --project-key, not both[/red]")
        raise typer.Exit(1)
    if project:
        return path_to_project_key(Path(project).expanduser().absolute())
    if project_key:
        return normalize_project_key(project_key)
    return None


def _set_pending(
    mode: ContinuationMode,
    words: list[str],
    session: Optional[str],
    project: Optional[str],
    project_key: Optional[str],
) -> None:
    from hooked.continuation.registry import ContinuationError
    from hooked.state_store import StateStoreError

    target_key = _resolve_project_key(project, project_key)
    config = load_config_for_cli()
    registry = get_registry(config)

    try:
        pending = registry.set_pending(
            mode,
            " ".join(words),
            target_session_id=session,
            target_project_key=target_key,
        )
    except (ContinuationError, StateStoreError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    get_events(config).log(
        "continuation_set",
        session_id=session,
        message=pending.goal,
        data={"mode": mode.value, "target": format_target(pending)},
    )

    label = "Objective" if mode == ContinuationMode.MANUAL else "Check"
    console.print(f"[green]Pending {mode.value} continuation set[/green]")
    console.print(f"{label}: {pending.goal}")
    console.print(f"Target: {format_target(pending)}")
    console.print("[dim]Bound to the next matching session that tries to stop.[/dim]")


@app.command("manual")
def manual_command(
    objective: list[str] = typer.Argument(..., help="Objective to keep working on"),
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Only this session may claim it"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only sessions in this project directory"),
    project_key: Optional[str] = typer.Option(None, "--project-key", help="Only sessions with this project key"),
) -> None:
    """
    Block every stop attempt with the objective until paused.

    Examples:
        hooked continue manual "finish the migration"
        hooked continue manual refactor auth --project ~/dev/api
    """
    _set_pending(ContinuationMode.MANUAL, objective, session, project, project_key)


@app.command("check")
def check_command(
    command: list[str] = typer.Argument(..., help="Shell command; exit 0 means done"),
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Only this session may claim it"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only sessions in this project directory"),
    project_key: Optional[str] = typer.Option(None, "--project-key", help="Only sessions with this project key"),
) -> None:
    """
    Block stop attempts until a command succeeds.

    Use -- before commands that carry their own flags.

    Examples:
        hooked continue check pnpm test
        hooked continue check -- pytest -x
    """
    _set_pending(ContinuationMode.CHECK, command, session, project, project_key)


@app.command("off")
def off_command() -> None:
    """Clear the pending continuation, every active session and the pause flag."""
    from hooked.speak import Speaker
    from hooked.state_store import StateStoreError

    config = load_config_for_cli()
    registry = get_registry(config)
    try:
        had_pending = registry.clear_pending()
        cleared = registry.clear_all_sessions()
        get_pause(config).clear()
    except StateStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    message = Speaker(config).announce("missionComplete")
    get_events(config).log(
        "continuation_off",
        message=message,
        data={"pending_cleared": had_pending, "sessions_cleared": cleared},
    )
    console.print(f"[green]Continuations off[/green] ({cleared} session(s) cleared)")


@app.command("clear-pending")
def clear_pending_command() -> None:
    """Drop the unclaimed continuation (active sessions are untouched)."""
    from hooked.state_store import StateStoreError

    registry = get_registry(load_config_for_cli())
    try:
        removed = registry.clear_pending()
    except StateStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if removed:
        console.print("[green]Pending continuation cleared[/green]")
    else:
        console.print("[dim]No pending continuation[/dim]")


@app.command("pause")
def pause_command() -> None:
    """Ask the next stopping session to end its continuation."""
    from hooked.state_store import StateStoreError

    try:
        created_at = get_pause(load_config_for_cli()).set()
    except StateStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[yellow]Pause requested[/yellow] at {created_at}")


@app.command("resume")
def resume_command() -> None:
    """Cancel a pause request that no session has consumed yet."""
    from hooked.state_store import StateStoreError

    try:
        removed = get_pause(load_config_for_cli()).clear()
    except StateStoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if removed:
        console.print("[green]Pause request cancelled[/green]")
    else:
        console.print("[dim]No pause requested[/dim]")
