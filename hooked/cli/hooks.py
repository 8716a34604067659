"""
Hook entry points invoked by the agent.

Each command reads the hook payload (JSON) from stdin. The stop hook writes
exactly one decision line to stdout; diagnostics go to stderr. Every hook
exits 0, whatever happens.
"""

from __future__ import annotations

import logging

import typer

from hooked.cli.common import load_config_for_cli
from hooked.models import StopDecision

app = typer.Typer(
    name="hook",
    help="Agent hook entry points (read the payload on stdin)",
    add_completion=False,
)

logger = logging.getLogger(__name__)


def _read_stdin() -> str:
    try:
        return typer.get_text_stream("stdin").read()
    except (OSError, ValueError) as e:
        logger.warning("Failed to read hook payload: %s", e)
        return ""


@app.command("stop")
def stop_command() -> None:
    """Decide whether the agent may stop; prints {"decision", "reason"}."""
    from hooked.hooks.stop import REASON_HOOK_ERROR, build_stop_evaluator, handle_stop_payload

    raw = _read_stdin()
    try:
        decision = handle_stop_payload(raw, build_stop_evaluator(load_config_for_cli()))
    except Exception:
        logger.exception("Stop hook failed")
        decision = StopDecision.approve(REASON_HOOK_ERROR)
    typer.echo(decision.to_json())


@app.command("notification")
def notification_command() -> None:
    """Announce a notification and raise an alert when it needs the user."""
    from hooked.hooks.notification import build_notification_handler, handle_notification_payload

    raw = _read_stdin()
    try:
        handle_notification_payload(raw, build_notification_handler(load_config_for_cli()))
    except Exception:
        logger.exception("Notification hook failed")


@app.command("prompt-submit")
def prompt_submit_command() -> None:
    """Clear the session's alert: the user has responded."""
    from hooked.cli.common import get_alerts
    from hooked.hooks.prompt_submit import handle_prompt_submit_payload

    raw = _read_stdin()
    try:
        handle_prompt_submit_payload(raw, get_alerts(load_config_for_cli()))
    except Exception:
        logger.exception("Prompt-submit hook failed")
