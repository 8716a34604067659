"""Prompt-submit hook - the user answered, so any pending alert is resolved."""

from __future__ import annotations

import json
import logging

from hooked.alerts.registry import AlertRegistry

logger = logging.getLogger(__name__)


def on_prompt_submit(alerts: AlertRegistry, session_id: str) -> bool:
    """
    Clear the session's alert.

    Returns:
        True if an alert was cleared. Never raises.
    """
    try:
        cleared = alerts.clear_alert(session_id, reason="user_activity")
    except Exception as e:
        logger.warning("Could not clear alert for %s: %s", session_id, e)
        return False
    if cleared:
        logger.info("Cleared alert for session %s", session_id)
    return cleared


def handle_prompt_submit_payload(raw: str, alerts: AlertRegistry) -> bool:
    """Handle a raw prompt-submit payload; never blocks user input."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return False
    if not isinstance(payload, dict):
        return False

    session_id = payload.get("session_id")
    if not isinstance(session_id, str) or not session_id:
        return False
    return on_prompt_submit(alerts, session_id)
