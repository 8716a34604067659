"""Decide which agent notifications mean "a human is needed"."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from hooked.models import AlertType

# notification_type values sent by the agent
_TYPE_MAP = {
    "permission_prompt": AlertType.PERMISSION,
    "permission": AlertType.PERMISSION,
    "idle_prompt": AlertType.INPUT,
    "input": AlertType.INPUT,
    "elicitation_dialog": AlertType.INPUT,
    "error": AlertType.ERROR,
}

_INPUT_PHRASES = ("waiting for your input", "waiting for input", "idle")
_ERROR_PHRASES = ("error", "failed", "failure")


def classify_notification(payload: Mapping[str, Any]) -> Optional[AlertType]:
    """
    Classify a notification payload.

    Uses ``notification_type`` when the agent sends one, otherwise falls back
    to keywords in ``message``.

    Returns:
        The AlertType, or None for informational notifications.
    """
    notification_type = payload.get("notification_type")
    if isinstance(notification_type, str) and notification_type:
        alert_type = _TYPE_MAP.get(notification_type.strip().lower())
        if alert_type is not None:
            return alert_type

    message = payload.get("message")
    if not isinstance(message, str):
        return None
    text = message.lower()

    if "permission" in text:
        return AlertType.PERMISSION
    if any(phrase in text for phrase in _INPUT_PHRASES):
        return AlertType.INPUT
    if any(phrase in text for phrase in _ERROR_PHRASES):
        return AlertType.ERROR
    return None
