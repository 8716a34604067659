"""
Notification hook - announce agent notifications and raise attention alerts.

Every notification is spoken and logged. Notifications that need a human
(permission requests, waiting for input, errors) also create or refresh an
alert and make sure a reminder watcher is running for it.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from hooked.alerts.classifier import classify_notification
from hooked.alerts.registry import AlertRegistry
from hooked.alerts.watcher import is_process_alive, spawn_watcher
from hooked.config import HookedConfig
from hooked.event_logger import EventLogger
from hooked.models import AlertType, PendingAlert
from hooked.project import project_label_from_payload
from hooked.speak import Speaker
from hooked.state_store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Notification received"

WatcherSpawner = Callable[[HookedConfig, str], int]


class NotificationHandler:
    """Turns agent notifications into speech, events and alerts."""

    def __init__(
        self,
        config: HookedConfig,
        alerts: AlertRegistry,
        speaker: Speaker,
        events: EventLogger,
        spawner: WatcherSpawner = spawn_watcher,
        is_alive: Callable[[Optional[int]], bool] = is_process_alive,
    ) -> None:
        self.config = config
        self.alerts = alerts
        self.speaker = speaker
        self.events = events
        self._spawner = spawner
        self._is_alive = is_alive

    def on_notification(
        self,
        session_id: Optional[str],
        project_label: str,
        alert_type: Optional[AlertType],
        message: str,
        cwd: Optional[str] = None,
    ) -> Optional[PendingAlert]:
        """
        Handle one notification.

        Args:
            session_id: Session that raised it (alerts need one).
            project_label: Readable project name.
            alert_type: Classification, or None for informational notifications.
            message: The agent's notification text.
            cwd: Project directory, if known.

        Returns:
            The alert that was set, or None.

        Raises:
            StateStoreError: If the alert cannot be persisted.
        """
        spoken = f"In {project_label}, {message}"
        self.speaker.speak(spoken)
        self.events.log(
            "notification",
            session_id=session_id,
            project=project_label,
            message=message,
            data={"type": alert_type.value if alert_type else None},
        )

        if alert_type is None or not session_id or not self.config.alerts.enabled:
            return None

        alert = self.alerts.set_alert(session_id, project_label, alert_type, message, cwd=cwd)
        self._ensure_watcher(alert)
        return alert

    def _ensure_watcher(self, alert: PendingAlert) -> None:
        try:
            pid = self.alerts.ensure_watcher(
                alert.session_id,
                self._is_alive,
                lambda: self._spawner(self.config, alert.session_id),
            )
        except OSError as e:
            logger.warning("Could not start reminder watcher for %s: %s", alert.session_id, e)
            return

        if pid is None:
            logger.debug("Watcher already running for %s", alert.session_id)
            return

        alert.watcher_pid = pid
        self.events.log(
            "watcher_started",
            session_id=alert.session_id,
            project=alert.project_label,
            message=f"Reminder watcher {pid} started",
            data={"pid": pid},
        )


def build_notification_handler(config: HookedConfig) -> NotificationHandler:
    """Wire a NotificationHandler from configuration."""
    store = StateStore(config)
    events = EventLogger(config)
    return NotificationHandler(
        config=config,
        alerts=AlertRegistry(store, events=events),
        speaker=Speaker(config),
        events=events,
    )


def _clean_message(message: object) -> str:
    if not isinstance(message, str) or not message.strip():
        return DEFAULT_MESSAGE
    return message.replace("Claude Code", "Claude").strip()


def handle_notification_payload(raw: str, handler: NotificationHandler) -> Optional[PendingAlert]:
    """
    Handle a raw notification hook payload.

    Returns:
        The alert that was set, or None. Never raises.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to parse notification payload: %s", e)
        return None
    if not isinstance(payload, dict):
        return None

    session_id = payload.get("session_id")
    if not isinstance(session_id, str) or not session_id:
        session_id = None
    cwd = payload.get("cwd") if isinstance(payload.get("cwd"), str) else None

    try:
        return handler.on_notification(
            session_id,
            project_label_from_payload(payload),
            classify_notification(payload),
            _clean_message(payload.get("message")),
            cwd=cwd,
        )
    except Exception as e:
        logger.exception("Notification hook failed")
        try:
            handler.events.log(
                "hook_error",
                session_id=session_id,
                message=str(e),
                data={"hook": "notification", "error_type": type(e).__name__},
            )
        except Exception:
            logger.debug("Could not record hook_error event", exc_info=True)
        return None
