"""
Reminder watcher - re-announces an alert until the user responds.

Runs as its own detached process (``python -m hooked reminder <session_id>``),
started by the notification hook. Each cycle it sleeps, re-reads the alert
and either exits (alert cleared or reminder budget spent) or speaks a
reminder, escalating once the alert is old enough.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import time
from datetime import datetime
from typing import Callable, Optional

from hooked.alerts.registry import AlertRegistry
from hooked.config import HOME_ENV_VAR, HookedConfig
from hooked.event_logger import EventLogger
from hooked.models import PendingAlert, utc_now
from hooked.speak import Speaker

logger = logging.getLogger(__name__)

ESCALATION_MINUTES_SHOWN = 10


class ReminderWatcher:
    """
    Reminder loop for one alert.

    Attributes:
        config: HookedConfig (alerts section drives the loop).
        alerts: AlertRegistry to re-read and update.
        speaker: Speaker for the reminder messages.
        events: EventLogger for reminder events.
    """

    def __init__(
        self,
        config: HookedConfig,
        alerts: AlertRegistry,
        speaker: Speaker,
        events: EventLogger,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utc_now,
        pid: Optional[int] = None,
    ) -> None:
        self.config = config
        self.alerts = alerts
        self.speaker = speaker
        self.events = events
        self._sleep = sleep
        self._clock = clock
        self.pid = pid if pid is not None else os.getpid()

    def _remind(self, alert: PendingAlert, count: int) -> None:
        settings = self.config.alerts
        minutes = alert.age_minutes(self._clock())
        escalated = settings.urgent_after_minutes > 0 and minutes >= settings.urgent_after_minutes

        if escalated:
            suffix = f" {minutes} minutes." if minutes >= ESCALATION_MINUTES_SHOWN else ""
            message = self.speaker.announce(
                "alertEscalation",
                project=alert.project_label,
                type=alert.alert_type.value,
                minutes=minutes,
                minutes_suffix=suffix,
            )
        else:
            message = self.speaker.announce(
                "alertReminder",
                project=alert.project_label,
                type=alert.alert_type.value,
                minutes=minutes,
            )

        self.events.log(
            "reminder",
            session_id=alert.session_id,
            project=alert.project_label,
            message=message,
            data={
                "type": alert.alert_type.value,
                "reminder": count,
                "age_minutes": minutes,
                "escalated": escalated,
            },
        )

    def run(self, session_id: str) -> int:
        """
        Remind until the alert is cleared or the reminder budget is spent.

        Returns:
            Number of reminders spoken by this watcher.
        """
        settings = self.config.alerts
        interval = settings.reminder_minutes * 60
        sent = 0
        logger.info(
            "Watcher %s started for %s: every %sm, max %s, urgent after %sm",
            self.pid, session_id, settings.reminder_minutes,
            settings.max_reminders, settings.urgent_after_minutes,
        )

        try:
            while True:
                self._sleep(interval)

                alert = self.alerts.get_alert(session_id)
                if alert is None:
                    logger.info("Alert for %s cleared, watcher exiting", session_id)
                    break
                if settings.max_reminders > 0 and alert.reminder_count >= settings.max_reminders:
                    logger.info("Reminder budget spent for %s, watcher exiting", session_id)
                    break

                count = self.alerts.increment_reminder(session_id)
                if count == 0:
                    break
                self._remind(alert, count)
                sent += 1
        finally:
            try:
                self.alerts.release_watcher(session_id, self.pid)
            except Exception as e:
                logger.warning("Watcher %s could not release alert %s: %s", self.pid, session_id, e)
            self.events.log(
                "watcher_stopped",
                session_id=session_id,
                message=f"Watcher exited after {sent} reminder(s)",
                data={"pid": self.pid, "reminders_sent": sent},
            )

        return sent


def is_process_alive(pid: Optional[int]) -> bool:
    """True if a process with this pid exists."""
    if not pid or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    return True


def spawn_watcher(config: HookedConfig, session_id: str) -> int:
    """
    Start a detached reminder watcher for a session.

    Returns:
        The watcher's pid.

    Raises:
        OSError: If the process cannot be started.
    """
    env = dict(os.environ)
    env[HOME_ENV_VAR] = config.home
    process = subprocess.Popen(
        [sys.executable, "-m", "hooked", "reminder", session_id],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        env=env,
        start_new_session=True,
    )
    return process.pid
