"""
AlertRegistry - sessions waiting on user attention.

One document per session under alerts/<session_id>.json. A notification
creates or refreshes the alert, the reminder watcher bumps its counter, and
the user's next prompt clears it.
"""

from __future__ import annotations

import logging
import os
import signal
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from hooked.continuation.registry import validate_session_id
from hooked.models import AlertType, PendingAlert, now_timestamp
from hooked.state_store import StateStore

if TYPE_CHECKING:
    from hooked.event_logger import EventLogger


class AlertRegistry:
    """
    Pending alerts backed by StateStore.

    Mutations that read before writing hold the per-session ``alert-<id>`` lock.
    """

    def __init__(
        self,
        store: StateStore,
        events: Optional[EventLogger] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self._events = events
        self._logger = logger or logging.getLogger(__name__)
        self._alerts_dir = store.config.alerts_path

    def _alert_path(self, session_id: str) -> Path:
        return self._alerts_dir / f"{validate_session_id(session_id)}.json"

    def _lock_name(self, session_id: str) -> str:
        return f"alert-{validate_session_id(session_id)}"

    def _log(self, event: str, alert: PendingAlert, message: str, data: dict) -> None:
        if self._events is None:
            return
        self._events.log(
            event,
            session_id=alert.session_id,
            project=alert.project_label,
            message=message,
            data=data,
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_alert(self, session_id: str) -> Optional[PendingAlert]:
        """Load a session's alert, or None if absent or invalid."""
        data = self.store.read(self._alert_path(session_id))
        if data is None:
            return None
        data.setdefault("session_id", session_id)
        try:
            return PendingAlert.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            self._logger.warning("Ignoring invalid alert for %s: %s", session_id, e)
            return None

    def get_all(self) -> list[PendingAlert]:
        """Every readable alert, oldest first."""
        alerts: list[PendingAlert] = []
        for path in self.store.list(self._alerts_dir):
            alert = self.get_alert(path.stem)
            if alert is not None:
                alerts.append(alert)
        alerts.sort(key=lambda a: a.created_at)
        return alerts

    @staticmethod
    def age_minutes(alert: PendingAlert, now: Optional[datetime] = None) -> int:
        """Whole minutes since the alert was raised or last refreshed."""
        return alert.age_minutes(now)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def set_alert(
        self,
        session_id: str,
        project_label: str,
        alert_type: AlertType,
        message: str,
        cwd: Optional[str] = None,
    ) -> PendingAlert:
        """
        Create or refresh a session's alert.

        Message, type and created_at are replaced; reminder_count and
        watcher_pid survive a refresh so a running watcher keeps its budget.

        Returns:
            The persisted PendingAlert.

        Raises:
            StateStoreError: If the write or lock fails.
        """
        with self.store.lock(self._lock_name(session_id)):
            existing = self.get_alert(session_id)
            alert = PendingAlert(
                session_id=session_id,
                project_label=project_label,
                alert_type=alert_type,
                message=message,
                created_at=now_timestamp(),
                reminder_count=existing.reminder_count if existing else 0,
                watcher_pid=existing.watcher_pid if existing else None,
                cwd=cwd if cwd is not None else (existing.cwd if existing else None),
            )
            self.store.write(self._alert_path(session_id), alert.to_dict())

        self._log(
            "alert_set",
            alert,
            message,
            {"type": alert_type.value, "refreshed": existing is not None},
        )
        return alert

    def clear_alert(self, session_id: str, reason: str = "user_activity") -> bool:
        """
        Remove a session's alert.

        Returns:
            True if an alert was removed.
        """
        alert = self.get_alert(session_id)
        removed = self.store.delete(self._alert_path(session_id))
        if removed and alert is not None:
            self._log(
                "alert_cleared",
                alert,
                f"Alert cleared: {reason}",
                {
                    "type": alert.alert_type.value,
                    "age_minutes": alert.age_minutes(),
                    "reminders_sent": alert.reminder_count,
                    "reason": reason,
                },
            )
        return removed

    def clear_all(self) -> list[int]:
        """
        Remove every alert and terminate their watchers.

        Returns:
            PIDs that were sent SIGTERM.
        """
        killed: list[int] = []
        for alert in self.get_all():
            if alert.watcher_pid is not None:
                try:
                    os.kill(alert.watcher_pid, signal.SIGTERM)
                    killed.append(alert.watcher_pid)
                except ProcessLookupError:
                    pass
                except PermissionError as e:
                    self._logger.warning("Cannot stop watcher %s: %s", alert.watcher_pid, e)
            self.clear_alert(alert.session_id, reason="clear_all")
        return killed

    def increment_reminder(self, session_id: str) -> int:
        """
        Count one spoken reminder.

        Returns:
            The new reminder_count, or 0 if the alert is gone.
        """
        with self.store.lock(self._lock_name(session_id)):
            alert = self.get_alert(session_id)
            if alert is None:
                return 0
            alert.reminder_count += 1
            self.store.write(self._alert_path(session_id), alert.to_dict())
            return alert.reminder_count

    def set_watcher_pid(self, session_id: str, pid: int) -> bool:
        """Record the watcher process for an alert. False if the alert is gone."""
        with self.store.lock(self._lock_name(session_id)):
            alert = self.get_alert(session_id)
            if alert is None:
                return False
            alert.watcher_pid = pid
            self.store.write(self._alert_path(session_id), alert.to_dict())
            return True

    def ensure_watcher(
        self,
        session_id: str,
        is_alive: Callable[[int], bool],
        spawn: Callable[[], int],
    ) -> Optional[int]:
        """
        Start a watcher for an alert unless a live one is already recorded.

        The liveness check, spawn and pid write happen under the alert lock,
        so concurrent notifications for one session start a single watcher.

        Returns:
            The new watcher pid, or None if the alert is gone or already watched.

        Raises:
            OSError: If spawn fails.
        """
        with self.store.lock(self._lock_name(session_id)):
            alert = self.get_alert(session_id)
            if alert is None:
                return None
            if alert.watcher_pid is not None and is_alive(alert.watcher_pid):
                return None
            pid = spawn()
            alert.watcher_pid = pid
            self.store.write(self._alert_path(session_id), alert.to_dict())
            return pid

    def release_watcher(self, session_id: str, pid: int) -> bool:
        """
        Forget a watcher pid, but only if it is still the recorded one.

        Returns:
            True if the pid was cleared.
        """
        with self.store.lock(self._lock_name(session_id)):
            alert = self.get_alert(session_id)
            if alert is None or alert.watcher_pid != pid:
                return False
            alert.watcher_pid = None
            self.store.write(self._alert_path(session_id), alert.to_dict())
            return True
