"""
Event Logger for hooked.

This module provides the append-only event history:
- Logs hook events with timestamps for auditing (claims, blocks, alerts, reminders)
- Stores events per day in history/events-YYYY-MM-DD.jsonl
- Never raises: a failed append must not change a hook's outcome
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from hooked.utils.fs import FileSystemError, ensure_dir, list_files

if TYPE_CHECKING:
    from hooked.config import HookedConfig

logger = logging.getLogger(__name__)


class EventLogger:
    """
    Logs hooked events to JSONL files.

    Each entry is a JSON object with:
    - ts: ISO format timestamp
    - event: Event type
    - session_id: Agent session the event belongs to
    - project: Readable project label
    - message: Short human-readable description
    - data: Additional structured payload
    """

    # Standard event types
    EVENT_TYPES = {
        "claimed": "Pending continuation bound to a session",
        "blocked": "Stop attempt blocked",
        "completed": "Check passed, continuation finished",
        "paused": "Continuation cleared by pause request",
        "session_cleared": "Session continuation removed",
        "continuation_set": "Operator created a pending continuation",
        "continuation_off": "Operator cleared all continuations",
        "notification": "Agent notification received",
        "alert_set": "Session is waiting on the user",
        "alert_cleared": "Alert cleared",
        "reminder": "Reminder spoken for a pending alert",
        "watcher_started": "Reminder watcher spawned",
        "watcher_stopped": "Reminder watcher exited",
        "hook_error": "Hook failed open",
    }

    def __init__(self, config: HookedConfig) -> None:
        """
        Initialize the event logger.

        Args:
            config: HookedConfig with history_path and the logging flag.
        """
        self.config = config
        self.history_dir = config.history_path

    @property
    def enabled(self) -> bool:
        return self.config.flags.logging

    def _get_log_path(self, when: Optional[datetime] = None) -> Path:
        """Get the log file path for a day (today by default)."""
        when = when or datetime.now(timezone.utc)
        return self.history_dir / f"events-{when.strftime('%Y-%m-%d')}.jsonl"

    def log(
        self,
        event: str,
        session_id: Optional[str] = None,
        project: Optional[str] = None,
        message: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Append an event to today's log.

        Args:
            event: Event type (e.g., "claimed", "blocked", "reminder").
            session_id: Agent session id, if any.
            project: Readable project label, if any.
            message: Short description.
            data: Optional additional data to include in the event.
        """
        if not self.enabled:
            return

        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "event": event,
            "session_id": session_id,
            "project": project,
            "message": message,
            "data": data or {},
        }

        try:
            ensure_dir(self.history_dir)
            with open(self._get_log_path(), "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except (IOError, OSError, FileSystemError) as e:
            # Best effort - don't fail if we can't log
            logger.warning("Failed to append event %s: %s", event, e)

    def _read_file(self, path: Path) -> list[dict[str, Any]]:
        events: list[dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        events.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        except (IOError, OSError):
            return []
        return events

    def get_recent(self, limit: int = 50) -> list[dict[str, Any]]:
        """
        Read the most recent events across all days.

        Returns:
            Up to `limit` events, newest first.
        """
        events: list[dict[str, Any]] = []
        for path in reversed(list_files(self.history_dir, "events-*.jsonl")):
            if len(events) >= limit:
                break
            events.extend(reversed(self._read_file(path)))
        return events[:limit]

    def get_session_events(self, session_id: str, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """
        Read events for one session, oldest first.

        Args:
            session_id: The session to filter on.
            limit: Optional maximum number of events (most recent kept).
        """
        events: list[dict[str, Any]] = []
        for path in list_files(self.history_dir, "events-*.jsonl"):
            events.extend(e for e in self._read_file(path) if e.get("session_id") == session_id)
        if limit is not None:
            events = events[-limit:]
        return events
