"""
Data models for hooked.

Dataclasses for everything persisted in the state directory:
- PendingContinuation: the single unclaimed continuation directive
- SessionContinuation: a continuation bound to one agent session
- PendingAlert: a session waiting on user attention
- StopDecision: the stop hook's answer to the agent
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp ending in Z."""
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by format_timestamp (naive values are UTC)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def now_timestamp() -> str:
    return format_timestamp(utc_now())


class ContinuationMode(Enum):
    """How a continuation decides whether the agent may stop."""
    MANUAL = "manual"   # Never self-resolves; pause or clear ends it
    CHECK = "check"     # Resolves when an external command exits 0


class AlertType(Enum):
    """Notification kinds that warrant a reminder loop."""
    PERMISSION = "permission"
    INPUT = "input"
    ERROR = "error"


class Decision(Enum):
    APPROVE = "approve"
    BLOCK = "block"


@dataclass
class PendingContinuation:
    """
    An unclaimed continuation directive awaiting a matching session.

    Attributes:
        mode: MANUAL or CHECK.
        objective: What to keep working on (manual mode).
        command: Shell command whose exit 0 ends the loop (check mode).
        created_at: ISO timestamp of the operator action.
        target_session_id: Only this session may claim it.
        target_project_key: Only sessions in this project folder may claim it.
    """

    mode: ContinuationMode
    objective: Optional[str] = None
    command: Optional[str] = None
    created_at: str = field(default_factory=now_timestamp)
    target_session_id: Optional[str] = None
    target_project_key: Optional[str] = None

    @property
    def goal(self) -> str:
        """The objective or command, whichever the mode uses."""
        return (self.objective if self.mode == ContinuationMode.MANUAL else self.command) or ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "objective": self.objective,
            "command": self.command,
            "created_at": self.created_at,
            "target_session_id": self.target_session_id,
            "target_project_key": self.target_project_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingContinuation:
        return cls(
            mode=ContinuationMode(data["mode"]),
            objective=data.get("objective"),
            command=data.get("command"),
            created_at=data.get("created_at") or now_timestamp(),
            target_session_id=data.get("target_session_id"),
            target_project_key=data.get("target_project_key"),
        )


@dataclass
class SessionContinuation:
    """
    A continuation bound to one agent session.

    Only created by claiming a PendingContinuation.

    Attributes:
        session_id: The agent session that claimed it.
        mode: MANUAL or CHECK, copied from the pending record.
        objective: Copied from the pending record.
        command: Copied from the pending record.
        created_at: When the operator created the pending record.
        claimed_at: When the session claimed it.
        iteration: Manual rounds blocked so far.
    """

    session_id: str
    mode: ContinuationMode
    objective: Optional[str] = None
    command: Optional[str] = None
    created_at: str = field(default_factory=now_timestamp)
    claimed_at: str = field(default_factory=now_timestamp)
    iteration: int = 0

    @property
    def goal(self) -> str:
        return (self.objective if self.mode == ContinuationMode.MANUAL else self.command) or ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "mode": self.mode.value,
            "objective": self.objective,
            "command": self.command,
            "created_at": self.created_at,
            "claimed_at": self.claimed_at,
            "iteration": self.iteration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionContinuation:
        iteration = int(data.get("iteration", 0))
        if iteration < 0:
            raise ValueError(f"iteration must be >= 0, got {iteration}")
        return cls(
            session_id=data["session_id"],
            mode=ContinuationMode(data["mode"]),
            objective=data.get("objective"),
            command=data.get("command"),
            created_at=data.get("created_at") or now_timestamp(),
            claimed_at=data.get("claimed_at") or now_timestamp(),
            iteration=iteration,
        )


@dataclass
class PendingAlert:
    """
    A session waiting on user attention.

    Attributes:
        session_id: The agent session that raised it.
        project_label: Readable project name for announcements.
        alert_type: PERMISSION, INPUT or ERROR.
        message: The agent's notification text.
        created_at: ISO timestamp, refreshed on every qualifying notification.
        reminder_count: Reminders already spoken.
        watcher_pid: PID of the reminder watcher, when one is running.
        cwd: Project directory, when the hook payload carried one.
    """

    session_id: str
    project_label: str
    alert_type: AlertType
    message: str
    created_at: str = field(default_factory=now_timestamp)
    reminder_count: int = 0
    watcher_pid: Optional[int] = None
    cwd: Optional[str] = None

    def age_minutes(self, now: Optional[datetime] = None) -> int:
        """Whole minutes since the alert was (re)raised."""
        now = now or utc_now()
        delta = now - parse_timestamp(self.created_at)
        return max(int(delta.total_seconds() // 60), 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "project_label": self.project_label,
            "alert_type": self.alert_type.value,
            "message": self.message,
            "created_at": self.created_at,
            "reminder_count": self.reminder_count,
            "watcher_pid": self.watcher_pid,
            "cwd": self.cwd,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingAlert:
        watcher_pid = data.get("watcher_pid")
        return cls(
            session_id=data["session_id"],
            project_label=data.get("project_label", ""),
            alert_type=AlertType(data["alert_type"]),
            message=data.get("message", ""),
            created_at=data.get("created_at") or now_timestamp(),
            reminder_count=int(data.get("reminder_count", 0)),
            watcher_pid=int(watcher_pid) if watcher_pid is not None else None,
            cwd=data.get("cwd"),
        )


@dataclass
class StopDecision:
    """The stop hook's answer: let the agent stop (approve) or keep it going (block)."""

    decision: Decision
    reason: str

    @classmethod
    def approve(cls, reason: str) -> StopDecision:
        return cls(Decision.APPROVE, reason)

    @classmethod
    def block(cls, reason: str) -> StopDecision:
        return cls(Decision.BLOCK, reason)

    @property
    def is_block(self) -> bool:
        return self.decision == Decision.BLOCK

    def to_dict(self) -> dict[str, str]:
        return {"decision": self.decision.value, "reason": self.reason}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
