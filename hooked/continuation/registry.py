"""
ContinuationRegistry - lazy-binding continuation state.

Two-step flow:
1. An operator sets a *pending* continuation (pending.json). It may target a
   specific session id, a project key, or nobody in particular.
2. On the next stop attempt of a matching session, the stop hook *claims* it:
   the pending document is moved to state/<session_id>.json.

Claim is a move, never a copy: once a session owns the continuation the
pending document is gone.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from hooked.models import (
    ContinuationMode,
    PendingContinuation,
    SessionContinuation,
    now_timestamp,
)
from hooked.state_store import StateStore

if TYPE_CHECKING:
    from hooked.event_logger import EventLogger

PENDING_FILENAME = "pending.json"
PENDING_LOCK = "pending"


class ContinuationError(ValueError):
    """Raised for invalid continuation input (empty objective, bad session id)."""
    pass


def validate_session_id(session_id: str) -> str:
    """
    Ensure a session id is usable as a file name.

    Raises:
        ContinuationError: If the id is empty or contains path separators.
    """
    if not session_id or not session_id.strip():
        raise ContinuationError("session id must not be empty")
    if "/" in session_id or "\\" in session_id or session_id in (".", ".."):
        raise ContinuationError(f"invalid session id: {session_id!r}")
    return session_id


class ContinuationRegistry:
    """
    Pending slot plus per-session active continuations, backed by StateStore.

    Attributes:
        store: The StateStore all documents live in.
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
        self._state_dir = store.config.state_path

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    @property
    def pending_path(self) -> Path:
        return self.store.root / PENDING_FILENAME

    def _session_path(self, session_id: str) -> Path:
        return self._state_dir / f"{validate_session_id(session_id)}.json"

    # -------------------------------------------------------------------------
    # Pending
    # -------------------------------------------------------------------------

    def set_pending(
        self,
        mode: ContinuationMode,
        value: str,
        target_session_id: Optional[str] = None,
        target_project_key: Optional[str] = None,
    ) -> PendingContinuation:
        """
        Create (or replace) the pending continuation.

        Args:
            mode: MANUAL (value is the objective) or CHECK (value is the command).
            value: Objective text or shell command.
            target_session_id: Restrict the claim to this session.
            target_project_key: Restrict the claim to sessions in this project.

        Returns:
            The persisted PendingContinuation.

        Raises:
            ContinuationError: If value is empty.
            StateStoreError: If the write fails.
        """
        value = (value or "").strip()
        if not value:
            what = "objective" if mode == ContinuationMode.MANUAL else "check command"
            raise ContinuationError(f"{what} must not be empty")
        if target_session_id is not None:
            validate_session_id(target_session_id)

        pending = PendingContinuation(
            mode=mode,
            objective=value if mode == ContinuationMode.MANUAL else None,
            command=value if mode == ContinuationMode.CHECK else None,
            target_session_id=target_session_id or None,
            target_project_key=target_project_key or None,
        )
        with self.store.lock(PENDING_LOCK):
            self.store.write(self.pending_path, pending.to_dict())
        return pending

    def get_pending(self) -> Optional[PendingContinuation]:
        """Load the pending continuation, or None if absent or invalid."""
        data = self.store.read(self.pending_path)
        if data is None:
            return None
        try:
            return PendingContinuation.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            self._logger.warning("Ignoring invalid pending continuation: %s", e)
            return None

    def clear_pending(self) -> bool:
        """Delete the pending continuation. Returns True if one existed."""
        return self.store.delete(self.pending_path)

    @staticmethod
    def matches(
        pending: PendingContinuation,
        session_id: str,
        project_key: Optional[str],
    ) -> bool:
        """
        Decide whether a session may claim a pending continuation.

        A target session id wins over a target project key; with neither set
        any session matches.
        """
        if pending.target_session_id:
            return pending.target_session_id == session_id
        if pending.target_project_key:
            return pending.target_project_key == project_key
        return True

    def claim(
        self,
        session_id: str,
        project_key: Optional[str] = None,
    ) -> Optional[SessionContinuation]:
        """
        Move the pending continuation into this session's active record.

        Args:
            session_id: The claiming session.
            project_key: The claiming session's project key.

        Returns:
            The new SessionContinuation (iteration 0), or None when there is
            nothing to claim or the pending record targets someone else.
        """
        session_path = self._session_path(session_id)

        with self.store.lock(PENDING_LOCK):
            pending = self.get_pending()
            if pending is None or not self.matches(pending, session_id, project_key):
                return None

            state = SessionContinuation(
                session_id=session_id,
                mode=pending.mode,
                objective=pending.objective,
                command=pending.command,
                created_at=pending.created_at,
                claimed_at=now_timestamp(),
                iteration=0,
            )
            self.store.write(session_path, state.to_dict())
            self.clear_pending()

        self._logger.info("Session %s claimed %s continuation", session_id, state.mode.value)
        return state

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def get_session(self, session_id: str) -> Optional[SessionContinuation]:
        """Load a session's continuation, or None if absent or invalid."""
        data = self.store.read(self._session_path(session_id))
        if data is None:
            return None
        data.setdefault("session_id", session_id)
        try:
            return SessionContinuation.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            self._logger.warning("Ignoring invalid continuation for %s: %s", session_id, e)
            return None

    def set_session(self, session_id: str, state: SessionContinuation) -> None:
        """Persist a session's continuation (last write wins)."""
        state.session_id = session_id
        self.store.write(self._session_path(session_id), state.to_dict())

    def increment_iteration(self, session_id: str) -> int:
        """
        Add one manual round to a session.

        Returns:
            The new iteration, or 0 if the session has no continuation.
        """
        with self.store.lock(f"session-{validate_session_id(session_id)}"):
            state = self.get_session(session_id)
            if state is None:
                return 0
            state.iteration += 1
            self.set_session(session_id, state)
            return state.iteration

    def clear_session(self, session_id: str, reason: str = "cleared") -> bool:
        """
        Remove a session's continuation.

        Args:
            session_id: The session to clear.
            reason: Why (recorded in the event history).

        Returns:
            True if a continuation was removed.
        """
        removed = self.store.delete(self._session_path(session_id))
        if removed and self._events is not None:
            self._events.log(
                "session_cleared",
                session_id=session_id,
                message=f"Continuation cleared: {reason}",
                data={"reason": reason},
            )
        return removed

    def list_sessions(self) -> list[SessionContinuation]:
        """All sessions with a readable active continuation."""
        sessions: list[SessionContinuation] = []
        for path in self.store.list(self._state_dir):
            state = self.get_session(path.stem)
            if state is not None:
                sessions.append(state)
        return sessions

    def clear_all_sessions(self) -> int:
        """
        Remove every session continuation.

        Returns:
            Number of session documents removed.
        """
        removed = 0
        for path in self.store.list(self._state_dir):
            if self.store.delete(path):
                removed += 1
        if removed and self._events is not None:
            self._events.log(
                "session_cleared",
                message=f"Cleared {removed} session continuation(s)",
                data={"reason": "clear_all", "count": removed},
            )
        return removed
