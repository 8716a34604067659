"""
Stop hook - continuation state machine.

Runs once per stop attempt of the agent and answers with a single JSON
decision on stdout: ``{"decision": "approve" | "block", "reason": "..."}``.

Flow for a stop attempt by (session_id, project_key):
1. If a pending continuation matches the session, claim it.
2. No continuation bound to the session -> approve.
3. Pause requested -> clear the session and the pause flag, approve.
4. Check mode -> run the command; exit 0 approves and clears, anything else blocks.
5. Manual mode -> increment the round counter and block.

The hook fails open: any parse error, state I/O error or unexpected exception
results in an approve decision.
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from typing import Any, Optional

from hooked.config import HookedConfig
from hooked.continuation.pause import PauseFlag
from hooked.continuation.registry import ContinuationRegistry
from hooked.event_logger import EventLogger
from hooked.hooks.checks import CheckResult, CommandRunner, run_check_command
from hooked.models import ContinuationMode, SessionContinuation, StopDecision
from hooked.project import DEFAULT_LABEL, project_key_from_payload, project_label_from_payload
from hooked.speak import Speaker
from hooked.state_store import StateStore

logger = logging.getLogger(__name__)

REASON_NO_CONTINUATION = "no continuation active"
REASON_PAUSED = "paused by request"
REASON_CHECK_PASSED = "check passed"
REASON_PARSE_ERROR = "failed to parse payload"
REASON_NO_SESSION = "no session_id"
REASON_HOOK_ERROR = "hook error"
REASON_INVALID = "invalid continuation cleared"


class EvaluatorState(Enum):
    """Where a stop attempt ended up."""
    NO_CONTINUATION = "no_continuation"
    CHECK_ACTIVE = "check_active"
    MANUAL_ACTIVE = "manual_active"
    PAUSED = "paused"


class StopEvaluator:
    """
    Decides whether the agent may stop.

    Attributes:
        registry: Pending and per-session continuation state.
        pause: The global pause flag.
        speaker: Voice announcements (best-effort).
        events: Event history (best-effort).
        check_timeout: Seconds a check command may run.
    """

    def __init__(
        self,
        registry: ContinuationRegistry,
        pause: PauseFlag,
        speaker: Speaker,
        events: EventLogger,
        run_command: Optional[CommandRunner] = None,
        check_timeout: float = 60,
        logger_: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.pause = pause
        self.speaker = speaker
        self.events = events
        self.check_timeout = check_timeout
        self._run_command = run_command
        self._logger = logger_ or logger
        self.last_state: Optional[EvaluatorState] = None

    # -------------------------------------------------------------------------
    # Side channels
    # -------------------------------------------------------------------------

    def _notify(
        self,
        template: str,
        event: str,
        session_id: str,
        project_label: str,
        data: Optional[dict[str, Any]] = None,
        **variables: Any,
    ) -> None:
        """Speak a template and append an event; never raises."""
        message = ""
        try:
            message = self.speaker.announce(template, project=project_label, **variables)
        except Exception as e:
            self._logger.warning("Speak failed for %s: %s", event, e)
        try:
            self.events.log(event, session_id=session_id, project=project_label, message=message, data=data)
        except Exception as e:
            self._logger.warning("Event log failed for %s: %s", event, e)

    def _check(self, command: str, cwd: Optional[str]) -> CheckResult:
        if self._run_command is not None:
            return self._run_command(command, self.check_timeout)
        return run_check_command(command, timeout=self.check_timeout, cwd=cwd)

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def evaluate(
        self,
        session_id: str,
        project_key: Optional[str] = None,
        project_label: str = DEFAULT_LABEL,
        cwd: Optional[str] = None,
    ) -> StopDecision:
        """
        Run one stop attempt through the state machine.

        Args:
            session_id: The agent session trying to stop.
            project_key: The session's project key (for targeted claims).
            project_label: Readable project name for announcements.
            cwd: Directory to run check commands in.

        Returns:
            StopDecision. Errors of any kind produce an approve.
        """
        self.last_state = None
        try:
            return self._evaluate(session_id, project_key, project_label, cwd)
        except Exception as e:
            self._logger.exception("Stop evaluation failed for %s, approving", session_id)
            try:
                self.events.log(
                    "hook_error",
                    session_id=session_id,
                    project=project_label,
                    message=str(e),
                    data={"hook": "stop", "error_type": type(e).__name__},
                )
            except Exception:
                self._logger.debug("Could not record hook_error event", exc_info=True)
            return StopDecision.approve(REASON_HOOK_ERROR)

    def _evaluate(
        self,
        session_id: str,
        project_key: Optional[str],
        project_label: str,
        cwd: Optional[str],
    ) -> StopDecision:
        claimed = self.registry.claim(session_id, project_key)
        if claimed is not None:
            self._notify(
                "loopStarted",
                "claimed",
                session_id,
                project_label,
                data={
                    "mode": claimed.mode.value,
                    "objective": claimed.objective,
                    "command": claimed.command,
                    "project_key": project_key,
                },
                goal=claimed.goal,
            )

        state = self.registry.get_session(session_id)
        if state is None:
            self.last_state = EvaluatorState.NO_CONTINUATION
            return StopDecision.approve(REASON_NO_CONTINUATION)

        if self.pause.is_set():
            return self._consume_pause(state, project_label)

        if state.mode == ContinuationMode.CHECK:
            return self._evaluate_check(state, project_label, cwd)

        return self._evaluate_manual(state, project_label)

    def _consume_pause(self, state: SessionContinuation, project_label: str) -> StopDecision:
        self.last_state = EvaluatorState.PAUSED
        self.registry.clear_session(state.session_id, reason="paused")
        self.pause.clear()
        self._notify(
            "pausing",
            "paused",
            state.session_id,
            project_label,
            data={"mode": state.mode.value, "iteration": state.iteration},
        )
        return StopDecision.approve(REASON_PAUSED)

    def _evaluate_check(
        self,
        state: SessionContinuation,
        project_label: str,
        cwd: Optional[str],
    ) -> StopDecision:
        self.last_state = EvaluatorState.CHECK_ACTIVE
        command = state.command
        if not command:
            self.registry.clear_session(state.session_id, reason="invalid")
            return StopDecision.approve(REASON_INVALID)

        result = self._check(command, cwd)
        if result.success:
            self.registry.clear_session(state.session_id, reason="check_passed")
            self._notify(
                "checkPassed",
                "completed",
                state.session_id,
                project_label,
                data={"mode": "check", "command": command},
            )
            return StopDecision.approve(REASON_CHECK_PASSED)

        self._notify(
            "checkFailed",
            "blocked",
            state.session_id,
            project_label,
            data={
                "mode": "check",
                "command": command,
                "exit_code": result.exit_code,
                "timed_out": result.timed_out,
                "output_tail": result.output_tail,
            },
        )
        return StopDecision.block(f"check failed: {command}")

    def _evaluate_manual(self, state: SessionContinuation, project_label: str) -> StopDecision:
        self.last_state = EvaluatorState.MANUAL_ACTIVE
        round_number = self.registry.increment_iteration(state.session_id)
        if round_number == 0:
            # Cleared by another process between load and increment
            self.last_state = EvaluatorState.NO_CONTINUATION
            return StopDecision.approve(REASON_NO_CONTINUATION)

        objective = state.objective or ""
        self._notify(
            "manualRound",
            "blocked",
            state.session_id,
            project_label,
            data={"mode": "manual", "iteration": round_number, "objective": objective},
            round=round_number,
            objective=objective,
        )
        return StopDecision.block(f"round {round_number}: {objective}")


def build_stop_evaluator(config: HookedConfig) -> StopEvaluator:
    """Wire a StopEvaluator from configuration."""
    store = StateStore(config)
    events = EventLogger(config)
    return StopEvaluator(
        registry=ContinuationRegistry(store, events=events),
        pause=PauseFlag(store),
        speaker=Speaker(config),
        events=events,
        check_timeout=config.continuation.check_timeout_seconds,
    )


def handle_stop_payload(raw: str, evaluator: StopEvaluator) -> StopDecision:
    """
    Evaluate a raw stop hook payload.

    Args:
        raw: The JSON the agent wrote to the hook's stdin.
        evaluator: The StopEvaluator to run.

    Returns:
        StopDecision. Never raises.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to parse stop payload: %s", e)
        return StopDecision.approve(REASON_PARSE_ERROR)

    if not isinstance(payload, dict):
        return StopDecision.approve(REASON_PARSE_ERROR)

    session_id = payload.get("session_id")
    if not isinstance(session_id, str) or not session_id:
        return StopDecision.approve(REASON_NO_SESSION)

    try:
        project_key = project_key_from_payload(payload)
        project_label = project_label_from_payload(payload)
        cwd = payload.get("cwd")
        if not (isinstance(cwd, str) and os.path.isdir(cwd)):
            cwd = None
    except Exception:
        logger.exception("Failed to read project from stop payload")
        return StopDecision.approve(REASON_HOOK_ERROR)

    return evaluator.evaluate(session_id, project_key, project_label, cwd)
