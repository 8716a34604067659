"""
Hook entry points for hooked.

Each hook reads the agent's JSON payload from stdin:
- stop: continuation state machine, answers approve/block
- notification: speech, event history and attention alerts
- prompt_submit: clears the session's alert once the user responds
"""

from hooked.hooks.checks import CheckResult, run_check_command
from hooked.hooks.notification import (
    NotificationHandler,
    build_notification_handler,
    handle_notification_payload,
)
from hooked.hooks.prompt_submit import handle_prompt_submit_payload, on_prompt_submit
from hooked.hooks.stop import (
    EvaluatorState,
    StopEvaluator,
    build_stop_evaluator,
    handle_stop_payload,
)

__all__ = [
    # Checks
    "CheckResult",
    "run_check_command",
    # Stop
    "EvaluatorState",
    "StopEvaluator",
    "build_stop_evaluator",
    "handle_stop_payload",
    # Notification
    "NotificationHandler",
    "build_notification_handler",
    "handle_notification_payload",
    # Prompt submit
    "handle_prompt_submit_payload",
    "on_prompt_submit",
]
