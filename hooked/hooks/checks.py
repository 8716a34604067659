"""
Check command execution for check-mode continuations.

A check is a shell command; exit code 0 means the objective is met. A
non-zero exit, a timeout or a failure to start are all "not done yet".
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional

DEFAULT_CHECK_TIMEOUT_SECONDS = 60
OUTPUT_TAIL_LINES = 5

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Result of running a check command.

    Attributes:
        success: True only when the command exited 0 within the timeout.
        exit_code: Process exit code (None on timeout or spawn failure).
        timed_out: Whether the timeout was hit.
        output_tail: Last lines of stderr (or stdout) for the event history.
    """

    success: bool
    exit_code: Optional[int] = None
    timed_out: bool = False
    output_tail: str = ""


CommandRunner = Callable[[str, float], CheckResult]


def _tail(text: str, lines: int = OUTPUT_TAIL_LINES) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


def run_check_command(
    command: str,
    timeout: float = DEFAULT_CHECK_TIMEOUT_SECONDS,
    cwd: Optional[str] = None,
) -> CheckResult:
    """
    Run a check command through the shell.

    Args:
        command: Shell command line, e.g. "pnpm test".
        timeout: Seconds before the command is killed.
        cwd: Working directory (defaults to the current one).

    Returns:
        CheckResult describing the outcome. Never raises.
    """
    try:
        result = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            timeout=timeout,
            capture_output=True,
            text=True,
        )
    except subprocess.TimeoutExpired:
        logger.info("Check command timed out after %ss: %s", timeout, command)
        return CheckResult(success=False, timed_out=True, output_tail=f"timed out after {timeout}s")
    except OSError as e:
        logger.warning("Check command could not start: %s", e)
        return CheckResult(success=False, output_tail=str(e))

    return CheckResult(
        success=result.returncode == 0,
        exit_code=result.returncode,
        output_tail=_tail(result.stderr or result.stdout or ""),
    )
