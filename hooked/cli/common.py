"""Common utilities and global state for the CLI.

Contains the console singletons, logging setup and component factories.
This module should NOT import from the command modules to avoid circular imports.
"""
from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from hooked.alerts.registry import AlertRegistry
    from hooked.config import HookedConfig
    from hooked.continuation.pause import PauseFlag
    from hooked.continuation.registry import ContinuationRegistry
    from hooked.event_logger import EventLogger
    from hooked.state_store import StateStore

DEBUG_ENV_VAR = "HOOKED_DEBUG"
LOG_FILE_ENV_VAR = "HOOKED_LOG_FILE"
LOG_FILENAME = "hooked.log"

# ============================================================================
# Global State
# ============================================================================

# Console singletons
_console: Optional[Console] = None
_err_console: Optional[Console] = None

_logging_configured = False


def get_console() -> Console:
    """Get or create the console singleton."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_err_console() -> Console:
    """Console bound to stderr (hook stdout is reserved for decisions)."""
    global _err_console
    if _err_console is None:
        _err_console = Console(stderr=True)
    return _err_console


# ============================================================================
# Logging
# ============================================================================


def configure_logging(config: Optional["HookedConfig"] = None) -> None:
    """
    Attach handlers to the ``hooked`` logger.

    - stderr: WARNING, or DEBUG when HOOKED_DEBUG=1
    - logs/hooked.log: INFO and up when HOOKED_LOG_FILE=true
    """
    global _logging_configured
    if _logging_configured:
        return

    root = logging.getLogger("hooked")
    debug = os.environ.get(DEBUG_ENV_VAR) == "1"
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    stderr_handler = RichHandler(console=get_err_console(), show_path=False)
    stderr_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    root.addHandler(stderr_handler)

    if config is not None and os.environ.get(LOG_FILE_ENV_VAR, "").lower() == "true":
        try:
            config.logs_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(config.logs_path / LOG_FILENAME)
        except OSError as e:
            root.warning("Cannot open log file: %s", e)
        else:
            file_handler.setFormatter(
                logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
            )
            root.addHandler(file_handler)

    _logging_configured = True


def reset_logging() -> None:
    """Remove handlers added by configure_logging. Useful for testing."""
    global _logging_configured
    root = logging.getLogger("hooked")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    _logging_configured = False


# ============================================================================
# Component Factories
# ============================================================================


def load_config_for_cli() -> "HookedConfig":
    """Load config, falling back to defaults when config.yaml is invalid."""
    from hooked.config import get_config_or_default

    return get_config_or_default()


def get_store(config: "HookedConfig") -> "StateStore":
    from hooked.state_store import StateStore

    return StateStore(config)


def get_events(config: "HookedConfig") -> "EventLogger":
    from hooked.event_logger import EventLogger

    return EventLogger(config)


def get_registry(config: "HookedConfig") -> "ContinuationRegistry":
    from hooked.continuation.registry import ContinuationRegistry

    return ContinuationRegistry(get_store(config), events=get_events(config))


def get_pause(config: "HookedConfig") -> "PauseFlag":
    from hooked.continuation.pause import PauseFlag

    return PauseFlag(get_store(config))


def get_alerts(config: "HookedConfig") -> "AlertRegistry":
    from hooked.alerts.registry import AlertRegistry

    return AlertRegistry(get_store(config), events=get_events(config))
