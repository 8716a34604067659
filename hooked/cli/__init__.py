"""CLI package for hooked.

Modules:
    app.py             - Main Typer app, version callback, sub-app registration
    continuation.py    - Continuation commands (manual, check, off, pause, resume)
    alerts.py          - Alert commands (list, clear)
    config_commands.py - Config commands (show, flag)
    hooks.py           - Hook entry points (stop, notification, prompt-submit)
    status.py          - status, history and the hidden reminder watcher command
    display.py         - Rich formatting utilities
    common.py          - Shared helpers (get_console, configure_logging, factories)

Command Structure:
    hooked continue manual "finish the migration"
    hooked continue check pnpm test
    hooked alerts list
    hooked hook stop < payload.json

Usage:
    from hooked.cli import app, cli_main  # Main exports
"""
from hooked.cli.app import app, cli_main

__all__ = ["app", "cli_main"]
