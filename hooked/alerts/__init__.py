"""Alerts module for hooked.

Pending-attention alerts, notification classification and the reminder watcher.
"""

from hooked.alerts.classifier import classify_notification
from hooked.alerts.registry import AlertRegistry
from hooked.alerts.watcher import ReminderWatcher, is_process_alive, spawn_watcher

__all__ = [
    "AlertRegistry",
    "ReminderWatcher",
    "classify_notification",
    "is_process_alive",
    "spawn_watcher",
]
