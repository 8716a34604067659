"""
hooked - continuation loops and attention alerts for AI coding agent sessions.

Hook entry points keep a session working until an objective is met (manual
rounds or a check command), and speak reminders while a session waits on you.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
