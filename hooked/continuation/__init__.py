"""Continuation module for hooked.

Pending/session continuation state with lazy binding, plus the global pause flag.
"""

from hooked.continuation.pause import PauseFlag
from hooked.continuation.registry import (
    ContinuationError,
    ContinuationRegistry,
    validate_session_id,
)

__all__ = [
    "ContinuationError",
    "ContinuationRegistry",
    "PauseFlag",
    "validate_session_id",
]
