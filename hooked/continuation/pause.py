"""Global pause marker, consumed by the next stop attempt of any active session."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from hooked.models import now_timestamp
from hooked.state_store import StateStore

PAUSE_FILENAME = "pause"


class PauseFlag:
    """Presence of the marker file means "pause requested"; it holds the request time."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    @property
    def path(self) -> Path:
        return self.store.root / PAUSE_FILENAME

    def set(self) -> str:
        """Request a pause. Returns the timestamp written to the marker."""
        created_at = now_timestamp()
        self.store.write_text(self.path, created_at)
        return created_at

    def is_set(self) -> bool:
        return self.store.exists(self.path)

    def created_at(self) -> Optional[str]:
        return self.store.read_text(self.path)

    def clear(self) -> bool:
        return self.store.delete(self.path)
