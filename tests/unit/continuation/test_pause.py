"""Tests for the global pause flag."""

from hooked.continuation.pause import PAUSE_FILENAME


class TestPauseFlag:
    """Marker file semantics."""

    def test_initially_unset(self, pause):
        assert pause.is_set() is False
        assert pause.created_at() is None

    def test_set_writes_timestamp(self, pause, hooked_home):
        created_at = pause.set()
        assert pause.is_set() is True
        assert pause.created_at() == created_at
        assert (hooked_home / PAUSE_FILENAME).exists()

    def test_clear(self, pause):
        pause.set()
        assert pause.clear() is True
        assert pause.is_set() is False
        assert pause.clear() is False
