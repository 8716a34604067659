"""Tests for StateStore and the fs helpers beneath it."""

import json
import threading
from unittest.mock import patch

import pytest

from hooked.state_store import StateStore, StateStoreError
from hooked.utils.fs import FileSystemError, list_files, safe_write


class TestReadWrite:
    """JSON documents with atomic replacement."""

    def test_round_trip(self, store, hooked_home):
        path = hooked_home / "state" / "s1.json"
        store.write(path, {"a": 1})
        assert store.read(path) == {"a": 1}

    def test_missing_is_none(self, store, hooked_home):
        assert store.read(hooked_home / "nope.json") is None

    def test_corrupt_is_none(self, store, hooked_home):
        path = hooked_home / "bad.json"
        path.write_text("{broken")
        assert store.read(path) is None

    def test_non_object_is_none(self, store, hooked_home):
        path = hooked_home / "list.json"
        path.write_text(json.dumps([1, 2]))
        assert store.read(path) is None

    def test_no_temp_files_left_behind(self, store, hooked_home):
        path = hooked_home / "state" / "s1.json"
        store.write(path, {"a": 1})
        store.write(path, {"a": 2})
        assert [p.name for p in (hooked_home / "state").iterdir()] == ["s1.json"]

    def test_write_failure_raises(self, store, hooked_home):
        with patch("hooked.state_store.safe_write", side_effect=FileSystemError("disk full")):
            with pytest.raises(StateStoreError):
                store.write(hooked_home / "x.json", {})

    def test_text_markers(self, store, hooked_home):
        path = hooked_home / "pause"
        store.write_text(path, "2026-01-01T00:00:00Z\n")
        assert store.read_text(path) == "2026-01-01T00:00:00Z"
        assert store.delete(path) is True
        assert store.delete(path) is False
        assert store.read_text(path) is None

    def test_list(self, store, hooked_home):
        store.write(hooked_home / "alerts" / "b.json", {})
        store.write(hooked_home / "alerts" / "a.json", {})
        assert [p.name for p in store.list(hooked_home / "alerts")] == ["a.json", "b.json"]
        assert store.list(hooked_home / "missing") == []


class TestLocks:
    """Advisory locks serialize read-modify-write sequences."""

    def test_lock_creates_lock_file(self, store, config):
        with store.lock("pending"):
            assert (config.locks_path / "pending.lock").exists()

    def test_lock_timeout_raises(self, config):
        holder = StateStore(config)
        waiter = StateStore(config, lock_timeout=0.1)
        acquired = threading.Event()
        release = threading.Event()

        def hold():
            with holder.lock("pending"):
                acquired.set()
                release.wait(5)

        thread = threading.Thread(target=hold)
        thread.start()
        try:
            acquired.wait(5)
            with pytest.raises(StateStoreError):
                with waiter.lock("pending"):
                    pass
        finally:
            release.set()
            thread.join()


class TestFsHelpers:
    """Low-level helpers."""

    def test_safe_write_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "c.txt"
        safe_write(target, "hello")
        assert target.read_text() == "hello"

    def test_list_files_pattern(self, tmp_path):
        (tmp_path / "events-2026-01-01.jsonl").write_text("")
        (tmp_path / "other.txt").write_text("")
        assert [p.name for p in list_files(tmp_path, "events-*.jsonl")] == ["events-2026-01-01.jsonl"]
