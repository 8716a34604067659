"""Tests for AlertRegistry."""

import json
import signal
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from filelock import FileLock, Timeout

from hooked.alerts.registry import AlertRegistry
from hooked.models import AlertType, parse_timestamp


@pytest.fixture
def alerts(store, events):
    return AlertRegistry(store, events=events)


class TestSetAlert:
    """Create-or-refresh semantics."""

    def test_creates_alert(self, alerts, config):
        alert = alerts.set_alert("s1", "api", AlertType.PERMISSION, "needs permission", cwd="/dev/api")

        assert alert.reminder_count == 0
        assert alert.watcher_pid is None
        data = json.loads((config.alerts_path / "s1.json").read_text())
        assert data["alert_type"] == "permission"
        assert data["cwd"] == "/dev/api"

    def test_refresh_preserves_counter_and_watcher(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.increment_reminder("s1")
        alerts.set_watcher_pid("s1", 1234)

        refreshed = alerts.set_alert("s1", "api", AlertType.PERMISSION, "now permission")

        assert refreshed.alert_type == AlertType.PERMISSION
        assert refreshed.message == "now permission"
        assert refreshed.reminder_count == 1
        assert refreshed.watcher_pid == 1234

    def test_logs_alert_set(self, alerts, events):
        alerts.set_alert("s1", "api", AlertType.ERROR, "build failed")
        entry = events.get_recent()[0]
        assert entry["event"] == "alert_set"
        assert entry["data"] == {"type": "error", "refreshed": False}

    def test_get_all_sorted_oldest_first(self, alerts):
        alerts.set_alert("b", "api", AlertType.INPUT, "second")
        alerts.set_alert("a", "web", AlertType.INPUT, "third")
        ids = [a.session_id for a in alerts.get_all()]
        assert sorted(ids) == ["a", "b"]
        assert len(ids) == 2

    def test_invalid_document_ignored(self, alerts, config):
        config.alerts_path.mkdir(parents=True)
        (config.alerts_path / "s1.json").write_text(json.dumps({"alert_type": "bogus"}))
        assert alerts.get_alert("s1") is None
        assert alerts.get_all() == []


class TestClearAlert:
    """Clearing removes the document and records why."""

    def test_clear_logs_age_and_reminders(self, alerts, events):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.increment_reminder("s1")

        assert alerts.clear_alert("s1", reason="user_activity") is True

        entry = events.get_recent()[0]
        assert entry["event"] == "alert_cleared"
        assert entry["data"]["reminders_sent"] == 1
        assert entry["data"]["reason"] == "user_activity"
        assert entry["data"]["age_minutes"] == 0

    def test_clear_missing(self, alerts):
        assert alerts.clear_alert("s1") is False

    def test_clear_all_terminates_watchers(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.set_watcher_pid("s1", 1111)
        alerts.set_alert("s2", "web", AlertType.INPUT, "waiting")
        alerts.set_watcher_pid("s2", 2222)
        alerts.set_alert("s3", "cli", AlertType.INPUT, "waiting")

        def fake_kill(pid, sig):
            if pid == 2222:
                raise ProcessLookupError()

        with patch("hooked.alerts.registry.os.kill", side_effect=fake_kill) as kill:
            killed = alerts.clear_all()

        assert killed == [1111]
        kill.assert_any_call(1111, signal.SIGTERM)
        assert alerts.get_all() == []


class TestCounters:
    """Reminder counter and watcher bookkeeping."""

    def test_increment_reminder(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        assert alerts.increment_reminder("s1") == 1
        assert alerts.increment_reminder("s1") == 2

    def test_increment_missing_returns_zero(self, alerts):
        assert alerts.increment_reminder("ghost") == 0

    def test_set_watcher_pid_missing_alert(self, alerts):
        assert alerts.set_watcher_pid("ghost", 1) is False

    def test_ensure_watcher_spawns_once_while_alive(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        spawn = MagicMock(return_value=4242)

        assert alerts.ensure_watcher("s1", lambda pid: pid == 4242, spawn) == 4242
        assert alerts.ensure_watcher("s1", lambda pid: pid == 4242, spawn) is None
        assert spawn.call_count == 1
        assert alerts.get_alert("s1").watcher_pid == 4242

    def test_ensure_watcher_replaces_dead_pid(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.set_watcher_pid("s1", 1111)

        assert alerts.ensure_watcher("s1", lambda pid: False, lambda: 2222) == 2222
        assert alerts.get_alert("s1").watcher_pid == 2222

    def test_ensure_watcher_spawns_under_alert_lock(self, alerts, config):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")

        def spawn():
            other = FileLock(str(config.locks_path / "alert-s1.lock"), timeout=0)
            with pytest.raises(Timeout):
                other.acquire()
            return 4242

        assert alerts.ensure_watcher("s1", lambda pid: False, spawn) == 4242

    def test_ensure_watcher_missing_alert(self, alerts):
        spawn = MagicMock(return_value=1)
        assert alerts.ensure_watcher("ghost", lambda pid: False, spawn) is None
        spawn.assert_not_called()

    def test_ensure_watcher_spawn_failure_records_nothing(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        spawn = MagicMock(side_effect=OSError("fork failed"))

        with pytest.raises(OSError):
            alerts.ensure_watcher("s1", lambda pid: False, spawn)
        assert alerts.get_alert("s1").watcher_pid is None

    def test_release_only_own_pid(self, alerts):
        alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.set_watcher_pid("s1", 1234)

        assert alerts.release_watcher("s1", 9999) is False
        assert alerts.get_alert("s1").watcher_pid == 1234
        assert alerts.release_watcher("s1", 1234) is True
        assert alerts.get_alert("s1").watcher_pid is None

    def test_age_minutes(self, alerts):
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        later = parse_timestamp(alert.created_at) + timedelta(minutes=7, seconds=30)
        assert AlertRegistry.age_minutes(alert, later) == 7
