"""Tests for the reminder watcher loop and process helpers."""

import os
import subprocess
import sys
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from hooked.alerts.registry import AlertRegistry
from hooked.alerts.watcher import ReminderWatcher, is_process_alive, spawn_watcher
from hooked.models import AlertType, parse_timestamp

WATCHER_PID = 4242


class FakeTime:
    """Clock that only advances when the watcher sleeps."""

    def __init__(self, start, on_sleep=None):
        self.now = start
        self.sleeps = []
        self.on_sleep = on_sleep

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)
        if self.on_sleep:
            self.on_sleep(len(self.sleeps))

    def clock(self):
        return self.now


@pytest.fixture
def alerts(store, events):
    return AlertRegistry(store, events=events)


def _make_watcher(config, alerts, speaker, events, fake):
    return ReminderWatcher(
        config, alerts, speaker, events, sleep=fake.sleep, clock=fake.clock, pid=WATCHER_PID
    )


def _reminders(events):
    return [e for e in reversed(events.get_recent(200)) if e["event"] == "reminder"]


class TestReminderLoop:
    """Sleep, re-read, remind; stop when cleared or out of budget."""

    def test_exits_when_alert_cleared(self, config, alerts, speaker, events):
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        fake = FakeTime(parse_timestamp(alert.created_at))
        fake.on_sleep = lambda n: alerts.clear_alert("s1") if n == 2 else None

        sent = _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert sent == 1
        assert fake.sleeps == [300, 300]
        reminders = _reminders(events)
        assert len(reminders) == 1
        assert reminders[0]["data"]["age_minutes"] == 5
        assert reminders[0]["data"]["escalated"] is False

    def test_stops_at_max_reminders(self, config, alerts, speaker, events):
        alert = alerts.set_alert("s1", "api", AlertType.PERMISSION, "permission")
        fake = FakeTime(parse_timestamp(alert.created_at))

        sent = _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert sent == 3
        assert alerts.get_alert("s1").reminder_count == 3
        assert len(fake.sleeps) == 4

    def test_budget_counts_reminders_from_earlier_watchers(self, config, alerts, speaker, events):
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.increment_reminder("s1")
        alerts.increment_reminder("s1")
        fake = FakeTime(parse_timestamp(alert.created_at))

        assert _make_watcher(config, alerts, speaker, events, fake).run("s1") == 1
        assert alerts.get_alert("s1").reminder_count == 3

    def test_unlimited_when_max_is_zero(self, config, alerts, speaker, events):
        config.alerts.max_reminders = 0
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        fake = FakeTime(parse_timestamp(alert.created_at))
        fake.on_sleep = lambda n: alerts.clear_alert("s1") if n == 7 else None

        assert _make_watcher(config, alerts, speaker, events, fake).run("s1") == 6

    def test_escalates_after_urgent_threshold(self, config, alerts, events):
        speaker = MagicMock()
        alert = alerts.set_alert("s1", "api", AlertType.PERMISSION, "permission")
        fake = FakeTime(parse_timestamp(alert.created_at))

        _make_watcher(config, alerts, speaker, events, fake).run("s1")

        templates = [c.args[0] for c in speaker.announce.call_args_list]
        assert templates == ["alertReminder", "alertReminder", "alertEscalation"]
        last = speaker.announce.call_args_list[-1].kwargs
        assert last["minutes"] == 15
        assert last["minutes_suffix"] == " 15 minutes."
        assert [r["data"]["escalated"] for r in _reminders(events)] == [False, False, True]

    def test_never_escalates_when_disabled(self, config, alerts, events):
        config.alerts.urgent_after_minutes = 0
        speaker = MagicMock()
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        fake = FakeTime(parse_timestamp(alert.created_at))

        _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert {c.args[0] for c in speaker.announce.call_args_list} == {"alertReminder"}

    def test_short_escalation_omits_minutes(self, config, alerts, events):
        config.alerts.urgent_after_minutes = 5
        speaker = MagicMock()
        alert = alerts.set_alert("s1", "api", AlertType.ERROR, "failed")
        fake = FakeTime(parse_timestamp(alert.created_at))
        fake.on_sleep = lambda n: alerts.clear_alert("s1") if n == 2 else None

        _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert speaker.announce.call_args.kwargs["minutes_suffix"] == ""

    def test_releases_own_pid_on_exit(self, config, alerts, speaker, events):
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.set_watcher_pid("s1", WATCHER_PID)
        fake = FakeTime(parse_timestamp(alert.created_at))

        _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert alerts.get_alert("s1").watcher_pid is None
        assert any(e["event"] == "watcher_stopped" for e in events.get_recent())

    def test_keeps_other_watchers_pid(self, config, alerts, speaker, events):
        alert = alerts.set_alert("s1", "api", AlertType.INPUT, "waiting")
        alerts.set_watcher_pid("s1", 777)
        fake = FakeTime(parse_timestamp(alert.created_at))

        _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert alerts.get_alert("s1").watcher_pid == 777


class TestInputAlertScenario:
    """Input alert, one reminder, then the user answers."""

    def test_reminder_then_prompt_clears(self, config, alerts, speaker, events):
        from hooked.hooks.prompt_submit import on_prompt_submit

        alert = alerts.set_alert("s1", "web", AlertType.INPUT, "Claude is waiting for your input")
        fake = FakeTime(parse_timestamp(alert.created_at))
        fake.on_sleep = lambda n: on_prompt_submit(alerts, "s1") if n == 2 else None

        sent = _make_watcher(config, alerts, speaker, events, fake).run("s1")

        assert sent == 1
        assert alerts.get_alert("s1") is None
        names = [e["event"] for e in reversed(events.get_recent(200))]
        assert names == ["alert_set", "reminder", "alert_cleared", "watcher_stopped"]


class TestProcessHelpers:
    """Liveness check and detached spawn."""

    def test_current_process_alive(self):
        assert is_process_alive(os.getpid()) is True

    @pytest.mark.parametrize("pid", [None, 0, -1])
    def test_invalid_pids(self, pid):
        assert is_process_alive(pid) is False

    def test_missing_process(self):
        with patch("hooked.alerts.watcher.os.kill", side_effect=ProcessLookupError()):
            assert is_process_alive(123456) is False

    def test_spawn_detaches(self, config):
        process = MagicMock(pid=5150)
        with patch("hooked.alerts.watcher.subprocess.Popen", return_value=process) as popen:
            assert spawn_watcher(config, "s1") == 5150

        args, kwargs = popen.call_args
        assert args[0] == [sys.executable, "-m", "hooked", "reminder", "s1"]
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] == subprocess.DEVNULL
        assert kwargs["env"]["HOOKED_HOME"] == config.home
