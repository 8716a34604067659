"""Tests for voice announcements."""

import subprocess
from unittest.mock import MagicMock, patch

from hooked.speak import Speaker


class TestSpeaker:
    """Speech is best-effort and never raises."""

    def test_disabled_does_not_run(self, config):
        config.flags.speak = False
        with patch("hooked.speak.subprocess.run") as run:
            assert Speaker(config).speak("hello") is False
        run.assert_not_called()

    def test_missing_binary(self, config):
        config.flags.speak = True
        with patch("hooked.speak.shutil.which", return_value=None):
            assert Speaker(config).speak("hello") is False

    def test_runs_configured_command(self, config):
        config.flags.speak = True
        config.voice.args = ["-v", "Samantha"]
        with patch("hooked.speak.shutil.which", return_value="/usr/bin/say"), \
                patch("hooked.speak.subprocess.run", return_value=MagicMock(returncode=0)) as run:
            assert Speaker(config).speak("hello") is True
        assert run.call_args.args[0] == ["/usr/bin/say", "-v", "Samantha", "hello"]
        assert run.call_args.kwargs["timeout"] == 30

    def test_timeout_swallowed(self, config):
        config.flags.speak = True
        with patch("hooked.speak.shutil.which", return_value="/usr/bin/say"), \
                patch("hooked.speak.subprocess.run", side_effect=subprocess.TimeoutExpired("say", 30)):
            assert Speaker(config).speak("hello") is False

    def test_nonzero_exit(self, config):
        config.flags.speak = True
        with patch("hooked.speak.shutil.which", return_value="/usr/bin/say"), \
                patch("hooked.speak.subprocess.run", return_value=MagicMock(returncode=1, stderr="boom")):
            assert Speaker(config).speak("hello") is False

    def test_announce_returns_rendered_message(self, config):
        message = Speaker(config).announce("checkPassed", project="api")
        assert message == "In api, check passed. Loop complete."
