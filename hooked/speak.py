"""
Voice announcements for hooked.

Speech is delegated to an external text-to-speech binary (``say`` by default,
configurable under ``voice`` in config.yaml). Speaking is best-effort: a
missing binary, a non-zero exit or a timeout is logged and swallowed.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Any, Optional

from hooked.config import HookedConfig

logger = logging.getLogger(__name__)


class Speaker:
    """Speaks messages through the configured TTS command."""

    def __init__(self, config: HookedConfig, logger_: Optional[logging.Logger] = None) -> None:
        self.config = config
        self._logger = logger_ or logger

    @property
    def enabled(self) -> bool:
        return self.config.flags.speak

    def render(self, template: str, **variables: Any) -> str:
        """Render a configured template."""
        return self.config.templates.render(template, **variables)

    def speak(self, message: str) -> bool:
        """
        Speak a message.

        Args:
            message: Text to speak.

        Returns:
            True if the TTS command ran and exited 0, False otherwise.
        """
        if not self.enabled or not message:
            return False

        voice = self.config.voice
        binary = shutil.which(voice.command)
        if binary is None:
            self._logger.debug("TTS command %r not found, skipping: %s", voice.command, message)
            return False

        try:
            result = subprocess.run(
                [binary, *voice.args, message],
                capture_output=True,
                text=True,
                timeout=voice.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            self._logger.warning("TTS command timed out after %ss", voice.timeout_seconds)
            return False
        except OSError as e:
            self._logger.warning("Failed to speak: %s", e)
            return False

        if result.returncode != 0:
            self._logger.warning(
                "TTS command exited %s: %s", result.returncode, result.stderr.strip()[:200]
            )
            return False
        return True

    def announce(self, template: str, **variables: Any) -> str:
        """
        Render a template and speak it.

        Returns:
            The rendered message (whether or not it was spoken).
        """
        message = self.render(template, **variables)
        try:
            self.speak(message)
        except Exception as e:
            self._logger.warning("Announcement %s failed: %s", template, e)
        return message
