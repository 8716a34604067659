"""
Configuration loading and validation for hooked.

This module handles:
- Locating the hooked home directory ($HOOKED_HOME, default ~/.hooked)
- Loading config.yaml from the home directory
- Environment variable resolution (${VAR} syntax)
- Default values for every field (a missing config file is not an error)
- Caching of the loaded configuration
- Writing the configuration back (used by `hooked config flag`)
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from hooked.utils.fs import FileSystemError, safe_write

HOME_ENV_VAR = "HOOKED_HOME"
CONFIG_FILENAME = "config.yaml"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


DEFAULT_TEMPLATES: dict[str, str] = {
    "loopStarted": "In {project}, loop started. {goal}",
    "checkPassed": "In {project}, check passed. Loop complete.",
    "checkFailed": "In {project}, check failed. Keep working.",
    "pausing": "In {project}, pausing as requested.",
    "manualRound": "In {project}, round {round}. Objective: {objective}",
    "missionComplete": "Mission complete.",
    "alertReminder": "Still waiting in {project}. {type}, {minutes} minutes.",
    "alertEscalation": "Urgent! {project} needs attention. {type}.{minutes_suffix}",
}


@dataclass
class FlagsConfig:
    """Feature switches toggled from the CLI."""
    speak: bool = True                         # Voice announcements
    logging: bool = True                       # Event history (JSONL)


@dataclass
class VoiceConfig:
    """External text-to-speech binary."""
    command: str = "say"                       # Binary that takes the message as its last arg
    args: list[str] = field(default_factory=list)
    timeout_seconds: int = 30


@dataclass
class ContinuationConfig:
    """Stop hook continuation settings."""
    check_timeout_seconds: int = 60            # Timeout for check-mode commands


@dataclass
class AlertsConfig:
    """Attention alerts and reminder watcher settings."""
    enabled: bool = True
    reminder_minutes: float = 5                # Interval between reminders
    max_reminders: int = 3                     # 0 = unlimited
    urgent_after_minutes: float = 15           # 0 = never escalate


@dataclass
class TemplatesConfig:
    """Spoken message templates with {var} placeholders."""
    templates: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TEMPLATES))

    def render(self, key: str, **variables: Any) -> str:
        """Render a template, substituting every {name} placeholder."""
        template = self.templates.get(key, DEFAULT_TEMPLATES.get(key, ""))
        for name, value in variables.items():
            template = template.replace("{" + name + "}", str(value))
        return template


@dataclass
class HookedConfig:
    """
    Main configuration for hooked.

    This is the top-level config loaded from $HOOKED_HOME/config.yaml.
    """
    home: str = ""

    flags: FlagsConfig = field(default_factory=FlagsConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    continuation: ContinuationConfig = field(default_factory=ContinuationConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)

    def __post_init__(self) -> None:
        """Resolve the home directory to an absolute path."""
        self.home = str(Path(self.home or get_home_dir()).expanduser().absolute())

    @property
    def home_path(self) -> Path:
        """Absolute path to the hooked home directory."""
        return Path(self.home)

    @property
    def state_path(self) -> Path:
        """Directory holding one document per bound session."""
        return self.home_path / "state"

    @property
    def alerts_path(self) -> Path:
        """Directory holding one document per pending alert."""
        return self.home_path / "alerts"

    @property
    def history_path(self) -> Path:
        """Directory holding the append-only event log."""
        return self.home_path / "history"

    @property
    def locks_path(self) -> Path:
        """Directory holding advisory lock files."""
        return self.home_path / "locks"

    @property
    def logs_path(self) -> Path:
        """Directory for diagnostic log files."""
        return self.home_path / "logs"

    @property
    def config_file(self) -> Path:
        """Path to config.yaml."""
        return self.home_path / CONFIG_FILENAME

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the config.yaml layout (home is not persisted)."""
        return {
            "flags": asdict(self.flags),
            "voice": asdict(self.voice),
            "continuation": asdict(self.continuation),
            "alerts": asdict(self.alerts),
            "templates": dict(self.templates.templates),
        }


# Module-level cache for the loaded configuration
_config_cache: Optional[HookedConfig] = None


def get_home_dir() -> Path:
    """Return $HOOKED_HOME, or ~/.hooked when unset."""
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".hooked"


def _resolve_env_vars(value: Any) -> Any:
    """
    Resolve environment variables in a value.

    Supports ${VAR} syntax for environment variable substitution.
    Returns the original value if it's not a string.
    """
    if isinstance(value, str):
        pattern = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

        def replace(match: re.Match) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigError(f"Environment variable ${{{var_name}}} is not set")
            return env_value

        return pattern.sub(replace, value)

    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]

    return value


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a config section, which must be a mapping when present."""
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping")
    return value


def _number(data: dict[str, Any], section: str, key: str, default: float) -> Any:
    """Read a numeric field; bools and strings are rejected."""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{section}.{key} must be a number")
    return value


def _flag(data: dict[str, Any], section: str, key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be true or false")
    return value


def _parse_flags_config(data: dict[str, Any]) -> FlagsConfig:
    """Parse flags configuration from dict."""
    return FlagsConfig(
        speak=_flag(data, "flags", "speak", True),
        logging=_flag(data, "flags", "logging", True),
    )


def _parse_voice_config(data: dict[str, Any]) -> VoiceConfig:
    """Parse voice configuration from dict."""
    args = data.get("args", [])
    if not isinstance(args, list):
        raise ConfigError("voice.args must be a list")
    command = data.get("command", "say")
    if not isinstance(command, str) or not command:
        raise ConfigError("voice.command must be a non-empty string")
    timeout = _number(data, "voice", "timeout_seconds", 30)
    if timeout <= 0:
        raise ConfigError("voice.timeout_seconds must be positive")
    return VoiceConfig(command=command, args=[str(a) for a in args], timeout_seconds=timeout)


def _parse_continuation_config(data: dict[str, Any]) -> ContinuationConfig:
    """Parse continuation configuration from dict."""
    timeout = _number(data, "continuation", "check_timeout_seconds", 60)
    if timeout <= 0:
        raise ConfigError("continuation.check_timeout_seconds must be a positive number")
    return ContinuationConfig(check_timeout_seconds=timeout)


def _parse_alerts_config(data: dict[str, Any]) -> AlertsConfig:
    """Parse alerts configuration from dict."""
    config = AlertsConfig(
        enabled=_flag(data, "alerts", "enabled", True),
        reminder_minutes=_number(data, "alerts", "reminder_minutes", 5),
        max_reminders=_number(data, "alerts", "max_reminders", 3),
        urgent_after_minutes=_number(data, "alerts", "urgent_after_minutes", 15),
    )
    if not isinstance(config.max_reminders, int):
        raise ConfigError("alerts.max_reminders must be a whole number")
    if config.reminder_minutes <= 0:
        raise ConfigError("alerts.reminder_minutes must be positive")
    if config.max_reminders < 0 or config.urgent_after_minutes < 0:
        raise ConfigError("alerts.max_reminders and alerts.urgent_after_minutes must not be negative")
    return config


def _parse_templates_config(data: dict[str, Any]) -> TemplatesConfig:
    """Parse templates from dict, layering overrides on the defaults."""
    return TemplatesConfig(templates={**DEFAULT_TEMPLATES, **{k: str(v) for k, v in data.items()}})


def _read_yaml(path: Path) -> Optional[dict[str, Any]]:
    """Load the raw config mapping (None for an empty file)."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")

    if raw_data is None:
        return None
    if not isinstance(raw_data, dict):
        raise ConfigError("Configuration file must contain a mapping")
    return raw_data


def load_config(config_path: Optional[str | Path] = None) -> HookedConfig:
    """
    Load configuration from config.yaml.

    Args:
        config_path: Optional path to config file. If not provided,
                     uses $HOOKED_HOME/config.yaml.

    Returns:
        HookedConfig: Loaded configuration. Defaults when the file is absent.

    Raises:
        ConfigError: If config is invalid or cannot be loaded.
    """
    home = get_home_dir()
    path = Path(config_path) if config_path is not None else home / CONFIG_FILENAME

    if not path.exists():
        return HookedConfig(home=str(home))

    raw_data = _read_yaml(path)
    if raw_data is None:
        return HookedConfig(home=str(home))

    data = _resolve_env_vars(raw_data)

    return HookedConfig(
        home=str(home),
        flags=_parse_flags_config(_section(data, "flags")),
        voice=_parse_voice_config(_section(data, "voice")),
        continuation=_parse_continuation_config(_section(data, "continuation")),
        alerts=_parse_alerts_config(_section(data, "alerts")),
        templates=_parse_templates_config(_section(data, "templates")),
    )


def set_flag(config: HookedConfig, name: str, value: bool) -> Path:
    """
    Change one feature flag in config.yaml, leaving the rest of the file as written.

    ${VAR} references elsewhere in the file are kept unresolved.

    Returns:
        Path: The written config file.

    Raises:
        ConfigError: If the file is invalid or cannot be written.
    """
    path = config.config_file
    raw_data = (_read_yaml(path) if path.exists() else None) or {}
    flags = raw_data.get("flags")
    if flags is None:
        flags = {}
    if not isinstance(flags, dict):
        raise ConfigError("flags must be a mapping")
    flags[name] = value
    raw_data["flags"] = flags

    try:
        safe_write(path, yaml.safe_dump(raw_data, sort_keys=False))
    except FileSystemError as e:
        raise ConfigError(str(e))
    clear_config_cache()
    return path


def save_config(config: HookedConfig) -> Path:
    """
    Write configuration to config.yaml atomically.

    Returns:
        Path: The written config file.

    Raises:
        ConfigError: If the file cannot be written.
    """
    content = yaml.safe_dump(config.to_dict(), sort_keys=False)
    try:
        safe_write(config.config_file, content)
    except FileSystemError as e:
        raise ConfigError(str(e))
    clear_config_cache()
    return config.config_file


def get_config(config_path: Optional[str] = None, force_reload: bool = False) -> HookedConfig:
    """
    Get the cached configuration, loading it if necessary.

    Args:
        config_path: Optional path to config file.
        force_reload: If True, reload configuration even if cached.

    Returns:
        HookedConfig: The loaded configuration.

    Raises:
        ConfigError: If config is invalid or cannot be loaded.
    """
    global _config_cache

    if _config_cache is None or force_reload:
        _config_cache = load_config(config_path)

    return _config_cache


def get_config_or_default() -> HookedConfig:
    """Load config, falling back to defaults when the file is invalid."""
    try:
        return get_config()
    except ConfigError as e:
        logger.warning("Using default configuration: %s", e)
    except Exception as e:
        logger.warning("Unexpected error loading configuration, using defaults: %s", e)
    return HookedConfig(home=str(get_home_dir()))


def clear_config_cache() -> None:
    """Clear the configuration cache. Useful for testing."""
    global _config_cache
    _config_cache = None
