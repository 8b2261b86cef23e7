"""Exporter configuration: environment variables over QSettings over defaults."""

import logging
import os
import socket
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QObject, QSettings

logger = logging.getLogger(__name__)

# Default values
DEFAULTS = {
    "general/dataDir": "~/.claude",
    "general/instanceId": "",
    "polling/pollInterval": 30000,
    "polling/activeHours": 1,
    "export/endpoint": "http://otel-collector:4317",
    "export/interval": 10000,
    "export/shutdownTimeout": 5000,
    "advanced/debugLogging": False,
}

# Environment variables take precedence over stored settings
ENV_VARS = {
    "general/dataDir": "CLAUDE_DATA_DIR",
    "general/instanceId": "INSTANCE_ID",
    "polling/pollInterval": "POLL_INTERVAL",
    "polling/activeHours": "ACTIVE_SESSION_HOURS",
    "export/endpoint": "OTEL_EXPORTER_OTLP_ENDPOINT",
    "export/interval": "EXPORT_INTERVAL",
    "export/shutdownTimeout": "EXPORT_SHUTDOWN_TIMEOUT",
    "advanced/debugLogging": "DEBUG_LOGGING",
}


class ConfigError(ValueError):
    """Raised when the effective configuration is unusable."""


@dataclass(frozen=True)
class ExporterConfig:
    data_dir: Path
    instance_id: str
    poll_interval_ms: int
    active_window_seconds: float
    otlp_endpoint: str
    export_interval_ms: int
    shutdown_timeout_ms: int
    debug_logging: bool = False


class ConfigManager(QObject):
    """Centralized exporter settings."""

    def __init__(self, parent=None, environ: dict[str, str] | None = None):
        super().__init__(parent)
        self._settings = QSettings()
        self._environ = os.environ if environ is None else environ

    def _raw(self, key: str):
        env_name = ENV_VARS.get(key)
        if env_name:
            env_val = self._environ.get(env_name)
            if env_val not in (None, ""):
                return env_val
        return self._settings.value(key, DEFAULTS.get(key, ""))

    def get_string(self, key: str) -> str:
        return str(self._raw(key))

    def get_int(self, key: str) -> int:
        val = self._raw(key)
        try:
            return int(val)
        except (ValueError, TypeError):
            logger.warning("Invalid integer for %s: %r, using default", key, val)
            return DEFAULTS.get(key, 0)

    def get_bool(self, key: str) -> bool:
        val = self._raw(key)
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    def load_config(self) -> ExporterConfig:
        """Resolve and validate the effective configuration."""
        data_dir = self.get_string("general/dataDir").strip()
        if not data_dir:
            raise ConfigError("Claude data directory must not be empty")

        instance_id = self.get_string("general/instanceId").strip() or socket.gethostname()
        if not instance_id:
            raise ConfigError("Instance ID must not be empty")

        endpoint = self.get_string("export/endpoint").strip()
        if not endpoint:
            raise ConfigError("OTLP endpoint must not be empty")

        poll_interval = self.get_int("polling/pollInterval")
        active_hours = self.get_int("polling/activeHours")
        export_interval = self.get_int("export/interval")
        shutdown_timeout = self.get_int("export/shutdownTimeout")
        for name, value in (
            ("poll interval", poll_interval),
            ("active session window", active_hours),
            ("export interval", export_interval),
            ("shutdown timeout", shutdown_timeout),
        ):
            if value <= 0:
                raise ConfigError(f"{name} must be positive (got {value})")

        return ExporterConfig(
            data_dir=Path(data_dir).expanduser(),
            instance_id=instance_id,
            poll_interval_ms=poll_interval,
            active_window_seconds=active_hours * 60 * 60,
            otlp_endpoint=endpoint,
            export_interval_ms=export_interval,
            shutdown_timeout_ms=shutdown_timeout,
            debug_logging=self.get_bool("advanced/debugLogging"),
        )
