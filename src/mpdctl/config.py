"""Configuration management for mpdctl."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from .protocol.messages import DEFAULT_PORT


@dataclass
class ConnectionConfig:
    """Where to find the daemon."""

    host: str = "localhost"
    port: int = DEFAULT_PORT


@dataclass
class NotifierConfig:
    """Change notifier timing, in seconds."""

    poll_interval: float = 0.1
    reconnect_delay: float = 2.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "warning"
    log_file: str = ""


@dataclass
class Config:
    """Full mpdctl configuration."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    notifier: NotifierConfig = field(default_factory=NotifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the mpdctl config directory."""
    if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config) / "mpdctl"
    return Path.home() / ".config" / "mpdctl"


def get_state_dir() -> Path:
    """Get the mpdctl state directory (for logs)."""
    if xdg_state := os.environ.get("XDG_STATE_HOME"):
        return Path(xdg_state) / "mpdctl"
    return Path.home() / ".local" / "state" / "mpdctl"


def _apply_env(config: Config) -> Config:
    # MPD_HOST / MPD_PORT follow the conventions of the stock mpc client.
    if host := os.environ.get("MPD_HOST"):
        config.connection.host = host
    if port := os.environ.get("MPD_PORT"):
        try:
            config.connection.port = int(port)
        except ValueError as e:
            raise ValueError(f"Invalid MPD_PORT: {port!r}") from e
    return config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file, then apply environment overrides."""
    config_file = path or get_config_dir() / "config.toml"

    if not config_file.exists():
        return _apply_env(Config())

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    return _apply_env(
        Config(
            connection=ConnectionConfig(**data.get("connection", {})),
            notifier=NotifierConfig(**data.get("notifier", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )
    )


def get_log_file(config: Config) -> Path | None:
    """Resolve the configured log file, relative paths under the state dir."""
    if not config.logging.log_file:
        return None
    log_file = Path(config.logging.log_file).expanduser()
    if not log_file.is_absolute():
        log_file = get_state_dir() / log_file
    return log_file
