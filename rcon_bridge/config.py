"""Bridge configuration loading.

The configuration is a single YAML file with three sections: the HTTP
listener, the RCON endpoint, and the webhook table mapping webhook names to
fixed command strings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILE_ENV = "CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.yaml"

DEFAULT_RCON_PORT = 25575


class ConfigError(Exception):
    """Error loading or validating the bridge configuration."""


@dataclass(frozen=True)
class ServerConfig:
    """HTTP listener settings.

    Attributes:
        host: Interface to bind.
        port: TCP port to listen on.
    """

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass(frozen=True)
class RconConfig:
    """RCON endpoint settings.

    Attributes:
        host: Game server hostname or IP.
        port: RCON port.
        password: RCON password.
        connect_timeout: Dial deadline in seconds.
        read_timeout: Per-read deadline in seconds.
        idle_timeout: Sessions idle for longer are replaced (None disables).
    """

    host: str
    password: str = field(repr=False)
    port: int = DEFAULT_RCON_PORT
    connect_timeout: float = 10.0
    read_timeout: float = 10.0
    idle_timeout: float | None = None


@dataclass(frozen=True)
class BridgeConfig:
    """Complete bridge configuration."""

    server: ServerConfig
    rcon: RconConfig
    webhooks: dict[str, str] = field(default_factory=lambda: {})


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise ConfigError(f"File not found: {path}")
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as err:
        raise ConfigError(f"Invalid YAML in {path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")
    return data


def _section(data: dict[str, Any], name: str, *, required: bool) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        if required:
            raise ConfigError(f"Missing required section: {name}")
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Section {name} must be a mapping")
    return value


def _number(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{key} must be a positive number, got {value!r}")
    return float(value)


def _port(section: dict[str, Any], default: int) -> int:
    value = section.get("port", default)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value < 65536:
        raise ConfigError(f"port must be an integer between 1 and 65535, got {value!r}")
    return value


def parse_config(data: dict[str, Any]) -> BridgeConfig:
    """Build a BridgeConfig from already parsed YAML data.

    Raises:
        ConfigError: If a required key is missing or has the wrong type.
    """
    server_data = _section(data, "server", required=False)
    server = ServerConfig(
        host=str(server_data.get("host", ServerConfig.host)),
        port=_port(server_data, ServerConfig.port),
    )

    rcon_data = _section(data, "rcon", required=True)
    host = rcon_data.get("host")
    if not isinstance(host, str) or not host:
        raise ConfigError("rcon.host is required")
    password = rcon_data.get("password")
    if not isinstance(password, str):
        raise ConfigError("rcon.password is required")

    idle_timeout = None
    if rcon_data.get("idle_timeout") is not None:
        idle_timeout = _number(rcon_data, "idle_timeout", 0)

    rcon = RconConfig(
        host=host,
        password=password,
        port=_port(rcon_data, DEFAULT_RCON_PORT),
        connect_timeout=_number(rcon_data, "connect_timeout", 10.0),
        read_timeout=_number(rcon_data, "read_timeout", 10.0),
        idle_timeout=idle_timeout,
    )

    webhooks: dict[str, str] = {}
    for name, command in _section(data, "webhooks", required=False).items():
        if not isinstance(command, str):
            raise ConfigError(f"Webhook {name!r} must map to a command string")
        webhooks[str(name)] = command

    return BridgeConfig(server=server, rcon=rcon, webhooks=webhooks)


def load_config(path: Path | str | None = None) -> BridgeConfig:
    """Load the bridge configuration.

    Args:
        path: Config file path. Falls back to $CONFIG_FILE, then config.yaml.

    Returns:
        Parsed BridgeConfig.
    """
    if path is None:
        path = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
    return parse_config(_load_yaml(Path(path)))
