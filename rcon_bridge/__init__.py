"""Bridge HTTP webhooks to a game server's RCON console."""

__version__ = "0.1.0"

from .client import RconCommandClient, RconOutcome
from .config import (
    BridgeConfig,
    ConfigError,
    RconConfig,
    ServerConfig,
    load_config,
    parse_config,
)
from .webhook import WebhookTable, create_app

__all__ = [
    "BridgeConfig",
    "ConfigError",
    "RconCommandClient",
    "RconConfig",
    "RconOutcome",
    "ServerConfig",
    "WebhookTable",
    "create_app",
    "load_config",
    "parse_config",
]
