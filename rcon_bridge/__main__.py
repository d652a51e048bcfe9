"""Run the webhook bridge: ``python -m rcon_bridge``."""

from __future__ import annotations

import logging
import os
import sys

from aiohttp import web

from .client import RconCommandClient
from .config import ConfigError, load_config
from .webhook import create_app

_LOGGER = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config()
    except ConfigError as err:
        _LOGGER.error("Fatal error: %s", err)
        return 1

    client = RconCommandClient.from_config(config.rcon)
    app = create_app(config, client)

    _LOGGER.info(
        "Forwarding webhooks on %s:%d to RCON at %s",
        config.server.host,
        config.server.port,
        client.endpoint,
    )
    web.run_app(app, host=config.server.host, port=config.server.port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
