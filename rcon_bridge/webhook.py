"""HTTP webhook endpoint that triggers predefined RCON commands.

Webhook names work as bearer secrets, so the table is never compared
against raw names: every name is keyed by an HMAC under a per-process
random key, and incoming names are hashed the same way before lookup.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from collections.abc import Mapping
from typing import TYPE_CHECKING

from aiohttp import web

if TYPE_CHECKING:
    from .client import RconCommandClient
    from .config import BridgeConfig

_LOGGER = logging.getLogger(__name__)

WEBHOOK_ROUTE = "/api/{name}"

CLIENT_KEY: web.AppKey[RconCommandClient] = web.AppKey("rcon_client")
TABLE_KEY: web.AppKey[WebhookTable] = web.AppKey("webhook_table")


class WebhookTable:
    """Blinded lookup table from webhook name to command text."""

    def __init__(self, hooks: Mapping[str, str], *, key: bytes | None = None) -> None:
        self._key = key or secrets.token_bytes(32)
        self._hooks = {self._blind(name): command for name, command in hooks.items()}

    def _blind(self, name: str | bytes) -> bytes:
        raw = name.encode("utf-8") if isinstance(name, str) else name
        return hmac.new(self._key, raw, hashlib.sha256).digest()

    def lookup(self, name: str | bytes) -> str | None:
        """Return the command for a webhook name, or None if unknown."""
        return self._hooks.get(self._blind(name))

    def __len__(self) -> int:
        return len(self._hooks)


async def handle_webhook(request: web.Request) -> web.Response:
    """Execute the command bound to the requested webhook."""
    table = request.app[TABLE_KEY]
    client = request.app[CLIENT_KEY]

    command = table.lookup(request.match_info["name"])
    if command is None:
        _LOGGER.warning("Invalid webhook name: %s", request.path)
        return web.Response(status=404)

    outcome = await client.execute(command)
    if not outcome.ok:
        _LOGGER.error(
            "Failed to execute RCON command (%s): %s",
            outcome.error.value if outcome.error else "unknown",
            outcome.detail,
        )
        return web.Response(status=500)

    return web.Response(status=200, text=outcome.text, content_type="text/plain")


async def _close_client(app: web.Application) -> None:
    await app[CLIENT_KEY].close()


def create_app(config: BridgeConfig, client: RconCommandClient) -> web.Application:
    """Build the aiohttp application serving the webhook endpoint."""
    app = web.Application()
    app[CLIENT_KEY] = client
    app[TABLE_KEY] = WebhookTable(config.webhooks)
    app.router.add_post(WEBHOOK_ROUTE, handle_webhook)
    app.on_cleanup.append(_close_client)

    _LOGGER.info("Serving %d webhook(s)", len(app[TABLE_KEY]))
    return app
