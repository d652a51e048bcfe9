"""Tests for the aiohttp webhook endpoint."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from rcon_bridge import RconOutcome, WebhookTable, create_app
from rcon_bridge.config import BridgeConfig, RconConfig, ServerConfig
from rcon_transport.errors import ErrorKind


@pytest.fixture
def bridge_config() -> BridgeConfig:
    """Create a config with two webhooks."""
    return BridgeConfig(
        server=ServerConfig(),
        rcon=RconConfig(host="mc.example", password="secret"),
        webhooks={"hello": "say Hello World", "day": "time set day"},
    )


@pytest.fixture
def rcon_client() -> MagicMock:
    """Create a mock RconCommandClient."""
    client = MagicMock()
    client.execute = AsyncMock(return_value=RconOutcome.success("Said: Hello World"))
    client.close = AsyncMock()
    return client


class TestWebhookTable:
    """Tests for the blinded webhook table."""

    def test_lookup(self):
        table = WebhookTable({"hello": "say Hello World"})
        assert table.lookup("hello") == "say Hello World"
        assert table.lookup(b"hello") == "say Hello World"
        assert len(table) == 1

    def test_unknown_name(self):
        table = WebhookTable({"hello": "say Hello World"})
        assert table.lookup("hell") is None
        assert table.lookup("") is None

    def test_names_are_not_stored(self):
        """Test raw webhook names are not kept in the table."""
        table = WebhookTable({"hello": "say Hello World"}, key=b"k" * 32)
        assert "hello" not in table._hooks
        assert b"hello" not in table._hooks

    def test_random_key_per_table(self):
        """Test each table blinds names under its own key."""
        first = WebhookTable({"hello": "a"})
        second = WebhookTable({"hello": "a"})
        assert first._hooks.keys() != second._hooks.keys()


class TestWebhookEndpoint:
    """Tests for POST /api/{name}."""

    async def test_success(self, bridge_config: BridgeConfig, rcon_client: MagicMock):
        """Test a known webhook executes its command and returns the text."""
        app = create_app(bridge_config, rcon_client)

        async with test_utils.TestClient(test_utils.TestServer(app)) as http:
            resp = await http.post("/api/hello")

            assert resp.status == 200
            assert resp.content_type == "text/plain"
            assert await resp.text() == "Said: Hello World"

        rcon_client.execute.assert_awaited_once_with("say Hello World")

    async def test_unknown_webhook(
        self, bridge_config: BridgeConfig, rcon_client: MagicMock
    ):
        """Test unknown names answer 404 without touching RCON."""
        app = create_app(bridge_config, rcon_client)

        async with test_utils.TestClient(test_utils.TestServer(app)) as http:
            resp = await http.post("/api/nope")
            assert resp.status == 404

        rcon_client.execute.assert_not_called()

    async def test_method_not_allowed(
        self, bridge_config: BridgeConfig, rcon_client: MagicMock
    ):
        """Test non-POST requests answer 405."""
        app = create_app(bridge_config, rcon_client)

        async with test_utils.TestClient(test_utils.TestServer(app)) as http:
            resp = await http.get("/api/hello")
            assert resp.status == 405

        rcon_client.execute.assert_not_called()

    async def test_rcon_failure(
        self, bridge_config: BridgeConfig, rcon_client: MagicMock
    ):
        """Test failed commands answer 500 with an empty body."""
        rcon_client.execute.return_value = RconOutcome.failure(
            ErrorKind.UNREACHABLE, "refused"
        )
        app = create_app(bridge_config, rcon_client)

        async with test_utils.TestClient(test_utils.TestServer(app)) as http:
            resp = await http.post("/api/day")

            assert resp.status == 500
            assert await resp.text() == ""

        rcon_client.execute.assert_awaited_once_with("time set day")

    async def test_client_closed_on_cleanup(
        self, bridge_config: BridgeConfig, rcon_client: MagicMock
    ):
        """Test shutting down the app closes the RCON client."""
        app = create_app(bridge_config, rcon_client)

        async with test_utils.TestClient(test_utils.TestServer(app)):
            pass

        rcon_client.close.assert_awaited_once()
