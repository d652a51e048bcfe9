"""Command client facade over RCON sessions.

The client owns at most one live session. It dials lazily, reuses the
session across calls, serializes commands, and replaces the session after
any failure. Errors never escape ``execute``; they are reported as a failed
``RconOutcome`` carrying a stable ``ErrorKind``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rcon_transport.errors import ErrorKind, RconClientError, RconConnectionLost
from rcon_transport.session import RconSession

if TYPE_CHECKING:
    from types import TracebackType

    from .config import RconConfig

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RconOutcome:
    """Result of one command execution."""

    ok: bool
    text: str = ""
    error: ErrorKind | None = None
    detail: str | None = None

    @classmethod
    def success(cls, text: str) -> RconOutcome:
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str) -> RconOutcome:
        return cls(ok=False, error=error, detail=detail)


class RconCommandClient:
    """Execute RCON commands against one configured endpoint.

    Usage:
        async with RconCommandClient("127.0.0.1", 25575, "secret") as client:
            outcome = await client.execute("time set day")
            if outcome.ok:
                print(outcome.text)
    """

    def __init__(
        self,
        host: str,
        port: int,
        password: str,
        *,
        connect_timeout: float = 10.0,
        read_timeout: float = 10.0,
        idle_timeout: float | None = None,
    ) -> None:
        """Initialize client.

        Args:
            host: RCON server hostname or IP
            port: RCON server port
            password: RCON password
            connect_timeout: Dial deadline (seconds)
            read_timeout: Deadline for each socket read (seconds)
            idle_timeout: Replace sessions unused for longer than this (seconds)
        """
        self.host = host
        self.port = port
        self._password = password
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._idle_timeout = idle_timeout

        self._session: RconSession | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: RconConfig) -> RconCommandClient:
        """Build a client from the rcon section of the bridge config."""
        return cls(
            config.host,
            config.port,
            config.password,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            idle_timeout=config.idle_timeout,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_connected(self) -> bool:
        """Check if an authenticated session is available for reuse."""
        return self._session is not None and self._session.is_authenticated

    async def execute(self, command: str) -> RconOutcome:
        """Execute a command, reconnecting once if the connection dropped.

        Returns:
            Success with the reassembled response text, or a failure with the
            error kind and a human readable detail.
        """
        async with self._lock:
            try:
                text = await self._execute_with_retry(command)
            except RconClientError as err:
                self._drop_closed_session()
                if err.kind is ErrorKind.AUTH_ERROR:
                    _LOGGER.error("[%s] %s", self.endpoint, err)
                else:
                    _LOGGER.warning(
                        "[%s] Command failed (%s): %s",
                        self.endpoint,
                        err.kind.value,
                        err,
                    )
                return RconOutcome.failure(err.kind, str(err))

        return RconOutcome.success(text)

    async def close(self) -> None:
        """Close the live session, if any."""
        async with self._lock:
            if self._session is not None:
                await self._session.close()
                self._session = None

    async def __aenter__(self) -> RconCommandClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def _execute_with_retry(self, command: str) -> str:
        try:
            return await self._execute_once(command)
        except RconConnectionLost as err:
            _LOGGER.warning(
                "[%s] Connection lost (%s), reconnecting and retrying once",
                self.endpoint,
                err,
            )
            self._session = None
            return await self._execute_once(command)

    async def _execute_once(self, command: str) -> str:
        session = await self._ensure_session()
        return await session.execute(command)

    async def _ensure_session(self) -> RconSession:
        """Return a usable session, dialing a new one when needed."""
        session = self._session

        if (
            session is not None
            and not session.is_closed
            and self._idle_timeout is not None
            and time.monotonic() - session.last_used > self._idle_timeout
        ):
            _LOGGER.info("[%s] Session idle, reconnecting", self.endpoint)
            await session.close()
            session = None

        if session is None or session.is_closed:
            self._session = None
            session = await RconSession.connect(
                self.host,
                self.port,
                self._password,
                connect_timeout=self._connect_timeout,
                read_timeout=self._read_timeout,
            )
            self._session = session

        return session

    def _drop_closed_session(self) -> None:
        if self._session is not None and self._session.is_closed:
            self._session = None
