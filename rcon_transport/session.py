"""RCON session over a single TCP connection.

A session owns one stream pair and handles:
- Authentication handshake
- Request id allocation
- Command dispatch with end-of-response marker
- Reassembly of multi-packet responses

Only one exchange is in flight at a time. Any I/O, framing or protocol
failure closes the session for good; reconnecting is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum

from .errors import (
    RconAuthError,
    RconClientError,
    RconConnectionLost,
    RconProtocolViolation,
    RconTimeout,
)
from .protocol import Packet, PacketDecoder, PacketType, encode_packet
from .tcp import open_rcon_connection

_LOGGER = logging.getLogger(__name__)

INT32_MAX = 2**31 - 1
AUTH_FAILED_ID = -1
READ_CHUNK_SIZE = 4096


class SessionState(Enum):
    """Lifecycle states of an RCON session."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"
    CLOSED = "closed"


class RconSession:
    """Authenticated RCON channel to a game server.

    Usage:
        session = await RconSession.connect("127.0.0.1", 25575, "secret")
        text = await session.execute("list")
        await session.close()
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        name: str = "rcon",
        read_timeout: float = 10.0,
    ) -> None:
        """Initialize session around an open stream pair.

        Args:
            reader: Stream reader of the connection
            writer: Stream writer of the connection
            name: Label used in log messages (usually host:port)
            read_timeout: Deadline for every socket read and drain (seconds)
        """
        self.name = name
        self._reader = reader
        self._writer = writer
        self._read_timeout = read_timeout

        self._state = SessionState.UNAUTHENTICATED
        self._request_id = 0
        self._decoder = PacketDecoder()
        self._in_flight = False

        self.last_used = time.monotonic()

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        password: str,
        *,
        connect_timeout: float = 10.0,
        read_timeout: float = 10.0,
    ) -> RconSession:
        """Dial the endpoint and authenticate.

        Raises:
            RconUnreachable: If the endpoint cannot be dialed
            RconAuthError: If the password is rejected
        """
        reader, writer = await open_rcon_connection(
            host, port, timeout=connect_timeout
        )
        _LOGGER.info("[%s:%s] Connected, authenticating", host, port)

        session = cls(
            reader, writer, name=f"{host}:{port}", read_timeout=read_timeout
        )
        await session.authenticate(password)
        return session

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Get current session state."""
        return self._state

    @property
    def is_authenticated(self) -> bool:
        """Check if the session can execute commands."""
        return self._state is SessionState.AUTHENTICATED

    @property
    def is_closed(self) -> bool:
        """Check if the session reached a terminal state."""
        return self._state in (SessionState.FAILED, SessionState.CLOSED)

    @property
    def request_id(self) -> int:
        """Last request id handed out on this connection."""
        return self._request_id

    async def authenticate(self, password: str) -> None:
        """Perform the authentication handshake.

        Raises:
            RconAuthError: If the server answers with id -1
            RconProtocolViolation: If anything but the matching auth response
                arrives first
        """
        if self._state is not SessionState.UNAUTHENTICATED:
            raise RconProtocolViolation(
                f"Cannot authenticate a session in state {self._state.value}"
            )

        auth_id = self._next_request_id()
        try:
            await self._send(encode_packet(auth_id, PacketType.AUTH, password))
            packet = await self._read_packet()

            if packet.packet_type != PacketType.AUTH_RESPONSE:
                raise RconProtocolViolation(
                    f"Expected auth response, got packet type {packet.packet_type}"
                )
            if packet.request_id == AUTH_FAILED_ID:
                self._set_state(SessionState.FAILED)
                raise RconAuthError("RCON authentication failed: wrong password")
            if packet.request_id != auth_id:
                raise RconProtocolViolation(
                    f"Auth response id {packet.request_id} does not match {auth_id}"
                )
        except (RconClientError, asyncio.CancelledError):
            self._teardown()
            raise

        self._set_state(SessionState.AUTHENTICATED)
        self.last_used = time.monotonic()

    async def execute(self, command: str) -> str:
        """Execute a command and return the reassembled response text.

        The command is followed by an empty command with the same id; the
        server answers it with one empty response, which marks the end of
        the real response.

        Raises:
            RconProtocolViolation: If the session is not authenticated, busy,
                or the server sends an unexpected id or type
            RconTimeout: If a read exceeds the deadline
            RconConnectionLost: If the connection drops mid-exchange
        """
        if self._in_flight:
            raise RconProtocolViolation("Another command is already in flight")
        if self._state is not SessionState.AUTHENTICATED:
            raise RconProtocolViolation(
                f"Cannot execute command in state {self._state.value}"
            )

        request_id = self._next_request_id()
        frames = encode_packet(
            request_id, PacketType.EXEC_COMMAND, command
        ) + encode_packet(request_id, PacketType.EXEC_COMMAND, b"")

        self._in_flight = True
        try:
            await self._send(frames)
            chunks = await self._collect_response(request_id)
        except (RconClientError, asyncio.CancelledError):
            self._teardown()
            raise
        finally:
            self._in_flight = False

        self.last_used = time.monotonic()
        _LOGGER.debug(
            "[%s] Command id=%d answered with %d packet(s)",
            self.name,
            request_id,
            len(chunks),
        )
        return b"".join(chunks).decode("utf-8", errors="replace")

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._writer.is_closing():
            self._teardown()
            return

        _LOGGER.info("[%s] Closing session", self.name)
        self._teardown()
        try:
            await asyncio.wait_for(self._writer.wait_closed(), timeout=2.0)
        except TimeoutError:
            _LOGGER.warning("[%s] Connection close timed out", self.name)
        except OSError as err:
            _LOGGER.debug("[%s] Error while closing: %s", self.name, err)

    # -------------------------------------------------------------------------
    # Internal: Reassembly
    # -------------------------------------------------------------------------

    async def _collect_response(self, request_id: int) -> list[bytes]:
        """Read response packets until the empty end marker arrives."""
        chunks: list[bytes] = []
        while True:
            packet = await self._read_packet()

            if packet.request_id != request_id:
                raise RconProtocolViolation(
                    f"Response id {packet.request_id} does not match "
                    f"pending request {request_id}"
                )
            if packet.packet_type != PacketType.RESPONSE_VALUE:
                raise RconProtocolViolation(
                    f"Unexpected packet type {packet.packet_type} in response "
                    f"to request {request_id}"
                )
            if not packet.body:
                return chunks
            chunks.append(packet.body)

    # -------------------------------------------------------------------------
    # Internal: I/O
    # -------------------------------------------------------------------------

    def _next_request_id(self) -> int:
        """Allocate the next request id, wrapping back to 1 after int32 max."""
        if self._request_id >= INT32_MAX or self._request_id < 1:
            self._request_id = 1
        else:
            self._request_id += 1
        return self._request_id

    async def _send(self, data: bytes) -> None:
        """Write frames to the socket and wait for the buffer to drain."""
        try:
            self._writer.write(data)
            await asyncio.wait_for(self._writer.drain(), timeout=self._read_timeout)
        except TimeoutError as err:
            raise RconTimeout(
                f"Sending to server timed out after {self._read_timeout}s"
            ) from err
        except OSError as err:
            raise RconConnectionLost(f"Failed to send to server: {err}") from err

    async def _read_packet(self) -> Packet:
        """Return the next packet, reading from the socket as needed."""
        while (packet := self._decoder.next_packet()) is None:
            self._decoder.feed(await self._read_chunk())

        _LOGGER.debug(
            "[%s] Received packet id=%d type=%d (%d bytes)",
            self.name,
            packet.request_id,
            packet.packet_type,
            len(packet.body),
        )
        return packet

    async def _read_chunk(self) -> bytes:
        """Read whatever bytes are available, bounded by the read deadline."""
        try:
            data = await asyncio.wait_for(
                self._reader.read(READ_CHUNK_SIZE), timeout=self._read_timeout
            )
        except TimeoutError as err:
            raise RconTimeout(
                f"No data from server within {self._read_timeout}s "
                f"({self._decoder.bytes_needed} bytes outstanding)"
            ) from err
        except OSError as err:
            raise RconConnectionLost(f"Failed to read from server: {err}") from err

        if not data:
            raise RconConnectionLost("Connection closed by server")
        return data

    # -------------------------------------------------------------------------
    # Internal: State Machine
    # -------------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        """Update session state."""
        if self._state is not state:
            _LOGGER.debug(
                "[%s] State: %s → %s", self.name, self._state.value, state.value
            )
            self._state = state

    def _teardown(self) -> None:
        """Move to a terminal state and close the transport."""
        if self._state is not SessionState.FAILED:
            self._set_state(SessionState.CLOSED)
        self._decoder.clear()
        self._writer.close()
