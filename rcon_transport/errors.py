"""Client error types for RCON server interactions."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Stable failure categories reported to callers."""

    UNREACHABLE = "unreachable"
    AUTH_ERROR = "auth_error"
    TIMEOUT = "timeout"
    CONNECTION_LOST = "connection_lost"
    MALFORMED_PACKET = "malformed_packet"
    OVERSIZED_PACKET = "oversized_packet"
    PROTOCOL_VIOLATION = "protocol_violation"


class RconClientError(Exception):
    """Base error for RCON client failures."""

    kind: ErrorKind


class RconUnreachable(RconClientError):
    """Dialing the RCON endpoint failed."""

    kind = ErrorKind.UNREACHABLE


class RconAuthError(RconClientError):
    """The server rejected the RCON password."""

    kind = ErrorKind.AUTH_ERROR


class RconTimeout(RconClientError):
    """No data arrived from the server within the read deadline."""

    kind = ErrorKind.TIMEOUT


class RconConnectionLost(RconClientError):
    """The connection failed in the middle of an exchange."""

    kind = ErrorKind.CONNECTION_LOST


class RconMalformedPacket(RconClientError):
    """A frame violates the RCON wire format."""

    kind = ErrorKind.MALFORMED_PACKET


class RconOversizedPacket(RconClientError):
    """A frame exceeds the protocol size limit."""

    kind = ErrorKind.OVERSIZED_PACKET


class RconProtocolViolation(RconClientError):
    """The server sent an unexpected id or packet type."""

    kind = ErrorKind.PROTOCOL_VIOLATION
