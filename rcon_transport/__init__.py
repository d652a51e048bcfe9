"""RCON transport package: wire codec, TCP dialing and sessions."""

from .errors import (
    ErrorKind,
    RconAuthError,
    RconClientError,
    RconConnectionLost,
    RconMalformedPacket,
    RconOversizedPacket,
    RconProtocolViolation,
    RconTimeout,
    RconUnreachable,
)
from .protocol import (
    MAX_BODY_SIZE,
    MAX_FRAME_SIZE,
    Packet,
    PacketDecoder,
    PacketType,
    decode_frame,
    decode_packet,
    encode_packet,
)
from .session import RconSession, SessionState
from .tcp import open_rcon_connection

__all__ = [
    "MAX_BODY_SIZE",
    "MAX_FRAME_SIZE",
    "ErrorKind",
    "Packet",
    "PacketDecoder",
    "PacketType",
    "RconAuthError",
    "RconClientError",
    "RconConnectionLost",
    "RconMalformedPacket",
    "RconOversizedPacket",
    "RconProtocolViolation",
    "RconSession",
    "RconTimeout",
    "RconUnreachable",
    "SessionState",
    "decode_frame",
    "decode_packet",
    "encode_packet",
    "open_rcon_connection",
]
