"""RCON wire protocol encoding and decoding.

Frame layout (all integers little-endian int32):

    [size | request_id | type | body | 0x00 0x00]

``size`` counts every byte after itself. Decoding is pull-based: callers
accumulate raw socket reads and ask for the next complete frame, so TCP
fragmentation never splits or merges packets.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from .errors import RconMalformedPacket, RconOversizedPacket

# request_id + type + two terminator bytes
META_SIZE = 4 + 4 + 2
HEADER_SIZE = 4
TERMINATOR = b"\x00\x00"

# Largest frame a client may send, size prefix included.
MAX_FRAME_SIZE = 4096
MAX_BODY_SIZE = MAX_FRAME_SIZE - HEADER_SIZE - META_SIZE

# Largest ``size`` value accepted from a server (4096 byte body fragments).
MAX_INCOMING_SIZE = 4110

_SIZE = struct.Struct("<i")
_FRAME_HEAD = struct.Struct("<iii")


class PacketType(IntEnum):
    """RCON packet types.

    EXEC_COMMAND is an alias of AUTH_RESPONSE: both travel as 2 and are told
    apart by session phase and request id, never by value.
    """

    RESPONSE_VALUE = 0
    AUTH_RESPONSE = 2
    EXEC_COMMAND = 2
    AUTH = 3


@dataclass(frozen=True)
class Packet:
    """A single decoded RCON packet."""

    request_id: int
    packet_type: int
    body: bytes = b""

    @property
    def size(self) -> int:
        """Value of the size field for this packet."""
        return META_SIZE + len(self.body)

    def encode(self) -> bytes:
        """Encode the packet into bytes for transmission."""
        return encode_packet(self.request_id, self.packet_type, self.body)


def encode_packet(request_id: int, packet_type: int, body: str | bytes) -> bytes:
    """Build the wire frame for one packet.

    Args:
        request_id: Client chosen request identifier.
        packet_type: Numeric packet type.
        body: Packet body; text is encoded as UTF-8.

    Returns:
        Complete frame including the size prefix.

    Raises:
        RconMalformedPacket: If the body contains a NUL byte.
        RconOversizedPacket: If the frame exceeds MAX_FRAME_SIZE.
    """
    payload = body.encode("utf-8") if isinstance(body, str) else bytes(body)
    if b"\x00" in payload:
        raise RconMalformedPacket("Packet body must not contain NUL bytes")
    if len(payload) > MAX_BODY_SIZE:
        raise RconOversizedPacket(
            f"Packet body is {len(payload)} bytes, limit is {MAX_BODY_SIZE}"
        )

    return (
        _FRAME_HEAD.pack(META_SIZE + len(payload), request_id, packet_type)
        + payload
        + TERMINATOR
    )


def _read_size(data: bytes | bytearray) -> int:
    """Read and validate the size prefix of a frame."""
    (size,) = _SIZE.unpack_from(data, 0)
    if size < META_SIZE:
        raise RconMalformedPacket(f"Invalid size field in RCON packet ({size})")
    if size > MAX_INCOMING_SIZE:
        raise RconOversizedPacket(f"Announced RCON packet is too large ({size})")
    return size


def decode_packet(data: bytes | bytearray) -> Packet:
    """Decode exactly one frame, size prefix included.

    Raises:
        RconMalformedPacket: If the frame is truncated, has trailing data or
            lacks the two NUL terminator bytes.
        RconOversizedPacket: If the declared size exceeds MAX_INCOMING_SIZE.
    """
    if len(data) < HEADER_SIZE:
        raise RconMalformedPacket("Truncated RCON packet header")

    size = _read_size(data)
    if len(data) != HEADER_SIZE + size:
        raise RconMalformedPacket(
            f"RCON packet declares {size} bytes but {len(data) - HEADER_SIZE} "
            "are available"
        )
    if data[-2:] != TERMINATOR:
        raise RconMalformedPacket("RCON packet is not NUL terminated")

    _, request_id, packet_type = _FRAME_HEAD.unpack_from(data, 0)
    return Packet(
        request_id=request_id,
        packet_type=packet_type,
        body=bytes(data[HEADER_SIZE + 8 : -2]),
    )


def decode_frame(buffer: bytes | bytearray) -> tuple[Packet | None, int]:
    """Attempt to decode the first frame in a buffer.

    Returns:
        ``(None, needed)`` when ``needed`` more bytes are required, or
        ``(packet, consumed)`` when one packet was decoded from the first
        ``consumed`` bytes.
    """
    if len(buffer) < HEADER_SIZE:
        return None, HEADER_SIZE - len(buffer)

    total = HEADER_SIZE + _read_size(buffer)
    if len(buffer) < total:
        return None, total - len(buffer)

    return decode_packet(buffer[:total]), total


class PacketDecoder:
    """Streaming decoder over a growable read buffer."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def feed(self, data: bytes) -> None:
        """Append raw bytes read from the socket."""
        self._buffer.extend(data)

    def next_packet(self) -> Packet | None:
        """Return the next complete packet, or None if more bytes are needed."""
        packet, count = decode_frame(self._buffer)
        if packet is None:
            return None
        del self._buffer[:count]
        return packet

    @property
    def bytes_needed(self) -> int:
        """Bytes missing before the next frame is complete (0 if ready)."""
        if len(self._buffer) < HEADER_SIZE:
            return HEADER_SIZE - len(self._buffer)
        (size,) = _SIZE.unpack_from(self._buffer, 0)
        return max(HEADER_SIZE + size - len(self._buffer), 0)

    @property
    def buffered(self) -> int:
        """Number of undecoded bytes held in the buffer."""
        return len(self._buffer)

    def clear(self) -> None:
        """Drop any buffered bytes."""
        self._buffer.clear()
