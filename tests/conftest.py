"""Pytest configuration and fixtures for RCON bridge tests."""

from __future__ import annotations

import asyncio
import struct
from collections.abc import Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

from rcon_transport.protocol import Packet, PacketDecoder


def build_frame(request_id: int, packet_type: int, body: bytes | str = b"") -> bytes:
    """Pack a frame by hand, independent of the codec under test."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return (
        struct.pack("<iii", len(body) + 10, request_id, packet_type) + body + b"\x00\x00"
    )


class FakeReader:
    """Stream reader double returning one scripted chunk per read.

    Once the chunks are exhausted, reads return b"" when ``eof`` is set and
    block forever otherwise.
    """

    def __init__(self, chunks: Iterable[bytes] = (), *, eof: bool = True) -> None:
        self._chunks = list(chunks)
        self._eof = eof
        self.reads = 0

    async def read(self, n: int = -1) -> bytes:
        self.reads += 1
        if self._chunks:
            return self._chunks.pop(0)
        if self._eof:
            return b""
        await asyncio.get_running_loop().create_future()
        return b""


def create_mock_writer() -> MagicMock:
    """Create a mock asyncio StreamWriter."""
    writer = MagicMock(spec=asyncio.StreamWriter)
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    writer.is_closing.return_value = False
    return writer


def sent_packets(writer: MagicMock) -> list[Packet]:
    """Decode everything written to a mock writer."""
    decoder = PacketDecoder()
    for call in writer.write.call_args_list:
        decoder.feed(call.args[0])
    packets = []
    while (packet := decoder.next_packet()) is not None:
        packets.append(packet)
    return packets


@pytest.fixture
def mock_writer() -> MagicMock:
    """Create a mock asyncio StreamWriter."""
    return create_mock_writer()
