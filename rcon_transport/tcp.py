"""TCP helpers for dialing an RCON endpoint."""

from __future__ import annotations

import asyncio

from .errors import RconUnreachable


async def open_rcon_connection(
    host: str,
    port: int,
    *,
    timeout: float = 10.0,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Open a TCP stream to the RCON endpoint.

    DNS failures, refused connections and dial timeouts all surface as
    RconUnreachable.
    """
    try:
        return await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise RconUnreachable(
            f"Connecting to {host}:{port} timed out after {timeout}s"
        ) from err
    except OSError as err:
        raise RconUnreachable(f"Failed to connect to {host}:{port}: {err}") from err
