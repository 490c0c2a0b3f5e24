"""
Message-delimited transport for protocol frames.

One protocol frame == one binary WebSocket message. No splitting or
reassembly happens at this layer.

Sessions depend only on the Connection protocol and a Connector
callable, so tests can inject an in-memory connection.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Mapping, Protocol

from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from constants import WS_MAX_MESSAGE_BYTES
from protocol.errors import TransportError


class Connection(Protocol):
    """Minimal frame transport used by sessions."""

    async def send(self, data: bytes) -> None: ...

    async def receive(self) -> bytes: ...

    async def close(self) -> None: ...


Connector = Callable[[str, Mapping[str, str]], Awaitable[Connection]]


class WebSocketConnection:
    """
    Connection backed by a websockets client connection.

    Every failure is re-raised as TransportError tagged with its stage.
    """

    def __init__(self, ws: ClientConnection) -> None:
        self._ws = ws

    async def send(self, data: bytes) -> None:
        try:
            await self._ws.send(data)
        except (WebSocketException, OSError) as e:
            raise TransportError("send", repr(e)) from e

    async def receive(self) -> bytes:
        try:
            message = await self._ws.recv()
        except (WebSocketException, OSError) as e:
            raise TransportError("receive", repr(e)) from e

        if isinstance(message, str):
            return message.encode("utf-8")
        return message

    async def close(self) -> None:
        try:
            await self._ws.close()
        except (WebSocketException, OSError):
            # Session result is already decided; a failed close changes nothing
            pass


async def connect(url: str, headers: Mapping[str, str]) -> Connection:
    """
    Open a persistent WebSocket connection with auth headers.

    Raises:
        TransportError(stage="connect")
    """
    try:
        ws = await ws_connect(
            url,
            additional_headers=dict(headers),
            max_size=WS_MAX_MESSAGE_BYTES,
            ping_interval=None,
        )
    except (WebSocketException, OSError, asyncio.TimeoutError) as e:
        raise TransportError("connect", repr(e)) from e

    return WebSocketConnection(ws)
