"""Line-framed stream client for the SmartFriends gateway."""

from __future__ import annotations

import asyncio
import codecs
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .config import DEFAULT_READ_SIZE
from .errors import SmartFriendsConnectionError
from .protocol import FRAME_TERMINATOR, encode_frame
from .tls import connect_tls

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class GatewayStreamMessageType(Enum):
    """Normalized stream message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class GatewayStreamMessage:
    """One reassembled line, or an end-of-stream marker."""

    type: GatewayStreamMessageType
    data: str | None = None


class GatewayStreamClient:
    """Wrapper around an asyncio TLS stream carrying newline-framed JSON."""

    def __init__(self, *, read_size: int = DEFAULT_READ_SIZE) -> None:
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._read_size = read_size

    @property
    def is_open(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def connect(
        self,
        host: str,
        port: int,
        *,
        ssl_context: ssl.SSLContext,
        timeout: float = 10.0,
    ) -> None:
        """Connect to the gateway."""
        self._reader, self._writer = await connect_tls(
            host,
            port,
            ssl_context=ssl_context,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the stream. Safe to call when not connected."""
        writer = self._writer
        self._writer = None
        self._reader = None
        if writer is None:
            return
        writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=2.0)
        except (TimeoutError, OSError, ssl.SSLError):
            # Peer already gone; the transport is closed either way.
            pass

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Write one framed JSON payload."""
        if self._writer is None:
            raise SmartFriendsConnectionError("Gateway stream is not connected")
        try:
            self._writer.write(encode_frame(payload))
            await self._writer.drain()
        except OSError as err:
            raise SmartFriendsConnectionError("Gateway stream write failed") from err

    def __aiter__(self) -> AsyncIterator[GatewayStreamMessage]:
        if self._reader is None:
            raise SmartFriendsConnectionError("Gateway stream is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[GatewayStreamMessage]:
        reader = self._reader
        if reader is None:
            raise SmartFriendsConnectionError("Gateway stream is not connected")

        decoder = codecs.getincrementaldecoder("utf-8")()
        buffer = ""
        try:
            while True:
                chunk = await reader.read(self._read_size)
                if not chunk:
                    break
                buffer += decoder.decode(chunk)
                while FRAME_TERMINATOR in buffer:
                    line, buffer = buffer.split(FRAME_TERMINATOR, 1)
                    if line.strip():
                        yield GatewayStreamMessage(GatewayStreamMessageType.TEXT, line)
            buffer += decoder.decode(b"", final=True)
        except Exception as err:
            yield GatewayStreamMessage(GatewayStreamMessageType.ERROR, repr(err))
        else:
            # Unterminated text at end-of-stream is still one message.
            if buffer.strip():
                yield GatewayStreamMessage(GatewayStreamMessageType.TEXT, buffer)
            yield GatewayStreamMessage(GatewayStreamMessageType.CLOSED)
