"""Pytest configuration and fixtures for smartfriends_core tests."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any
from unittest.mock import patch

import pytest
import pytest_asyncio

from smartfriends_core import GatewayConfig, SmartFriendsClient

SALT = base64.b64encode(b"gateway-salt").decode("ascii")
SESSION_SALT = base64.b64encode(b"session-salt").decode("ascii")

Handler = Callable[[dict[str, Any]], list[dict[str, Any]]]


def reply(response: Any = None, message: str = "success") -> dict[str, Any]:
    """Build an inbound reply envelope."""
    return {"responseMessage": message, "response": response}


def push(device_id: int, value: Any) -> dict[str, Any]:
    """Build an unsolicited device value envelope."""
    return {
        "responseMessage": "newDeviceValue",
        "response": {"deviceID": device_id, "masterDeviceID": 1, "value": value},
    }


class FakeGatewayWriter:
    """StreamWriter stand-in that hands written bytes to the gateway."""

    def __init__(self, gateway: FakeGateway, reader: asyncio.StreamReader) -> None:
        self._gateway = gateway
        self._reader = reader
        self._closing = False

    def write(self, data: bytes) -> None:
        self._gateway.receive(data)

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self._closing = True
        if self._gateway.reader is self._reader:
            self._gateway.disconnect()

    def is_closing(self) -> bool:
        return self._closing

    async def wait_closed(self) -> None:
        return None


class FakeGateway:
    """Simulated gateway speaking newline-framed JSON over in-memory streams.

    Commands are answered as soon as they are written. ``handlers`` overrides
    the replies for a command name, ``delays`` postpones them.
    """

    def __init__(self, *, session_id: str | None = "S1", hardware: str = "HUB-1") -> None:
        self.session_id = session_id
        self.hardware = hardware
        self.handlers: dict[str, Handler] = {}
        self.delays: dict[str, float] = {}
        self.received: list[dict[str, Any]] = []
        self.raw_lines: list[bytes] = []
        self.events: list[tuple[str, str]] = []
        self.connections = 0
        self.reader: asyncio.StreamReader | None = None
        self._buffer = b""
        self._connected = False

    async def connect(self, host: str, port: int, **kwargs: Any) -> tuple[Any, Any]:
        """Drop-in replacement for ``connect_tls``."""
        self.connections += 1
        self.reader = asyncio.StreamReader()
        self._buffer = b""
        self._connected = True
        return self.reader, FakeGatewayWriter(self, self.reader)

    def receive(self, data: bytes) -> None:
        self._buffer += data
        while b"\n" in self._buffer:
            line, self._buffer = self._buffer.split(b"\n", 1)
            self.raw_lines.append(line)
            payload = json.loads(line)
            self.received.append(payload)
            self._respond(payload)

    def send(self, obj: dict[str, Any]) -> None:
        """Write one message to the client."""
        if not self._connected or self.reader is None:
            return
        if obj.get("responseMessage") != "newDeviceValue":
            echo = obj.get("response") or {}
            self.events.append(("reply", str(echo.get("echo", obj["responseMessage"]))))
        self.reader.feed_data((json.dumps(obj) + "\n").encode("utf-8"))

    def send_raw(self, data: bytes) -> None:
        assert self.reader is not None
        self.reader.feed_data(data)

    def drop(self) -> None:
        """Close the connection from the gateway side."""
        self.disconnect()

    def disconnect(self) -> None:
        if self._connected and self.reader is not None:
            self.reader.feed_eof()
        self._connected = False

    def commands(self) -> list[str]:
        return [payload["command"] for payload in self.received]

    def _respond(self, payload: dict[str, Any]) -> None:
        name = payload["command"]
        self.events.append(("recv", name))
        handler = self.handlers.get(name, self._default_handler)
        delay = self.delays.get(name)
        for message in handler(payload):
            if delay:
                asyncio.get_running_loop().call_later(delay, self.send, message)
            else:
                self.send(message)

    def _default_handler(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        name = payload["command"]
        if name == "hello":
            return [
                reply(
                    {
                        "salt": SALT,
                        "sessionSalt": SESSION_SALT,
                        "hashingAlgorithm": "SHA256",
                    }
                )
            ]
        if name == "login":
            if self.session_id is None:
                return [reply({}, message="error")]
            return [reply({"sessionID": self.session_id, "hardware": self.hardware})]
        return [reply({"echo": name, "parameters": payload.get("parameters")})]


@pytest.fixture
def gateway() -> Iterator[FakeGateway]:
    """Simulated gateway patched in place of the TLS connection."""
    fake = FakeGateway()
    with patch("smartfriends_core.stream_client.connect_tls", new=fake.connect):
        yield fake


@pytest.fixture
def config() -> GatewayConfig:
    """Client settings for the simulated gateway."""
    return GatewayConfig(
        host="10.0.0.5",
        username="admin",
        password="secret",
        verify_certificate=False,
        command_timeout=0.5,
    )


@pytest_asyncio.fixture
async def client(
    gateway: FakeGateway, config: GatewayConfig
) -> AsyncIterator[SmartFriendsClient]:
    """Client that is closed after the test."""
    smartfriends = SmartFriendsClient(config)
    yield smartfriends
    await smartfriends.close()
