"""Session client for the SmartFriends gateway.

This module owns the single persistent TLS connection to a gateway. It
handles:
- Connection lifecycle and login
- Command serialization (one command in flight at a time)
- Reply correlation by arrival order
- Background reading and push (device value) delivery

The protocol carries no request identifiers: the reply to a command is
simply the next non-push message. The command lock and the stale-reply
drain before each send are what keep replies matched to their commands.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar, overload

from .auth import authenticate
from .commands import CommandBase
from .config import GatewayConfig
from .errors import (
    SmartFriendsAuthError,
    SmartFriendsClientError,
    SmartFriendsConnectionError,
    SmartFriendsProtocolError,
)
from .models import DEFAULT_VALUE_CONVERTERS, DeviceValue, GatewayInfo, ValueConverter
from .protocol import Message, decode_message
from .stream_client import GatewayStreamClient, GatewayStreamMessageType
from .tls import build_ssl_context

_LOGGER = logging.getLogger(__name__)

R = TypeVar("R")

DeviceUpdateCallback = Callable[[DeviceValue], Awaitable[None] | None]


class SmartFriendsClient:
    """Stateful client for one SmartFriends gateway.

    Usage:
        client = SmartFriendsClient(GatewayConfig(host="10.0.0.5", username="u", password="p", ca_file="CA.pem"))
        client.subscribe(my_device_handler)
        if await client.open():
            ok = await client.send_command(SetDeviceValue(device_id=12, value=1))
        await client.close()
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        value_converters: Sequence[ValueConverter] = DEFAULT_VALUE_CONVERTERS,
    ) -> None:
        """Initialize client.

        Args:
            config: Gateway connection settings
            value_converters: Converters applied to pushed device values
        """
        self.config = config
        self._value_converters = tuple(value_converters)

        # Connection state
        self._stream: GatewayStreamClient | None = None
        self._session: GatewayInfo | None = None
        self._connected = False
        self._connection_lock = asyncio.Lock()

        # Command channel
        self._command_lock = asyncio.Lock()
        self._pending: asyncio.Queue[Message] = asyncio.Queue()

        # Reader
        self._reader_task: asyncio.Task[None] | None = None

        # Callbacks
        self._subscribers: list[DeviceUpdateCallback] = []

    async def __aenter__(self) -> SmartFriendsClient:
        if not await self.open():
            raise SmartFriendsConnectionError(
                f"Cannot connect to gateway {self.config.host}"
            )
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        """True once logged in with a session identifier."""
        return self._connected

    @property
    def gateway_device(self) -> str | None:
        """Hardware identifier reported by the gateway at login."""
        return self._session.hardware if self._session else None

    @property
    def session_id(self) -> str | None:
        return self._session.session_id if self._session else None

    async def open(self) -> bool:
        """Connect and log in to the gateway.

        Concurrent callers share one attempt. Failures are logged and the
        connection is torn down; they are never raised.

        Returns:
            True if connected with a session, False otherwise
        """
        if self._connected:
            return True

        async with self._connection_lock:
            if self._connected:
                return True
            try:
                await self._open_locked()
            except SmartFriendsAuthError as err:
                _LOGGER.error("[%s] Login failed: %s", self.config.host, err)
            except SmartFriendsClientError as err:
                _LOGGER.error(
                    "[%s] Failed to open connection: %s", self.config.host, err
                )
            except asyncio.CancelledError:
                await self.close()
                raise
            except Exception as err:
                _LOGGER.exception(
                    "[%s] Failed to open connection: %s", self.config.host, err
                )
            else:
                return True
            await self.close()
            return False

    async def close(self) -> None:
        """Close the connection and clear the session. Safe to call repeatedly."""
        if self._connected or self._stream is not None:
            _LOGGER.info("[%s] Closing connection", self.config.host)
        self._connected = False
        await self._teardown()

    async def ensure_connection(self) -> None:
        """Open if disconnected, and restart the reader if it has died.

        Raises:
            SmartFriendsConnectionError: Connection could not be opened
        """
        if not self._connected and not await self.open():
            raise SmartFriendsConnectionError(
                f"Cannot connect to gateway {self.config.host}"
            )
        await self._ensure_reader()

    # -------------------------------------------------------------------------
    # Public API: Commands
    # -------------------------------------------------------------------------

    async def send_command(
        self, command: CommandBase, timeout: float | None = None
    ) -> bool:
        """Send a command and report whether the gateway answered "success"."""
        message = await self._send(command, timeout=timeout)
        return message is not None and message.is_success

    @overload
    async def send_and_receive(
        self, command: CommandBase, result_type: None = None, timeout: float | None = None
    ) -> Message | None: ...

    @overload
    async def send_and_receive(
        self, command: CommandBase, result_type: type[R], timeout: float | None = None
    ) -> R | None: ...

    async def send_and_receive(
        self,
        command: CommandBase,
        result_type: type[Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a command and return its reply.

        Args:
            command: Command to send
            result_type: Type with ``from_payload`` to decode the reply payload
                into; the raw Message is returned when omitted
            timeout: Reply deadline in seconds (config default when None)

        Returns:
            Decoded payload, raw Message, or None if no reply arrived in time
        """
        message = await self._send(command, timeout=timeout)
        if message is None or result_type is None or result_type is Message:
            return message
        return message.payload_as(result_type)

    # -------------------------------------------------------------------------
    # Public API: Callbacks
    # -------------------------------------------------------------------------

    def subscribe(self, callback: DeviceUpdateCallback) -> Callable[[], bool]:
        """Register a device update callback.

        Callbacks run on the reader task; a slow callback delays all further
        reads. Coroutine callbacks are awaited, so a callback that awaits a
        command reply blocks the reader and only gets None after the command
        timeout. Schedule such work as a separate task instead.

        Returns:
            Function that unsubscribes the callback
        """
        if callback not in self._subscribers:
            self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: DeviceUpdateCallback) -> bool:
        if callback not in self._subscribers:
            return False
        self._subscribers.remove(callback)
        return True

    # -------------------------------------------------------------------------
    # Internal: Connection
    # -------------------------------------------------------------------------

    async def _open_locked(self) -> None:
        # Drop whatever is left of a previous connection first.
        await self._teardown()

        host = self.config.host
        _LOGGER.info("[%s] Connecting to %s:%s", host, host, self.config.port)

        loop = asyncio.get_running_loop()
        ssl_context = await loop.run_in_executor(
            None,
            functools.partial(
                build_ssl_context,
                self.config.ca_file,
                verify=self.config.verify_certificate,
            ),
        )

        stream = GatewayStreamClient(read_size=self.config.read_size)
        await stream.connect(
            host,
            self.config.port,
            ssl_context=ssl_context,
            timeout=self.config.connect_timeout,
        )
        self._stream = stream

        await self._ensure_reader(force_restart=True)
        session = await authenticate(
            functools.partial(self._send, skip_ensure=True), self.config
        )
        reader = self._reader_task
        if reader is None or reader.done() or not stream.is_open:
            raise SmartFriendsConnectionError(
                "Gateway closed the connection during login"
            )
        self._session = session
        self._connected = True
        _LOGGER.info("[%s] Logged in to %s", host, self.gateway_device)

    async def _teardown(self) -> None:
        await self._stop_reader()
        stream, self._stream = self._stream, None
        if stream is not None:
            await stream.close()
        self._session = None

    async def _ensure_reader(self, *, force_restart: bool = False) -> None:
        task = self._reader_task
        if not force_restart and task is not None and not task.done():
            return

        await self._stop_reader()
        if self._stream is None:
            raise SmartFriendsConnectionError("Gateway stream is not open")
        if task is not None and not force_restart:
            _LOGGER.info("[%s] Reader stopped, restarting", self.config.host)
        self._reader_task = asyncio.create_task(
            self._reader_loop(self._stream),
            name=f"smartfriends-reader-{self.config.host}",
        )

    async def _stop_reader(self) -> None:
        task, self._reader_task = self._reader_task, None
        if task is None or task.done():
            return
        task.cancel()
        if task is not asyncio.current_task():
            await asyncio.wait([task])

    # -------------------------------------------------------------------------
    # Internal: Command Channel
    # -------------------------------------------------------------------------

    async def _send(
        self,
        command: CommandBase,
        *,
        skip_ensure: bool = False,
        timeout: float | None = None,
    ) -> Message | None:
        if not skip_ensure:
            await self.ensure_connection()
        if timeout is None:
            timeout = self.config.command_timeout

        command.session_id = self.session_id
        payload = command.to_payload()
        name = payload["command"]

        async with self._command_lock:
            stream = self._stream
            if stream is None:
                raise SmartFriendsConnectionError("Gateway is not connected")

            self._drain_pending()
            _LOGGER.debug("[%s] Send %s", self.config.host, name)
            try:
                await stream.send_json(payload)
            except SmartFriendsConnectionError:
                self._connected = False
                raise

            try:
                return await asyncio.wait_for(self._pending.get(), timeout)
            except TimeoutError:
                _LOGGER.warning(
                    "[%s] No reply to %s within %.1fs",
                    self.config.host,
                    name,
                    timeout,
                )
                return None

    def _drain_pending(self) -> None:
        """Discard replies left over from abandoned exchanges."""
        while True:
            try:
                stale = self._pending.get_nowait()
            except asyncio.QueueEmpty:
                return
            _LOGGER.info(
                "[%s] Abandoned message: %s %r",
                self.config.host,
                stale.response_message,
                stale.response,
            )

    # -------------------------------------------------------------------------
    # Internal: Reader
    # -------------------------------------------------------------------------

    async def _reader_loop(self, stream: GatewayStreamClient) -> None:
        """Read messages until cancelled, closed or broken."""
        host = self.config.host
        try:
            async for msg in stream:
                if msg.type is GatewayStreamMessageType.TEXT:
                    message = decode_message(msg.data or "")
                    if message.is_push:
                        await self._handle_device_value(message)
                    else:
                        self._pending.put_nowait(message)
                elif msg.type is GatewayStreamMessageType.CLOSED:
                    if self._connected:
                        _LOGGER.info("[%s] Connection closed by gateway", host)
                    self._connected = False
                    self._session = None
                    return
                else:
                    if self._connected:
                        _LOGGER.error("[%s] Connection error: %s", host, msg.data)
                    return
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Reader cancelled", host)
            raise
        except SmartFriendsProtocolError as err:
            if self._connected:
                _LOGGER.error("[%s] Invalid message: %s", host, err)
        except SmartFriendsClientError as err:
            if self._connected:
                _LOGGER.error("[%s] Reader stopped: %s", host, err)
        except Exception as err:
            if self._connected:
                _LOGGER.exception("[%s] Unexpected reader error: %s", host, err)

    async def _handle_device_value(self, message: Message) -> None:
        """Decode a push message and hand it to every subscriber."""
        try:
            value = DeviceValue.from_payload(message.response, self._value_converters)
        except (KeyError, TypeError, ValueError) as err:
            _LOGGER.warning("[%s] Invalid device value: %s", self.config.host, err)
            return

        _LOGGER.info(
            "[%s] Device %s value %r", self.config.host, value.device_id, value.value
        )
        for callback in list(self._subscribers):
            try:
                result = callback(value)
                if inspect.isawaitable(result):
                    await result
            except Exception as err:
                _LOGGER.exception(
                    "[%s] Device update callback error: %s", self.config.host, err
                )
