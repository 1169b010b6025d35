"""TLS helpers for the SmartFriends gateway transport."""

from __future__ import annotations

import asyncio
import logging
import ssl

from .errors import (
    SmartFriendsConfigError,
    SmartFriendsConnectionError,
    SmartFriendsHandshakeError,
    SmartFriendsTimeout,
)

_LOGGER = logging.getLogger(__name__)


def build_ssl_context(ca_file: str | None, *, verify: bool = True) -> ssl.SSLContext:
    """Build the client SSL context for the gateway.

    With ``verify`` the pinned certificate in ``ca_file`` is the only trust
    anchor. Hostname checking stays off in both modes because the gateway
    certificate is not issued for its LAN address.

    With ``verify=False`` any server certificate is accepted. This is a known
    weakness kept for gateways whose certificate does not chain to the pinned
    one; it allows a man-in-the-middle on the local network.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    if verify:
        if not ca_file:
            raise SmartFriendsConfigError(
                "verify_certificate requires ca_file (pinned gateway certificate)"
            )
        context.verify_mode = ssl.CERT_REQUIRED
        context.load_verify_locations(cafile=ca_file)
        return context

    _LOGGER.warning("Gateway certificate validation is disabled")
    context.verify_mode = ssl.CERT_NONE
    if ca_file:
        context.load_verify_locations(cafile=ca_file)
    return context


async def connect_tls(
    host: str,
    port: int,
    *,
    ssl_context: ssl.SSLContext,
    timeout: float = 10.0,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Open a TCP connection to the gateway and upgrade it to TLS."""
    try:
        return await asyncio.wait_for(
            asyncio.open_connection(
                host,
                port,
                ssl=ssl_context,
                server_hostname=host,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise SmartFriendsTimeout("TLS connection timed out") from err
    except ssl.SSLError as err:
        raise SmartFriendsHandshakeError("TLS handshake failed") from err
    except OSError as err:
        raise SmartFriendsConnectionError("TLS connection failed") from err
