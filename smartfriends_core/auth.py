"""Challenge-response login for the SmartFriends gateway.

The handshake is two round-trips:

1. ``hello`` with the username; the gateway answers with salt material.
2. ``login`` with a digest derived from the password and that salt; the
   gateway answers with the session identifier and its hardware id.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
from collections.abc import Awaitable, Callable

from .commands import CommandBase, Hello, Login
from .config import GatewayConfig
from .errors import SmartFriendsAuthError
from .models import GatewayInfo, SaltInfo
from .protocol import Message

_LOGGER = logging.getLogger(__name__)

SendFn = Callable[[CommandBase], Awaitable[Message | None]]


def _hash(algorithm: str, data: bytes) -> bytes:
    name = algorithm.replace("-", "").lower()
    try:
        return hashlib.new(name, data).digest()
    except ValueError as err:
        raise SmartFriendsAuthError(
            f"Unsupported hashing algorithm: {algorithm}"
        ) from err


def _b64decode(value: str, field_name: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as err:
        raise SmartFriendsAuthError(f"Invalid {field_name} in hello response") from err


def calculate_digest(password: str, salt_info: SaltInfo) -> str:
    """Derive the login digest from a password and the hello salt.

    ``inner = b64(H(salt + password))`` then ``b64(H(session_salt + inner))``,
    where both salts are base64 on the wire and ``H`` is the algorithm the
    gateway names.
    """
    salt = _b64decode(salt_info.salt, "salt")
    session_salt = _b64decode(salt_info.session_salt, "sessionSalt")
    inner = base64.b64encode(
        _hash(salt_info.hashing_algorithm, salt + password.encode("utf-8"))
    )
    outer = _hash(salt_info.hashing_algorithm, session_salt + inner)
    return base64.b64encode(outer).decode("ascii")


async def authenticate(send: SendFn, config: GatewayConfig) -> GatewayInfo:
    """Run hello + login over ``send`` and return the new session.

    Raises:
        SmartFriendsAuthError: No hello reply, or login yielded no session id.
    """
    _LOGGER.info("[%s] Logging in as %s", config.host, config.username)

    hello = await send(Hello(config.username))
    if hello is None:
        raise SmartFriendsAuthError("No reply to hello")
    salt_info: SaltInfo = hello.payload_as(SaltInfo)

    login = Login(
        username=config.username,
        digest=calculate_digest(config.password, salt_info),
        c_symbol=config.client_symbol,
        shc_version=config.shc_version,
        sh_api_version=config.sh_api_version,
    )
    reply = await send(login)
    info = GatewayInfo.from_payload(reply.response if reply else None)
    if not info.session_id:
        raise SmartFriendsAuthError(
            f"Login rejected ({reply.response_message if reply else 'no reply'})"
        )
    return info
