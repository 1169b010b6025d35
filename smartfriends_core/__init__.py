"""Client for the SmartFriends home-automation gateway."""

__version__ = "0.1.0"

from .auth import authenticate, calculate_digest
from .client import SmartFriendsClient
from .commands import (
    Command,
    CommandBase,
    GetAllNewInfos,
    Hello,
    Login,
    SetDeviceValue,
)
from .config import GatewayConfig, load_config
from .errors import (
    SmartFriendsAuthError,
    SmartFriendsClientError,
    SmartFriendsConfigError,
    SmartFriendsConnectionError,
    SmartFriendsHandshakeError,
    SmartFriendsProtocolError,
    SmartFriendsTimeout,
)
from .models import (
    DEFAULT_VALUE_CONVERTERS,
    DeviceValue,
    GatewayInfo,
    HsvValue,
    SaltInfo,
)
from .protocol import (
    RESPONSE_NEW_DEVICE_VALUE,
    RESPONSE_SUCCESS,
    Message,
    decode_message,
    encode_frame,
)
from .stream_client import (
    GatewayStreamClient,
    GatewayStreamMessage,
    GatewayStreamMessageType,
)
from .tls import build_ssl_context, connect_tls

__all__ = [
    "DEFAULT_VALUE_CONVERTERS",
    "RESPONSE_NEW_DEVICE_VALUE",
    "RESPONSE_SUCCESS",
    "Command",
    "CommandBase",
    "DeviceValue",
    "GatewayConfig",
    "GatewayInfo",
    "GatewayStreamClient",
    "GatewayStreamMessage",
    "GatewayStreamMessageType",
    "GetAllNewInfos",
    "Hello",
    "HsvValue",
    "Login",
    "Message",
    "SaltInfo",
    "SetDeviceValue",
    "SmartFriendsAuthError",
    "SmartFriendsClient",
    "SmartFriendsClientError",
    "SmartFriendsConfigError",
    "SmartFriendsConnectionError",
    "SmartFriendsHandshakeError",
    "SmartFriendsProtocolError",
    "SmartFriendsTimeout",
    "__version__",
    "authenticate",
    "build_ssl_context",
    "calculate_digest",
    "connect_tls",
    "decode_message",
    "encode_frame",
    "load_config",
]
