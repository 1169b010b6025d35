"""Client error types for SmartFriends gateway interactions."""

from __future__ import annotations


class SmartFriendsClientError(Exception):
    """Base error for SmartFriends gateway client failures."""


class SmartFriendsTimeout(SmartFriendsClientError):
    """Timeout while communicating with the gateway."""


class SmartFriendsConnectionError(SmartFriendsClientError):
    """Network connection to the gateway failed."""


class SmartFriendsHandshakeError(SmartFriendsClientError):
    """TLS handshake with the gateway failed."""


class SmartFriendsAuthError(SmartFriendsClientError):
    """Login completed without a session identifier."""


class SmartFriendsProtocolError(SmartFriendsClientError):
    """Malformed frame or payload received from the gateway."""


class SmartFriendsConfigError(SmartFriendsClientError):
    """Invalid client configuration."""
