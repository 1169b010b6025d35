"""Gateway connection settings.

Settings are plain data: a frozen dataclass validated on construction,
optionally loaded from a YAML file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import SmartFriendsConfigError

DEFAULT_PORT = 4300
DEFAULT_COMMAND_TIMEOUT = 2.5
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_SIZE = 2048


@dataclass(frozen=True)
class GatewayConfig:
    """Connection settings for one SmartFriends gateway.

    Attributes:
        host: Gateway hostname or IP.
        port: Gateway TLS port.
        username: Login user.
        password: Plaintext password; only its digest goes on the wire.
        c_symbol: Client symbol sent at login.
        c_symbol_addon: Suffix appended to the client symbol.
        shc_version: Gateway software version the client speaks.
        sh_api_version: API version the client speaks.
        ca_file: Path to the pinned gateway certificate (PEM).
        verify_certificate: Require the server certificate to chain to
            ``ca_file``. When False any certificate is accepted.
        connect_timeout: TCP + TLS connect timeout (seconds).
        command_timeout: Default wait for a command reply (seconds).
        read_size: Bytes requested per socket read.
    """

    host: str
    username: str
    password: str
    port: int = DEFAULT_PORT
    c_symbol: str = "D19033"
    c_symbol_addon: str = "i"
    shc_version: str = "3.7.0"
    sh_api_version: str = "3.4"
    ca_file: str | None = None
    verify_certificate: bool = True
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    read_size: int = DEFAULT_READ_SIZE

    def __post_init__(self) -> None:
        if not self.host:
            raise SmartFriendsConfigError("host must not be empty")
        if not self.username:
            raise SmartFriendsConfigError("username must not be empty")
        if not 0 < self.port < 65536:
            raise SmartFriendsConfigError(f"Invalid port: {self.port}")
        if self.connect_timeout <= 0 or self.command_timeout <= 0:
            raise SmartFriendsConfigError("Timeouts must be positive")
        if self.read_size <= 0:
            raise SmartFriendsConfigError("read_size must be positive")

    @property
    def client_symbol(self) -> str:
        """Client symbol as sent in the login command."""
        return self.c_symbol + self.c_symbol_addon

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GatewayConfig:
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise SmartFriendsConfigError(
                f"Unknown config keys: {', '.join(unknown)}"
            )
        try:
            return cls(**data)
        except TypeError as err:
            raise SmartFriendsConfigError(str(err)) from err


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise SmartFriendsConfigError(f"File not found: {path}")
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise SmartFriendsConfigError(f"Expected a mapping in {path}")
    return data


def load_config(path: Path | str) -> GatewayConfig:
    """Load gateway settings from a YAML file.

    Args:
        path: YAML file with one top-level mapping of GatewayConfig fields.

    Returns:
        Validated GatewayConfig.

    Raises:
        SmartFriendsConfigError: File missing, not a mapping, or invalid.
    """
    return GatewayConfig.from_mapping(_load_yaml(Path(path)))
