"""Outbound command objects.

A command serializes to ``{"sessionID"?, "command", "parameters"}``. The
session identifier is attached by the client right before sending.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass
class CommandBase:
    """Base class for gateway commands."""

    command: ClassVar[str] = ""

    session_id: str | None = field(default=None, kw_only=True)

    def parameters(self) -> dict[str, Any]:
        return {}

    def to_payload(self) -> dict[str, Any]:
        """Build the wire form of this command."""
        payload: dict[str, Any] = {}
        if self.session_id:
            payload["sessionID"] = self.session_id
        payload["command"] = self.command
        payload["parameters"] = self.parameters()
        return payload


@dataclass
class Hello(CommandBase):
    command: ClassVar[str] = "hello"

    username: str

    def parameters(self) -> dict[str, Any]:
        return {"username": self.username}


@dataclass
class Login(CommandBase):
    command: ClassVar[str] = "login"

    username: str
    digest: str
    c_symbol: str
    shc_version: str
    sh_api_version: str

    def parameters(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "digest": self.digest,
            "cSymbol": self.c_symbol,
            "shcVersion": self.shc_version,
            "shApiVersion": self.sh_api_version,
        }


@dataclass
class GetAllNewInfos(CommandBase):
    """Request everything that changed since ``timestamp`` (0 = all)."""

    command: ClassVar[str] = "getAllNewInfos"

    timestamp: int = 0

    def parameters(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp}


@dataclass
class SetDeviceValue(CommandBase):
    command: ClassVar[str] = "setDeviceValue"

    device_id: int
    value: Any

    def parameters(self) -> dict[str, Any]:
        return {"deviceID": self.device_id, "value": self.value}


@dataclass
class Command(CommandBase):
    """Arbitrary command for vocabulary this package does not model."""

    name: str
    params: dict[str, Any] = field(default_factory=dict)

    def parameters(self) -> dict[str, Any]:
        return dict(self.params)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["command"] = self.name
        return payload
