"""Typed payloads decoded from gateway responses."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

ValueConverter = Callable[[Any], Any]


@dataclass(frozen=True)
class SaltInfo:
    """Challenge material returned by ``hello``."""

    salt: str
    session_salt: str
    hashing_algorithm: str = "SHA256"

    @classmethod
    def from_payload(cls, payload: Any) -> SaltInfo:
        if not isinstance(payload, Mapping):
            raise TypeError("hello response is not an object")
        return cls(
            salt=payload["salt"],
            session_salt=payload["sessionSalt"],
            hashing_algorithm=payload.get("hashingAlgorithm") or "SHA256",
        )


@dataclass(frozen=True)
class GatewayInfo:
    """Session established by ``login``."""

    session_id: str | None
    hardware: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> GatewayInfo:
        if not isinstance(payload, Mapping):
            return cls(session_id=None)
        return cls(
            session_id=payload.get("sessionID") or None,
            hardware=payload.get("hardware"),
        )


@dataclass(frozen=True)
class HsvValue:
    """Colour value of a dimmable RGB device."""

    h: int
    s: int
    v: int


def hsv_value_converter(raw: Any) -> Any:
    """Convert ``{"h": .., "s": .., "v": ..}`` objects to HsvValue."""
    if isinstance(raw, Mapping) and {"h", "s", "v"} <= raw.keys():
        return HsvValue(h=int(raw["h"]), s=int(raw["s"]), v=int(raw["v"]))
    return NotImplemented


def switching_value_converter(raw: Any) -> Any:
    """Convert ``"on"``/``"off"`` switch states to booleans."""
    if isinstance(raw, str) and raw.lower() in ("on", "off"):
        return raw.lower() == "on"
    return NotImplemented


DEFAULT_VALUE_CONVERTERS: tuple[ValueConverter, ...] = (
    hsv_value_converter,
    switching_value_converter,
)


def convert_value(raw: Any, converters: Sequence[ValueConverter]) -> Any:
    """Apply the first converter that accepts ``raw``; else return it as is."""
    for converter in converters:
        value = converter(raw)
        if value is not NotImplemented:
            return value
    return raw


@dataclass(frozen=True)
class DeviceValue:
    """Pushed device value update."""

    device_id: int
    value: Any
    master_device_id: int | None = None

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        converters: Sequence[ValueConverter] = DEFAULT_VALUE_CONVERTERS,
    ) -> DeviceValue:
        if not isinstance(payload, Mapping):
            raise TypeError("device value payload is not an object")
        master = payload.get("masterDeviceID")
        return cls(
            device_id=int(payload["deviceID"]),
            value=convert_value(payload.get("value"), converters),
            master_device_id=int(master) if master is not None else None,
        )
