"""Wire framing for the SmartFriends gateway protocol.

Every message is one UTF-8 JSON object terminated by a single newline.
Inbound messages carry a ``responseMessage`` tag and a ``response`` payload.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from .errors import SmartFriendsProtocolError

FRAME_TERMINATOR = "\n"

RESPONSE_SUCCESS = "success"
RESPONSE_NEW_DEVICE_VALUE = "newDeviceValue"

T = TypeVar("T", covariant=True)


class PayloadType(Protocol[T]):
    """A type that can be built from a decoded response payload."""

    @classmethod
    def from_payload(cls, payload: Any) -> T: ...


@dataclass(frozen=True)
class Message:
    """Inbound wire envelope."""

    response_message: str | None
    response: Any = None

    @property
    def is_push(self) -> bool:
        """True for unsolicited device value notifications."""
        return self.response_message == RESPONSE_NEW_DEVICE_VALUE

    @property
    def is_success(self) -> bool:
        return (self.response_message or "").lower() == RESPONSE_SUCCESS

    def payload_as(self, result_type: type[PayloadType[Any]]) -> Any:
        """Decode the payload into ``result_type``."""
        try:
            return result_type.from_payload(self.response)
        except (KeyError, TypeError, ValueError) as err:
            raise SmartFriendsProtocolError(
                f"Cannot decode {self.response_message!r} payload as "
                f"{result_type.__name__}: {err}"
            ) from err


def encode_frame(payload: dict[str, Any]) -> bytes:
    """Serialize one outbound payload into a framed line."""
    return (json.dumps(payload, separators=(",", ":")) + FRAME_TERMINATOR).encode(
        "utf-8"
    )


def decode_message(line: str) -> Message:
    """Decode one received line into a Message.

    Raises:
        SmartFriendsProtocolError: Line is not a JSON object.
    """
    try:
        data = json.loads(line)
    except ValueError as err:
        raise SmartFriendsProtocolError(f"Invalid JSON frame: {err}") from err
    if not isinstance(data, dict):
        raise SmartFriendsProtocolError(
            f"Expected a JSON object but received {type(data).__name__}"
        )
    tag = data.get("responseMessage")
    return Message(
        response_message=tag if isinstance(tag, str) else None,
        response=data.get("response"),
    )
