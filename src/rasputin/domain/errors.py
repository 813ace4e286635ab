"""Error taxonomy shared by the codec, channel manager and bridge."""

from __future__ import annotations

from typing import Optional


class BridgeError(Exception):
    """Base class for request/reply bridge failures."""


class ChannelManagementFailure(BridgeError):
    """The broker could not create a reply channel or accept the request."""

    def __init__(self, message: str, *, channel: Optional[str] = None) -> None:
        super().__init__(message)
        self.channel = channel


class ReplyTimeout(BridgeError):
    """No reply arrived on the reply channel before the deadline."""

    def __init__(self, channel: str, deadline: float) -> None:
        super().__init__(f"no reply on {channel} within {deadline:.3f}s")
        self.channel = channel
        self.deadline = deadline


class MalformedEnvelope(BridgeError):
    """Bytes received from the broker are not a valid envelope encoding."""


class MalformedBody(MalformedEnvelope):
    """The envelope decoded but its body is missing or not text."""


__all__ = [
    "BridgeError",
    "ChannelManagementFailure",
    "MalformedBody",
    "MalformedEnvelope",
    "ReplyTimeout",
]
