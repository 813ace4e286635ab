"""Outcome of a bridge call.

Callers branch on the variant type instead of catching exceptions::

    result = await bridge.call(request, "api-router", 5.0)
    if isinstance(result, Ok):
        ...
    elif isinstance(result, Timeout):
        ...

``unwrap()`` is there for callers that prefer exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from rasputin.contracts.envelope import Envelope
from rasputin.domain.errors import ChannelManagementFailure, MalformedEnvelope, ReplyTimeout


@dataclass(frozen=True, slots=True)
class Ok:
    body: bytes
    envelope: Envelope

    ok = True

    @property
    def correlation_id(self) -> str | None:
        return self.envelope.correlation_id

    def text(self) -> str:
        return self.body.decode("utf-8")

    def unwrap(self) -> bytes:
        return self.body


@dataclass(frozen=True, slots=True)
class Timeout:
    channel: str
    deadline: float

    ok = False

    def unwrap(self) -> bytes:
        raise ReplyTimeout(self.channel, self.deadline)


@dataclass(frozen=True, slots=True)
class Malformed:
    error: MalformedEnvelope

    ok = False

    def unwrap(self) -> bytes:
        raise self.error


@dataclass(frozen=True, slots=True)
class ChannelFailure:
    error: ChannelManagementFailure

    ok = False

    def unwrap(self) -> bytes:
        raise self.error


BridgeResult = Union[Ok, Timeout, Malformed, ChannelFailure]

__all__ = ["BridgeResult", "ChannelFailure", "Malformed", "Ok", "Timeout"]
