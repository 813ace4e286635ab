"""Ephemeral reply channel lifecycle."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

from rasputin.domain.errors import ChannelManagementFailure
from rasputin.domain.ports import Broker

logger = logging.getLogger(__name__)

DEFAULT_REPLY_PREFIX = "tmp-reply-"


@dataclass(slots=True)
class ChannelHandle:
    """A reply channel owned by exactly one in-flight request."""

    name: str
    released: bool = field(default=False, compare=False)


class ReplyChannelManager:
    """Create and always delete per-request reply channels.

    Prefer :meth:`reply_channel` over calling :meth:`acquire` and
    :meth:`release` by hand; it releases on every exit path including
    task cancellation.
    """

    def __init__(self, broker: Broker, *, prefix: str = DEFAULT_REPLY_PREFIX) -> None:
        if not prefix:
            raise ValueError("reply channel prefix must not be empty")
        self._broker = broker
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def new_name(self) -> str:
        return f"{self._prefix}{uuid.uuid4()}"

    async def acquire(self) -> ChannelHandle:
        name = self.new_name()
        try:
            await self._broker.create_channel_if_absent(name)
        except Exception as exc:
            logger.error("channel.acquire_failed", extra={"channel": name, "error": str(exc)})
            raise ChannelManagementFailure(f"could not create reply channel {name}: {exc}", channel=name) from exc
        logger.debug("channel.acquired", extra={"channel": name})
        return ChannelHandle(name)

    async def release(self, handle: ChannelHandle) -> None:
        """Delete the channel; failures are logged, never raised."""
        if handle.released:
            return
        handle.released = True
        try:
            await self._broker.delete_channel_if_present(handle.name)
        except Exception as exc:
            logger.warning("channel.release_failed", extra={"channel": handle.name, "error": str(exc)})
            return
        logger.debug("channel.released", extra={"channel": handle.name})

    @asynccontextmanager
    async def reply_channel(self) -> AsyncIterator[ChannelHandle]:
        handle = await self.acquire()
        try:
            yield handle
        finally:
            await self.release(handle)


__all__ = ["ChannelHandle", "DEFAULT_REPLY_PREFIX", "ReplyChannelManager"]
