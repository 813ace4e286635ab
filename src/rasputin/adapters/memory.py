from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class ChannelNotFound(LookupError):
    """Send or receive addressed a channel that does not exist."""


class InMemoryBroker:
    """Process-local broker with one FIFO queue per channel.

    Implements the :class:`~rasputin.domain.ports.Broker` port for tests and
    for embedding the gateway next to in-process services.
    """

    def __init__(self) -> None:
        self._channels: dict[str, asyncio.Queue[bytes]] = {}

    @property
    def channels(self) -> list[str]:
        return list(self._channels)

    def channel_exists(self, name: str) -> bool:
        return name in self._channels

    async def create_channel_if_absent(self, name: str) -> None:
        if name not in self._channels:
            self._channels[name] = asyncio.Queue()
            logger.debug("memory.channel.created", extra={"channel": name})

    async def delete_channel_if_present(self, name: str) -> None:
        inbox = self._channels.pop(name, None)
        if inbox is not None:
            logger.debug("memory.channel.deleted", extra={"channel": name, "discarded": inbox.qsize()})

    async def send(self, channel: str, data: bytes) -> None:
        inbox = self._channels.get(channel)
        if inbox is None:
            raise ChannelNotFound(f"no such channel: {channel}")
        inbox.put_nowait(data)

    async def receive(self, channel: str, timeout: float) -> bytes:
        inbox = self._channels.get(channel)
        if inbox is None:
            raise ChannelNotFound(f"no such channel: {channel}")
        try:
            return inbox.get_nowait()
        except asyncio.QueueEmpty:
            pass
        return await asyncio.wait_for(inbox.get(), timeout=timeout)


__all__ = ["ChannelNotFound", "InMemoryBroker"]
