from __future__ import annotations

from typing import Protocol


class Broker(Protocol):
    """Minimal broker surface the bridge depends on.

    ``receive`` raises ``asyncio.TimeoutError`` when no message arrives
    within ``timeout`` seconds.
    """

    async def create_channel_if_absent(self, name: str) -> None: ...

    async def delete_channel_if_present(self, name: str) -> None: ...

    async def send(self, channel: str, data: bytes) -> None: ...

    async def receive(self, channel: str, timeout: float) -> bytes: ...

    def channel_exists(self, name: str) -> bool: ...
