"""Shared pytest fixtures for gateway tests."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from rasputin.adapters.memory import InMemoryBroker
from rasputin.config import GatewayConfig
from rasputin.contracts.codec import decode, encode
from rasputin.contracts.envelope import Envelope

Handler = Callable[[Envelope], Awaitable[Optional[bytes]]]


def reply_frame(request: Envelope, body: bytes | str) -> bytes:
    """Encode a reply the way the router does: request headers echoed back."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return encode(Envelope(headers=request.headers, body=body))


class RouterStub(InMemoryBroker):
    """In-memory broker that also plays the router and the services behind it.

    Frames sent to the ingress channel are decoded and handed to the handler
    registered for their first route hop. Whatever the handler returns is
    delivered on the reply channel named by the last route hop; a reply for
    a channel that no longer exists is recorded in ``dropped``.
    """

    def __init__(self, ingress: str = "api-router") -> None:
        super().__init__()
        self.ingress = ingress
        self.requests: list[Envelope] = []
        self.dropped: list[str] = []
        self._handlers: dict[str, Handler] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def on(self, destination: str, handler: Handler) -> None:
        self._handlers[destination] = handler

    async def send(self, channel: str, data: bytes) -> None:
        if channel != self.ingress:
            await super().send(channel, data)
            return
        request = decode(data)
        self.requests.append(request)
        task = asyncio.create_task(self._answer(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _answer(self, request: Envelope) -> None:
        handler = self._handlers.get(request.routes[0])
        if handler is None:
            return
        payload = await handler(request)
        if payload is None:
            return
        reply_channel = request.routes[-1]
        if not self.channel_exists(reply_channel):
            self.dropped.append(reply_channel)
            return
        await super().send(reply_channel, payload)


def respond(body: bytes | str, *, delay: float = 0.0) -> Handler:
    """Handler answering every request with ``body`` after ``delay`` seconds."""

    async def handler(request: Envelope) -> bytes:
        if delay:
            await asyncio.sleep(delay)
        return reply_frame(request, body)

    return handler


def echo(*, delay: float = 0.0) -> Handler:
    """Handler answering every request with its own body."""

    async def handler(request: Envelope) -> bytes:
        if delay:
            await asyncio.sleep(delay)
        return reply_frame(request, request.body)

    return handler


@pytest.fixture
def memory_broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture
def router_stub() -> RouterStub:
    return RouterStub()


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Config with a short default deadline so timeout paths stay fast."""
    return GatewayConfig(reply_timeout=0.5)


@pytest.fixture
def mock_mqtt_client() -> MagicMock:
    """Mock MQTT client for testing."""
    client = MagicMock()
    client.publish = AsyncMock()
    client.subscribe = AsyncMock()
    client.unsubscribe = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


@pytest.fixture(autouse=True)
def reset_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment variables out of config tests."""
    for key in (
        "MQTT_URL",
        "MQTT_CLIENT_ID",
        "MQTT_KEEPALIVE",
        "GATEWAY_INGRESS_CHANNEL",
        "GATEWAY_REPLY_PREFIX",
        "GATEWAY_REPLY_TIMEOUT",
        "GATEWAY_STAMP_REQUESTS",
        "GATEWAY_LATENCY_CHANNEL",
        "GATEWAY_HOST",
        "GATEWAY_PORT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
