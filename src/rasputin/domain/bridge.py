"""Synchronous request/reply over an asynchronous broker.

One call sends one request envelope to the ingress channel and waits for
exactly one reply on a private, ephemeral reply channel. The reply channel
is deleted before the call returns, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from rasputin.config import GatewayConfig
from rasputin.contracts.codec import decode, encode
from rasputin.contracts.envelope import Envelope, new_request
from rasputin.domain.channels import ChannelHandle, ReplyChannelManager
from rasputin.domain.errors import ChannelManagementFailure, MalformedEnvelope
from rasputin.domain.latency import LatencyReporter
from rasputin.domain.ports import Broker
from rasputin.domain.result import BridgeResult, ChannelFailure, Malformed, Ok, Timeout

logger = logging.getLogger(__name__)


class RequestReplyBridge:
    """Translate a request into a broker round trip bounded by a deadline.

    Args:
        broker: Broker adapter implementing :class:`~rasputin.domain.ports.Broker`
        config: Gateway configuration (ingress channel, reply prefix, default deadline)
        latency: Optional reporter receiving a sample for every good reply

    The bridge holds no per-call state; concurrent calls are isolated by
    their unique reply channels.
    """

    def __init__(
        self,
        broker: Broker,
        config: GatewayConfig,
        *,
        latency: Optional[LatencyReporter] = None,
    ) -> None:
        self._broker = broker
        self._config = config
        self._channels = ReplyChannelManager(broker, prefix=config.reply_prefix)
        if latency is None and config.latency_channel:
            latency = LatencyReporter(broker, config.latency_channel)
        self._latency = latency

    @property
    def channels(self) -> ReplyChannelManager:
        return self._channels

    @property
    def config(self) -> GatewayConfig:
        return self._config

    async def request(
        self,
        destination: str,
        body: bytes | str,
        *,
        deadline: Optional[float] = None,
    ) -> BridgeResult:
        """Build standard request headers for ``destination`` and call it."""
        envelope = new_request(
            destination,
            body,
            ingress_channel=self._config.ingress_channel,
            stamp=self._config.stamp_requests,
        )
        return await self.call(envelope, self._config.ingress_channel, deadline)

    async def call(
        self,
        request: Envelope,
        ingress_channel: str,
        deadline: Optional[float] = None,
    ) -> BridgeResult:
        """Send ``request`` to ``ingress_channel`` and wait for its reply.

        Args:
            request: Request envelope; its reply route hop is set to the
                reply channel name (see ``Envelope.with_reply_channel``)
            ingress_channel: Channel read by the router
            deadline: Seconds to wait, measured from the start of the call
                (defaults to ``config.reply_timeout``)

        Returns:
            ``Ok`` with the reply body, ``Timeout``, ``Malformed`` or
            ``ChannelFailure``. Task cancellation propagates as
            ``asyncio.CancelledError`` after the channel is released.

        Raises:
            ValueError: If the deadline is not positive or the request body
                is not UTF-8 text. No channel is acquired in either case.
        """
        if deadline is None:
            deadline = self._config.reply_timeout
        if deadline <= 0:
            raise ValueError(f"deadline must be positive, got {deadline!r}")
        try:
            request.body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError(f"request body is not utf-8 text: {exc}") from exc

        loop = asyncio.get_running_loop()
        started = loop.time()
        expires = started + deadline

        try:
            async with self._channels.reply_channel() as channel:
                result = await self._round_trip(request, ingress_channel, channel, expires, deadline)
        except ChannelManagementFailure as exc:
            logger.error("bridge.acquire_failed", extra={"ingress": ingress_channel, "error": str(exc)})
            return ChannelFailure(exc)

        elapsed_ms = round((loop.time() - started) * 1000.0, 3)
        if isinstance(result, Ok):
            logger.info(
                "bridge.reply",
                extra={"correlation_id": result.correlation_id, "elapsed_ms": elapsed_ms, "bytes": len(result.body)},
            )
            if self._latency is not None:
                await self._latency.report(result.envelope)
        elif isinstance(result, Timeout):
            logger.warning(
                "bridge.timeout",
                extra={"channel": result.channel, "deadline": deadline, "elapsed_ms": elapsed_ms},
            )
        else:
            logger.warning(
                "bridge.failed",
                extra={"outcome": type(result).__name__, "error": str(result.error), "elapsed_ms": elapsed_ms},
            )
        return result

    async def _round_trip(
        self,
        request: Envelope,
        ingress_channel: str,
        channel: ChannelHandle,
        expires: float,
        deadline: float,
    ) -> BridgeResult:
        outbound = request.with_reply_channel(channel.name)
        correlation_id = outbound.correlation_id

        frame = encode(outbound)

        logger.debug(
            "bridge.send",
            extra={
                "correlation_id": correlation_id,
                "ingress": ingress_channel,
                "channel": channel.name,
                "routes": outbound.routes,
            },
        )
        try:
            await self._broker.send(ingress_channel, frame)
        except Exception as exc:
            return ChannelFailure(
                ChannelManagementFailure(f"send to {ingress_channel} failed: {exc}", channel=ingress_channel)
            )

        remaining = max(0.0, expires - asyncio.get_running_loop().time())
        try:
            data = await self._broker.receive(channel.name, remaining)
        except asyncio.TimeoutError:
            return Timeout(channel=channel.name, deadline=deadline)
        except Exception as exc:
            return ChannelFailure(
                ChannelManagementFailure(f"receive on {channel.name} failed: {exc}", channel=channel.name)
            )

        try:
            reply = decode(data)
        except MalformedEnvelope as exc:
            return Malformed(exc)

        reply_id = reply.correlation_id
        if correlation_id and reply_id and reply_id != correlation_id:
            return Malformed(
                MalformedEnvelope(f"reply correlation id {reply_id} does not match request {correlation_id}")
            )

        return Ok(body=reply.body, envelope=reply)


__all__ = ["RequestReplyBridge"]
