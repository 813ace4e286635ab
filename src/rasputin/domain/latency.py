from __future__ import annotations

import logging
from datetime import datetime, timezone

from rasputin.contracts.envelope import Envelope
from rasputin.contracts.v1.latency import LatencySample
from rasputin.domain.ports import Broker

logger = logging.getLogger(__name__)


class LatencyReporter:
    """Forward per-reply latency samples to a collector channel.

    Best effort: a failed send is logged and dropped.
    """

    def __init__(self, broker: Broker, channel: str) -> None:
        self._broker = broker
        self._channel = channel

    @property
    def channel(self) -> str:
        return self._channel

    async def report(self, reply: Envelope) -> LatencySample | None:
        sample = LatencySample.from_reply(reply, received_at=datetime.now(timezone.utc))
        if sample is None:
            logger.debug("latency.skipped", extra={"correlation_id": reply.correlation_id})
            return None
        try:
            await self._broker.send(self._channel, sample.model_dump_json(by_alias=True).encode("utf-8"))
        except Exception as exc:
            logger.warning(
                "latency.report_failed",
                extra={"correlation_id": sample.id, "latency_channel": self._channel, "error": str(exc)},
            )
            return None
        logger.debug(
            "latency.reported",
            extra={"correlation_id": sample.id, "queue": sample.queue, "elapsed_ms": round(sample.elapsed_ms, 3)},
        )
        return sample
