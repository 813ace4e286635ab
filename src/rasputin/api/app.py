"""FastAPI application wiring the HTTP surface to the request/reply bridge."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from rasputin.adapters.mqtt_broker import MQTTBroker
from rasputin.api.routes import router as library_router
from rasputin.config import GatewayConfig
from rasputin.domain.bridge import RequestReplyBridge
from rasputin.domain.ports import Broker

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[GatewayConfig] = None,
    broker: Optional[Broker] = None,
) -> FastAPI:
    """Create the gateway application.

    Args:
        config: Gateway configuration; read from the environment when omitted
        broker: Already connected broker to use instead of an MQTT connection.
            The caller keeps ownership of an injected broker.

    Returns:
        FastAPI application instance
    """
    config = config or GatewayConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned: Optional[MQTTBroker] = None
        active = broker
        if active is None:
            owned = MQTTBroker(config.mqtt_url, config.client_id, keepalive=config.keepalive)
            await owned.connect()
            active = owned

        app.state.broker = active
        app.state.bridge = RequestReplyBridge(active, config)
        logger.info(
            "gateway.started",
            extra={
                "ingress_channel": config.ingress_channel,
                "reply_timeout": config.reply_timeout,
                "latency_channel": config.latency_channel,
            },
        )
        try:
            yield
        finally:
            app.state.bridge = None
            app.state.broker = None
            if owned is not None:
                await owned.disconnect()
            logger.info("gateway.stopped")

    app = FastAPI(
        title="Rasputin Gateway",
        description="HTTP front door bridging requests onto the service broker",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.bridge = None
    app.state.broker = None

    app.include_router(library_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        bridge: Optional[RequestReplyBridge] = app.state.bridge
        if bridge is None:
            return {"ok": False, "error": "Gateway not initialized"}
        prefix = bridge.channels.prefix
        open_channels = [name for name in getattr(app.state.broker, "channels", []) if name.startswith(prefix)]
        return {
            "ok": True,
            "ingress_channel": bridge.config.ingress_channel,
            "reply_timeout": bridge.config.reply_timeout,
            "open_reply_channels": len(open_channels),
        }

    return app


__all__ = ["create_app"]
