"""Gateway configuration loaded from the environment."""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rasputin.runtime import env as envutil


class GatewayConfig(BaseModel):
    """Configuration for the HTTP gateway and its request/reply bridge.

    Load from environment using GatewayConfig.from_env(); tests build it
    directly.

    Attributes:
        mqtt_url: MQTT broker URL (mqtt://[user:pass@]host[:port])
        client_id: Unique client identifier for the broker connection
        keepalive: MQTT protocol keepalive interval in seconds
        ingress_channel: Well-known channel read by the router
        reply_prefix: Prefix for ephemeral reply channel names
        reply_timeout: Default deadline for a reply, in seconds
        stamp_requests: Whether requests carry a send timestamp
        latency_channel: Channel receiving latency samples (None disables)
        api_host: HTTP bind address
        api_port: HTTP port
        log_level: Root logging level
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    mqtt_url: str = "mqtt://localhost:1883"
    client_id: str = "rasputin-api"
    keepalive: int = Field(default=60, ge=1, le=3600)
    ingress_channel: str = Field(default="api-router", min_length=1)
    reply_prefix: str = Field(default="tmp-reply-", min_length=1)
    reply_timeout: float = Field(default=20.0, gt=0.0)
    stamp_requests: bool = True
    latency_channel: Optional[str] = None
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = "INFO"

    @field_validator("mqtt_url")
    @classmethod
    def validate_mqtt_url(cls, v: str) -> str:
        scheme = urlparse(v).scheme
        if scheme != "mqtt":
            raise ValueError(f"Invalid MQTT URL scheme: {scheme!r}. Expected 'mqtt://'.")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "GatewayConfig":
        """Load configuration from environment variables.

        Environment variables (all optional):
            MQTT_URL, MQTT_CLIENT_ID, MQTT_KEEPALIVE
            GATEWAY_INGRESS_CHANNEL (default: api-router)
            GATEWAY_REPLY_PREFIX (default: tmp-reply-)
            GATEWAY_REPLY_TIMEOUT (default: 20.0)
            GATEWAY_STAMP_REQUESTS (default: true)
            GATEWAY_LATENCY_CHANNEL (default: unset)
            GATEWAY_HOST, GATEWAY_PORT
            LOG_LEVEL (default: INFO)

        Raises:
            ValueError: If validation fails
        """
        return cls(
            mqtt_url=envutil.get_str("MQTT_URL", "mqtt://localhost:1883", env=env),
            client_id=envutil.get_str("MQTT_CLIENT_ID", "rasputin-api", env=env),
            keepalive=envutil.get_int("MQTT_KEEPALIVE", 60, env=env),
            ingress_channel=envutil.get_str("GATEWAY_INGRESS_CHANNEL", "api-router", env=env),
            reply_prefix=envutil.get_str("GATEWAY_REPLY_PREFIX", "tmp-reply-", env=env),
            reply_timeout=envutil.get_float("GATEWAY_REPLY_TIMEOUT", 20.0, env=env),
            stamp_requests=envutil.get_bool("GATEWAY_STAMP_REQUESTS", True, env=env),
            latency_channel=envutil.get_optional_str("GATEWAY_LATENCY_CHANNEL", env=env),
            api_host=envutil.get_str("GATEWAY_HOST", "0.0.0.0", env=env),
            api_port=envutil.get_int("GATEWAY_PORT", 8080, env=env),
            log_level=envutil.get_str("LOG_LEVEL", "INFO", env=env),
        )


__all__ = ["GatewayConfig"]
