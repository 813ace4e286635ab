"""Broker adapters implementing the bridge's broker port."""

from .memory import InMemoryBroker
from .mqtt_broker import MQTTBroker

__all__ = ["InMemoryBroker", "MQTTBroker"]
