from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rasputin.contracts.envelope import Envelope


class LatencySample(BaseModel):
    """One request/reply leg timing, keyed by correlation id."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: str
    queue: str
    sent_timestamp: datetime
    receive_timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def elapsed_ms(self) -> float:
        return (self.receive_timestamp - self.sent_timestamp).total_seconds() * 1000.0

    @classmethod
    def from_reply(cls, envelope: Envelope, *, received_at: Optional[datetime] = None) -> Optional["LatencySample"]:
        """Build a sample from a reply, or None when it carries no send timestamp."""
        guid = envelope.correlation_id
        queue = envelope.current_queue
        sent_at = envelope.sent_at
        if not guid or not queue or sent_at is None:
            return None
        return cls(
            id=guid,
            queue=queue,
            sent_timestamp=sent_at,
            receive_timestamp=received_at or datetime.now(timezone.utc),
        )
