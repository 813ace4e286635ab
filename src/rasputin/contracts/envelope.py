from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

ID_HEADER = "id-header"
ROUTE_HEADER = "route-header"
CURRENT_QUEUE_HEADER = "current-queue-header"

FIELD_GUID = "GUID"
FIELD_DESTINATION = "Destination"
FIELD_ACTIVE = "Active"
FIELD_NAME = "Name"
FIELD_TIMESTAMP = "Timestamp"

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as ``yyyy-MM-ddTHH:mm:ss.fffZ`` in UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    # %f is microseconds; the wire carries milliseconds
    return moment.strftime(TIMESTAMP_FORMAT)[:-4] + "Z"


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class Header(BaseModel):
    """A named header carrying a flat string-to-string field map."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    fields: dict[str, str] = Field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.fields.get(key, default)

    @classmethod
    def id(cls, guid: Optional[str] = None) -> "Header":
        return cls(name=ID_HEADER, fields={FIELD_GUID: guid or str(uuid.uuid4())})

    @classmethod
    def route(cls, destination: str, *, active: bool = True) -> "Header":
        return cls(
            name=ROUTE_HEADER,
            fields={FIELD_DESTINATION: destination, FIELD_ACTIVE: "true" if active else "false"},
        )

    @classmethod
    def current_queue(cls, name: str, timestamp: Optional[datetime] = None) -> "Header":
        fields = {FIELD_NAME: name}
        if timestamp is not None:
            fields[FIELD_TIMESTAMP] = format_timestamp(timestamp)
        return cls(name=CURRENT_QUEUE_HEADER, fields=fields)


class Envelope(BaseModel):
    """Ordered headers plus an opaque body.

    Header order is part of the wire contract with the router and is never
    changed by any helper here; helpers that "modify" an envelope return a
    new instance.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    headers: tuple[Header, ...] = ()
    body: bytes = b""

    def iter_headers(self, name: str) -> Iterator[Header]:
        return (header for header in self.headers if header.name == name)

    def first_header(self, name: str) -> Optional[Header]:
        return next(self.iter_headers(name), None)

    @property
    def correlation_id(self) -> Optional[str]:
        header = self.first_header(ID_HEADER)
        return header.get(FIELD_GUID) if header else None

    @property
    def routes(self) -> list[str]:
        return [h.fields.get(FIELD_DESTINATION, "") for h in self.iter_headers(ROUTE_HEADER)]

    @property
    def current_queue(self) -> Optional[str]:
        header = self.first_header(CURRENT_QUEUE_HEADER)
        return header.get(FIELD_NAME) if header else None

    @property
    def sent_at(self) -> Optional[datetime]:
        header = self.first_header(CURRENT_QUEUE_HEADER)
        raw = header.get(FIELD_TIMESTAMP) if header else None
        if not raw:
            return None
        try:
            return parse_timestamp(raw)
        except ValueError:
            return None

    def with_reply_channel(self, channel: str) -> "Envelope":
        """Point the final route hop at ``channel``.

        With two or more route headers the last one is the reply hop and is
        rewritten. A lone route header is the service hop, so the reply hop
        is inserted right after it. Appends a route header when the envelope
        has none.
        """
        positions = [i for i, h in enumerate(self.headers) if h.name == ROUTE_HEADER]
        headers = list(self.headers)
        if len(positions) == 1:
            headers.insert(positions[0] + 1, Header.route(channel))
        elif positions:
            last = positions[-1]
            fields = dict(headers[last].fields)
            fields[FIELD_DESTINATION] = channel
            fields.setdefault(FIELD_ACTIVE, "true")
            headers[last] = Header(name=ROUTE_HEADER, fields=fields)
        else:
            headers.append(Header.route(channel))
        return self.model_copy(update={"headers": tuple(headers)})


def build_request_headers(
    destination: str,
    reply_channel: str,
    ingress_channel: str,
    *,
    correlation_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> tuple[Header, ...]:
    """Assemble the router-facing header sequence for a request.

    Order: id, service route, reply route, current queue.
    """
    return (
        Header.id(correlation_id),
        Header.route(destination),
        Header.route(reply_channel),
        Header.current_queue(ingress_channel, timestamp),
    )


def new_request(
    destination: str,
    body: bytes | str,
    *,
    ingress_channel: str,
    reply_channel: str = "",
    stamp: bool = True,
    correlation_id: Optional[str] = None,
) -> Envelope:
    """Build a request envelope; the reply hop is filled in by the bridge."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = build_request_headers(
        destination,
        reply_channel,
        ingress_channel,
        correlation_id=correlation_id,
        timestamp=datetime.now(timezone.utc) if stamp else None,
    )
    return Envelope(headers=headers, body=body)


__all__ = [
    "CURRENT_QUEUE_HEADER",
    "Envelope",
    "FIELD_ACTIVE",
    "FIELD_DESTINATION",
    "FIELD_GUID",
    "FIELD_NAME",
    "FIELD_TIMESTAMP",
    "Header",
    "ID_HEADER",
    "ROUTE_HEADER",
    "build_request_headers",
    "format_timestamp",
    "new_request",
    "parse_timestamp",
]
