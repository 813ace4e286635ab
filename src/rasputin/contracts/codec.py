"""JSON wire codec for envelopes.

Wire shape (camelCase keys, header order preserved)::

    {"headers": [{"name": "id-header", "fields": {"GUID": "..."}}, ...],
     "body": "<utf-8 text>"}
"""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import ValidationError

from rasputin.contracts.envelope import Envelope, Header
from rasputin.domain.errors import MalformedBody, MalformedEnvelope


def encode(envelope: Envelope) -> bytes:
    try:
        body = envelope.body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedBody(f"body is not utf-8 text: {exc}") from exc
    payload = {
        "headers": [{"name": h.name, "fields": dict(h.fields)} for h in envelope.headers],
        "body": body,
    }
    return orjson.dumps(payload)


def decode(data: bytes) -> Envelope:
    """Parse wire bytes into an :class:`Envelope`.

    Raises:
        MalformedBody: payload is empty, or the body is missing or not text
        MalformedEnvelope: payload is not JSON or has the wrong shape
    """
    if not data or not data.strip():
        raise MalformedBody("empty payload")

    try:
        raw: Any = orjson.loads(data)
    except orjson.JSONDecodeError as exc:
        raise MalformedEnvelope(f"not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise MalformedEnvelope(f"expected JSON object, got {type(raw).__name__}")

    raw_headers = raw.get("headers")
    if not isinstance(raw_headers, list):
        raise MalformedEnvelope("missing or invalid 'headers' array")

    try:
        headers = tuple(Header.model_validate(item) for item in raw_headers)
    except ValidationError as exc:
        raise MalformedEnvelope(f"invalid header: {exc.errors()[0]['msg']}") from exc

    body = raw.get("body")
    if not isinstance(body, str):
        raise MalformedBody("missing or non-text 'body'")

    return Envelope(headers=headers, body=body.encode("utf-8"))


__all__ = ["decode", "encode"]
