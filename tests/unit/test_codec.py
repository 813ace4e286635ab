from __future__ import annotations

import orjson
import pytest

from rasputin.contracts.codec import decode, encode
from rasputin.contracts.envelope import Envelope, Header, new_request
from rasputin.domain.errors import MalformedBody, MalformedEnvelope


def test_encode_decode_preserves_header_order_and_body() -> None:
    envelope = new_request("ms-books", '{"command":"list"}', ingress_channel="api-router")
    envelope = envelope.with_reply_channel("tmp-reply-1")

    decoded = decode(encode(envelope))

    assert decoded == envelope


def test_encode_produces_headers_and_body_keys() -> None:
    envelope = Envelope(headers=(Header.id("g"), Header.route("ms-books")), body=b"hi")

    raw = orjson.loads(encode(envelope))

    assert list(raw) == ["headers", "body"]
    assert raw["headers"] == [
        {"name": "id-header", "fields": {"GUID": "g"}},
        {"name": "route-header", "fields": {"Destination": "ms-books", "Active": "true"}},
    ]
    assert raw["body"] == "hi"


def test_encode_rejects_non_text_body() -> None:
    with pytest.raises(MalformedBody):
        encode(Envelope(body=b"\xff\xfe"))


@pytest.mark.parametrize("payload", [b"", b"   \n"])
def test_decode_empty_payload_is_malformed_body(payload: bytes) -> None:
    with pytest.raises(MalformedBody, match="empty payload"):
        decode(payload)


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[1, 2]",
        b'{"body": "x"}',
        b'{"headers": "nope", "body": "x"}',
        b'{"headers": [{"fields": {}}], "body": "x"}',
        b'{"headers": [{"name": "id-header", "fields": {"GUID": 7}}], "body": "x"}',
        b'{"headers": [{"name": "id-header", "fields": {}, "extra": 1}], "body": "x"}',
    ],
)
def test_decode_rejects_bad_shapes(payload: bytes) -> None:
    with pytest.raises(MalformedEnvelope):
        decode(payload)


@pytest.mark.parametrize("payload", [b'{"headers": []}', b'{"headers": [], "body": 12}'])
def test_decode_rejects_missing_or_non_text_body(payload: bytes) -> None:
    with pytest.raises(MalformedBody):
        decode(payload)


def test_malformed_body_is_a_malformed_envelope() -> None:
    assert issubclass(MalformedBody, MalformedEnvelope)


def test_decode_accepts_empty_body_text() -> None:
    decoded = decode(b'{"headers": [], "body": ""}')

    assert decoded.headers == ()
    assert decoded.body == b""


def test_decode_keeps_unknown_headers() -> None:
    frame = b'{"headers": [{"name": "trace-header", "fields": {"Span": "1"}}], "body": "ok"}'

    decoded = decode(frame)

    assert decoded.headers[0].name == "trace-header"
    assert decoded.correlation_id is None
