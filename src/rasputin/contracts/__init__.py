"""Wire contracts: the envelope, its codec, and versioned body shapes."""

from .codec import decode, encode
from .envelope import Envelope, Header, build_request_headers, new_request

__all__ = ["Envelope", "Header", "build_request_headers", "decode", "encode", "new_request"]
