from .stream_resolver import ResolutionContext, StreamResolver, decode_redirect_payload
from .unpacker import is_packed, unpack

__all__ = [
    "ResolutionContext",
    "StreamResolver",
    "decode_redirect_payload",
    "is_packed",
    "unpack",
]
