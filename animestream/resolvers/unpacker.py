"""
Packed JavaScript unpacker
Reverses the ``eval(function(p,a,c,k,e,d){...}(...))`` packer used by embed hosts
"""
import logging
import re
from typing import Dict, List

logger = logging.getLogger(__name__)

PACKED_SIGNATURE_RE = re.compile(
    r"eval\s*\(\s*function\s*\(\s*p\s*,\s*a\s*,\s*c\s*,\s*k\s*,\s*e\s*,\s*[dr]\s*\)",
)

# }('payload',base,count,'k1|k2'.split('|')
PACKED_ARGS_RE = re.compile(
    r"\}\s*\(\s*"
    r"(?P<q1>['\"])(?P<payload>(?:\\.|(?!(?P=q1))[^\\])*)(?P=q1)\s*,\s*"
    r"(?P<base>\d+)\s*,\s*"
    r"(?P<count>\d+)\s*,\s*"
    r"(?P<q2>['\"])(?P<keywords>(?:\\.|(?!(?P=q2))[^\\])*)(?P=q2)"
    r"\s*\.split\(\s*['\"]\|['\"]\s*\)",
    re.DOTALL,
)

TOKEN_RE = re.compile(r"\b\w+\b")

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def is_packed(text: str) -> bool:
    return bool(text) and PACKED_SIGNATURE_RE.search(text) is not None


def encode_base(value: int, base: int) -> str:
    """Encode an index the way the packer's ``e(c)`` does.

    Digits 0-9, then a-z, then A-Z from 36 upward (chr(c + 29)).
    """
    if value < 0 or base < 2:
        return ""
    head = encode_base(value // base, base) if value >= base else ""
    rem = value % base
    if rem > 35:
        return head + chr(rem + 29)
    return head + _DIGITS[rem]


def _unescape_js(text: str) -> str:
    return re.sub(r"\\(['\"\\])", r"\1", text)


def _build_dictionary(keywords: List[str], base: int, count: int) -> Dict[str, str]:
    # indices past the keyword list would map to themselves
    symbols: Dict[str, str] = {}
    for index in range(min(count, len(keywords))):
        symbol = encode_base(index, base)
        symbols[symbol] = keywords[index] or symbol
    return symbols


def unpack_one(payload: str, base: int, count: int, keywords: List[str]) -> str:
    """Substitute every word token in ``payload`` through the rebuilt dictionary"""
    if base < 2 or base > 95:
        return ""
    symbols = _build_dictionary(keywords, base, count)
    return TOKEN_RE.sub(lambda m: symbols.get(m.group(0), m.group(0)), payload)


def unpack(text: str) -> str:
    """Unpack every packed block in ``text``.

    Returns the reconstructed source, or an empty string when the signature is
    absent or its arguments cannot be parsed.
    """
    if not is_packed(text):
        return ""
    chunks = []
    for match in PACKED_ARGS_RE.finditer(text):
        try:
            base = int(match.group("base"))
            count = int(match.group("count"))
        except ValueError:
            continue
        payload = _unescape_js(match.group("payload"))
        keywords = _unescape_js(match.group("keywords")).split("|")
        unpacked = unpack_one(payload, base, count, keywords)
        if unpacked:
            chunks.append(unpacked)
    if not chunks:
        logger.debug("Packed signature found but arguments were not parseable")
        return ""
    return "\n".join(chunks)
