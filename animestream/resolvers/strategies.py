"""
Extraction strategies
Pure ``(text) -> url or None`` matchers tried in order against each script block
"""
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..models.stream import MediaKind
from ..utils.parser import get_video_type

# Scheme separators may be JSON-escaped (https:\/\/host\/path).
M3U8_RE = re.compile(r"(https?:(?:\\?/){2}[^\s\"'<>]+?\.m3u8[^\s\"'<>]*)")
MP4_RE = re.compile(r"(https?:(?:\\?/){2}[^\s\"'<>]+?\.mp4[^\s\"'<>]*)")
FILE_PROPERTY_RE = re.compile(r"[\"']?(?:file|source|src)[\"']?\s*:\s*[\"']([^\"']+)[\"']")

EXCLUDED_EXTENSIONS = (".srt", ".vtt")


def _unescape(url: str) -> str:
    return url.replace("\\/", "/").rstrip("\\")


def find_m3u8_url(text: str) -> Optional[str]:
    match = M3U8_RE.search(text or "")
    return _unescape(match.group(1)) if match else None


def find_mp4_url(text: str) -> Optional[str]:
    match = MP4_RE.search(text or "")
    return _unescape(match.group(1)) if match else None


def is_placeholder_url(url: str, placeholders: Iterable[str]) -> bool:
    lower = url.lower()
    for placeholder in placeholders or ():
        prefix = str(placeholder or "").strip().lower()
        if not prefix:
            continue
        if lower == prefix or lower.startswith(prefix.rstrip("/") + "/"):
            return True
    return False


def find_file_property(text: str, placeholders: Iterable[str] = ()) -> Optional[str]:
    """First ``file:``/``source:``/``src:`` value that is an absolute, playable URL"""
    for match in FILE_PROPERTY_RE.finditer(text or ""):
        url = _unescape(match.group(1).strip())
        if not url.startswith("http"):
            continue
        path = url.split("?", 1)[0].lower()
        if path.endswith(EXCLUDED_EXTENSIONS):
            continue
        if is_placeholder_url(url, placeholders):
            continue
        return url
    return None


Strategy = Callable[[str], Optional[str]]


def build_script_strategies(placeholders: Sequence[str] = ()) -> List[Tuple[str, Strategy, Optional[str]]]:
    """Ordered (name, matcher, kind) list; a ``None`` kind is inferred from the URL."""
    placeholders = tuple(placeholders or ())
    return [
        ("m3u8", find_m3u8_url, MediaKind.HLS),
        ("mp4", find_mp4_url, MediaKind.MP4),
        ("file-property", lambda text: find_file_property(text, placeholders), None),
    ]


def run_strategies(text: str, strategies) -> Optional[Tuple[str, str, str]]:
    """Return ``(url, kind, strategy_name)`` from the first strategy that matches"""
    for name, matcher, kind in strategies:
        url = matcher(text)
        if url:
            return url, kind or get_video_type(url), name
    return None
