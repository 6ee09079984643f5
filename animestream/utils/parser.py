"""
Parser Utilities
Text cleanup, URL normalization and media/quality inference shared by scrapers
"""
import re
from typing import Tuple
from urllib.parse import urljoin

from ..models.stream import MediaKind


def clean_text(text: str) -> str:
    """Trim and collapse runs of whitespace into single spaces"""
    return re.sub(r"\s+", " ", (text or "").strip())


def build_url(path: str, base_url: str) -> str:
    """
    Build a full URL from a site-relative path

    Args:
        path: Absolute URL or path such as ``/episode/x/`` or ``episode/x/``
        base_url: Site root, e.g. ``https://watchanimeworld.in``

    Returns:
        Absolute URL
    """
    if path.startswith("http"):
        return path
    base = base_url.rstrip("/")
    return f"{base}{path if path.startswith('/') else '/' + path}"


def normalize_url(url: str, base_url: str) -> str:
    """Return an absolute http(s) URL, or an empty string for empty input"""
    url = (url or "").strip()
    if not url:
        return ""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("/"):
        return build_url(url, base_url)
    return urljoin(base_url.rstrip("/") + "/", url)


def extract_id_from_url(url: str) -> str:
    """
    Extract a content id from a site URL

    Example: https://watchanimeworld.in/series/bleach-thousand-year-blood-war/
             -> bleach-thousand-year-blood-war
    """
    match = re.search(r"/(series|episode|movies?)/([^/?#]+)", url or "")
    return match.group(2) if match else ""


def parse_episode_number(text: str) -> Tuple[int, int]:
    """
    Parse (season, episode) from text

    Handles: "1x13", "S1E13", "Episode 13". Defaults to (1, 1).
    """
    text = text or ""
    match = re.search(r"(\d+)x(\d+)", text, re.IGNORECASE)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = re.search(r"s(\d+)e(\d+)", text, re.IGNORECASE)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = re.search(r"episode[\s-]+(\d+)", text, re.IGNORECASE)
    if match:
        return 1, int(match.group(1))
    return 1, 1


def extract_quality(text: str) -> str:
    """Map labels like "1080p", "HD" or "SD" to a quality string"""
    match = re.search(r"(\d+p)", text or "", re.IGNORECASE)
    if match:
        return match.group(1)
    lower = (text or "").lower()
    if "hd" in lower:
        return "720p"
    if "sd" in lower:
        return "480p"
    return "unknown"


def get_video_type(url: str) -> str:
    """Infer the media kind of a URL from its text"""
    url = url or ""
    if ".m3u8" in url:
        return MediaKind.HLS
    if ".mp4" in url:
        return MediaKind.MP4
    if "iframe" in url or "embed" in url:
        return MediaKind.IFRAME
    return MediaKind.OTHER
