"""
Stream Resolver
Walks embed pages, redirect descriptors and nested iframes until a direct media URL turns up
"""
import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup

from ..core.errors import FetchError
from ..models.stream import MediaKind, ResolvedStream
from ..utils.parser import get_video_type
from .strategies import build_script_strategies, run_strategies
from .unpacker import is_packed, unpack

logger = logging.getLogger(__name__)

BLANK_FRAME_URLS = {"", "about:blank", "#", "javascript:void(0)", "javascript:void(0);"}


@dataclass
class ResolutionContext:
    """Per-call state shared by every step of one top-level resolution.

    ``visited`` is the same set object for every derived context, so a URL seen
    anywhere in the walk is never fetched twice.
    """
    depth: int = 0
    visited: Set[str] = field(default_factory=set)
    headers: Dict[str, str] = field(default_factory=dict)

    def descend(self, headers: Optional[Dict[str, str]] = None) -> "ResolutionContext":
        merged = dict(self.headers)
        merged.update(headers or {})
        return ResolutionContext(depth=self.depth + 1, visited=self.visited, headers=merged)


class StreamResolver:
    """Turns an embed/iframe URL into a direct media URL.

    Recursion is an explicit depth-first work list: redirect descriptors push
    their links (first link on top) and nested iframes push the inner frame, so
    each branch is followed to the end before the next alternative is tried.
    """

    def __init__(self, http_client, settings):
        self.http = http_client
        self.settings = settings

    def _max_depth(self) -> int:
        try:
            return max(0, int(self.settings.get("resolver_max_depth", 5)))
        except (TypeError, ValueError):
            return 5

    def _placeholders(self) -> List[str]:
        return list(self.settings.get("resolver_placeholder_urls", []) or [])

    def resolve(
        self,
        candidate_url: str,
        headers: Optional[Dict[str, str]] = None,
        ctx: Optional[ResolutionContext] = None,
    ) -> ResolvedStream:
        """Resolve ``candidate_url``; never raises for unresolvable pages."""
        if ctx is None:
            ctx = ResolutionContext(headers=dict(headers or {}))
        elif headers:
            ctx = ResolutionContext(depth=ctx.depth, visited=ctx.visited, headers={**ctx.headers, **headers})

        strategies = build_script_strategies(self._placeholders())
        max_depth = self._max_depth()
        stack: List[Tuple[str, ResolutionContext]] = [(candidate_url, ctx)]

        while stack:
            url, current = stack.pop()
            if not url or url in current.visited:
                logger.debug("Skipping already visited URL %s", url)
                continue
            if current.depth > max_depth:
                logger.debug("Depth limit %d reached at %s", max_depth, url)
                continue
            current.visited.add(url)

            links = self._redirect_links(url)
            if links is not None:
                child = current.descend({"Referer": self.settings.redirect_referer()})
                for link in reversed(links):
                    stack.append((link, child))
                continue

            try:
                html = self.http.fetch_html(url, headers=current.headers or None)
            except FetchError as e:
                logger.warning("Could not fetch embed page %s: %s", url, e)
                continue

            soup = BeautifulSoup(html, "html.parser")
            found = self._scan_scripts(soup, strategies)
            if found is None:
                found = self._find_video_tag(soup, url)
            if found is not None:
                stream_url, kind = found
                logger.info("Resolved %s -> %s (%s)", candidate_url, stream_url, kind)
                return ResolvedStream.found(stream_url, kind)

            nested = self._find_nested_iframe(soup, url)
            if nested:
                stack.append((nested, current.descend()))

        logger.info("No stream found for %s", candidate_url)
        return ResolvedStream.unresolved()

    def _scan_scripts(self, soup: BeautifulSoup, strategies) -> Optional[Tuple[str, str]]:
        for script in soup.find_all("script"):
            text = script.string if script.string is not None else script.get_text()
            if not text:
                continue
            hit = run_strategies(text, strategies)
            if hit is None and is_packed(text):
                unpacked = unpack(text)
                if unpacked:
                    hit = run_strategies(unpacked, strategies)
            if hit is not None:
                url, kind, name = hit
                logger.debug("Script strategy %s matched %s", name, url)
                return url, kind
        return None

    def _find_video_tag(self, soup: BeautifulSoup, page_url: str) -> Optional[Tuple[str, str]]:
        node = soup.select_one("video source[src]")
        src = node.get("src") if node else ""
        if not src:
            video = soup.select_one("video[src]")
            src = video.get("src") if video else ""
        src = (src or "").strip()
        if not src:
            return None
        absolute = _absolute_url(src, page_url)
        kind = get_video_type(absolute)
        if kind not in MediaKind.DIRECT_KINDS:
            kind = MediaKind.OTHER
        return absolute, kind

    def _find_nested_iframe(self, soup: BeautifulSoup, page_url: str) -> str:
        frame = soup.find("iframe")
        if frame is None:
            return ""
        src = (frame.get("src") or frame.get("data-src") or "").strip()
        if src.lower() in BLANK_FRAME_URLS:
            return ""
        absolute = _absolute_url(src, page_url)
        if absolute == page_url:
            return ""
        return absolute

    def _redirect_links(self, url: str) -> Optional[List[str]]:
        """Decode a redirect descriptor URL into its ordered links.

        Returns None when ``url`` is not a descriptor, and an empty list when it
        is one but the payload is malformed.
        """
        parsed = urlparse(url)
        markers = self.settings.get("resolver_redirect_markers", []) or []
        if not any(marker and marker in parsed.path for marker in markers):
            return None
        param = str(self.settings.get("resolver_redirect_param", "data") or "data")
        values = parse_qs(parsed.query).get(param)
        if not values:
            return None
        try:
            payload = decode_redirect_payload(values[0])
        except ValueError as e:
            logger.warning("Malformed redirect payload in %s: %s", url, e)
            return []
        links = []
        for item in payload:
            link = str(item.get("link") or "").strip() if isinstance(item, dict) else ""
            if link:
                links.append(_absolute_url(link, url))
        return links


def decode_redirect_payload(token: str) -> List[dict]:
    """Decode a base64 JSON list of ``{"link": ...}`` objects.

    Raises:
        ValueError: the token is not base64 or does not hold JSON.
    """
    # parse_qs turns an unescaped "+" into a space
    token = (token or "").strip().replace(" ", "+")
    padded = token + "=" * (-len(token) % 4)
    try:
        if "-" in padded or "_" in padded:
            raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        else:
            raw = base64.b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, json.JSONDecodeError) as e:
        raise ValueError(str(e)) from e
    if isinstance(data, dict):
        data = data.get("links") if isinstance(data.get("links"), list) else [data]
    if not isinstance(data, list):
        raise ValueError("payload is not a list")
    return data


def _absolute_url(src: str, page_url: str) -> str:
    if src.startswith("//"):
        return "https:" + src
    return urljoin(page_url, src)
