"""
Stream Service
Episode id -> resolved stream, with caching of both positive and negative outcomes
"""
import logging
from typing import Dict, Optional

from ..core.cache import TTLCache, generate_cache_key
from ..models.stream import MediaKind, ResolvedStream

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    MediaKind.HLS: "application/vnd.apple.mpegurl",
    MediaKind.MP4: "video/mp4",
}


def content_type_for(media_kind: str) -> str:
    return CONTENT_TYPES.get(media_kind, "application/octet-stream")


class StreamService:
    """Selects an episode source and runs it through the stream resolver.

    Transport failures on the episode page propagate as ``FetchError``; a page
    that yields nothing playable returns ``ResolvedStream.unresolved()``.
    """

    def __init__(self, episode_scraper, resolver, http_client, cache: TTLCache, settings):
        self.episodes = episode_scraper
        self.resolver = resolver
        self.http = http_client
        self.cache = cache
        self.settings = settings

    def _cache_enabled(self) -> bool:
        return bool(self.settings.get("cache_enabled", True))

    def _negative_ttl(self) -> float:
        try:
            return max(0.0, float(self.settings.get("cache_negative_ttl_seconds", 300) or 0))
        except (TypeError, ValueError):
            return 0.0

    def _referer(self) -> str:
        return str(self.settings.get("base_url", "") or "").rstrip("/") + "/"

    def resolve_episode_stream(self, episode_id: str) -> ResolvedStream:
        cache_key = generate_cache_key("stream", episode_id)
        if self._cache_enabled():
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        episode = self.episodes.scrape_episode(episode_id)
        result = self._select_and_resolve(episode.sources)

        if self._cache_enabled():
            ttl = self.settings.ttl_for("episode") if result.success else self._negative_ttl()
            if ttl > 0:
                self.cache.set(cache_key, result, ttl)
        if not result.success:
            logger.info("No playable stream for episode %s", episode_id)
        return result

    def _select_and_resolve(self, sources) -> ResolvedStream:
        frame = next((s for s in sources if s.kind == MediaKind.IFRAME), None)
        if frame is not None:
            resolved = self.resolver.resolve(frame.url, headers={"Referer": self._referer()})
            if resolved.success:
                return resolved

        direct = next((s for s in sources if s.kind in MediaKind.DIRECT_KINDS), None)
        if direct is not None:
            return ResolvedStream.found(direct.url, direct.kind)
        return ResolvedStream.unresolved()

    def proxy_stream(self, stream_url: str, headers: Optional[Dict[str, str]] = None):
        """Open the media URL for relaying; the site referer is always sent"""
        merged = dict(headers or {})
        merged["Referer"] = self._referer()
        return self.http.open_stream(stream_url, headers=merged)
