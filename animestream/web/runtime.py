"""Runtime bootstrap for the AnimeStream web API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.cache import TTLCache
from ..core.http_client import HttpClient
from ..core.settings_manager import SettingsManager
from ..resolvers.stream_resolver import StreamResolver
from ..scrapers.anime import AnimeScraper
from ..scrapers.episode import EpisodeScraper
from ..services.stream_service import StreamService


@dataclass
class AnimeStreamRuntime:
    """Shared service graph used by web endpoints."""

    settings: SettingsManager
    cache: TTLCache
    http: HttpClient
    resolver: StreamResolver
    episodes: EpisodeScraper
    anime: AnimeScraper
    streams: StreamService


def build_runtime(
    settings: Optional[SettingsManager] = None,
    http: Optional[HttpClient] = None,
    cache: Optional[TTLCache] = None,
) -> AnimeStreamRuntime:
    """Create and wire core services once per process."""

    settings = settings or SettingsManager()
    cache = cache or TTLCache()
    http = http or HttpClient(settings)
    resolver = StreamResolver(http, settings)
    episodes = EpisodeScraper(http, cache, settings)
    anime = AnimeScraper(http, cache, settings)
    streams = StreamService(episodes, resolver, http, cache, settings)
    return AnimeStreamRuntime(
        settings=settings,
        cache=cache,
        http=http,
        resolver=resolver,
        episodes=episodes,
        anime=anime,
        streams=streams,
    )
