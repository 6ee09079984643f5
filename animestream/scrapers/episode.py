"""
Episode Scraper
Parses episode pages into metadata, source candidates, servers and download links
"""
import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from ..core.cache import TTLCache, generate_cache_key
from ..core.errors import ExtractionError
from ..models.episode import DownloadLink, EpisodeDetails, Server
from ..models.stream import MediaKind, SourceCandidate
from ..utils.parser import (
    clean_text,
    extract_quality,
    get_video_type,
    normalize_url,
    parse_episode_number,
)

logger = logging.getLogger(__name__)

PLAYER_SELECTORS = ".player-container, .video-player, [class*='player']"
SERVER_SELECTORS = ".server-option, .player-option, [class*='server']"
DOWNLOAD_SELECTORS = ".download-link, .download-option, a[download], [class*='download'] a"


def frame_kind(url: str) -> str:
    """Kind of a URL found in an iframe: direct media stays hls/mp4, anything else is a frame"""
    kind = get_video_type(url)
    return kind if kind in MediaKind.DIRECT_KINDS else MediaKind.IFRAME


def _frame_src(node) -> str:
    return (node.get("src") or node.get("data-src") or "").strip()


def parse_episode_page(html: str, episode_id: str, base_url: str) -> EpisodeDetails:
    """Map an episode page to ``EpisodeDetails``.

    Candidates keep document order: every iframe on the page first, then the
    data attributes of player containers and the iframes nested in them.
    Duplicate URLs are listed once.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title_node = soup.select_one("h1.title, .single-post h1, article h1")
    title = clean_text(title_node.get_text(" ")) if title_node else ""
    thumb_node = soup.select_one(".thumbnail img, article img")
    thumbnail = normalize_url(thumb_node.get("src") or "", base_url) if thumb_node else ""
    season_number, episode_number = parse_episode_number(episode_id)

    sources: List[SourceCandidate] = []
    seen = set()

    def add(url: str, label: Optional[str] = None, framed: bool = False):
        full_url = normalize_url(url, base_url)
        if not full_url or full_url in seen:
            return
        seen.add(full_url)
        kind = frame_kind(full_url) if framed else get_video_type(full_url)
        sources.append(SourceCandidate(url=full_url, kind=kind, label=label))

    for frame in soup.find_all("iframe"):
        src = _frame_src(frame)
        if src:
            add(src, "iframe", framed=True)

    for player in soup.select(PLAYER_SELECTORS):
        data_url = player.get("data-url") or player.get("data-src") or player.get("data-video")
        if data_url:
            add(data_url)
        for frame in player.find_all("iframe"):
            src = _frame_src(frame)
            if src:
                add(src, framed=True)

    servers: List[Server] = []
    for node in soup.select(SERVER_SELECTORS):
        server_id = node.get("data-id") or node.get("data-server") or ""
        server_name = clean_text(node.get_text(" "))
        server_url = node.get("data-url") or node.get("href") or ""
        if server_id and server_name:
            servers.append(Server(id=server_id, name=server_name, url=normalize_url(server_url, base_url)))

    downloads: List[DownloadLink] = []
    for node in soup.select(DOWNLOAD_SELECTORS):
        href = node.get("href") or ""
        if href and "http" in href:
            downloads.append(DownloadLink(url=href, quality=extract_quality(clean_text(node.get_text(" ")))))

    return EpisodeDetails(
        id=episode_id,
        title=title,
        episode_number=episode_number,
        season_number=season_number,
        thumbnail=thumbnail,
        sources=sources,
        downloads=downloads,
        servers=servers,
    )


class EpisodeScraper:
    """Fetches and caches episode pages"""

    def __init__(self, http_client, cache: TTLCache, settings):
        self.http = http_client
        self.cache = cache
        self.settings = settings

    def _base_url(self) -> str:
        return str(self.settings.get("base_url", "") or "").rstrip("/")

    def _cache_enabled(self) -> bool:
        return bool(self.settings.get("cache_enabled", True))

    def scrape_episode(self, episode_id: str) -> EpisodeDetails:
        """
        Load an episode page and its source candidates

        Raises:
            ExtractionError: empty episode id
            FetchError: the episode page could not be fetched
        """
        episode_id = (episode_id or "").strip().strip("/")
        if not episode_id:
            raise ExtractionError("Episode id is empty")

        cache_key = generate_cache_key("episode", episode_id)
        if self._cache_enabled():
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        url = f"{self._base_url()}/episode/{episode_id}/"
        html = self.http.fetch_html(url)
        episode = parse_episode_page(html, episode_id, self._base_url())
        logger.debug("Episode %s: %d source candidate(s)", episode_id, len(episode.sources))

        if self._cache_enabled():
            self.cache.set(cache_key, episode, self.settings.ttl_for("episode"))
        return episode

    def get_episode_server(self, episode_id: str, server_id: str) -> List[SourceCandidate]:
        """List iframe candidates exposed by one of the episode's server options"""
        cache_key = generate_cache_key("episode-server", episode_id, server_id)
        if self._cache_enabled():
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        episode = self.scrape_episode(episode_id)
        server = next((s for s in episode.servers if s.id == server_id), None)
        if server is None or not server.url:
            return []

        html = self.http.fetch_html(server.url)
        soup = BeautifulSoup(html, "html.parser")
        sources = []
        for frame in soup.find_all("iframe"):
            src = _frame_src(frame)
            if src:
                full_url = normalize_url(src, self._base_url())
                sources.append(SourceCandidate(url=full_url, kind=frame_kind(full_url), label=server.name))

        if self._cache_enabled():
            self.cache.set(cache_key, sources, self.settings.ttl_for("episode"))
        return sources
