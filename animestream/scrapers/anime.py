"""
Anime Scraper
Series and movie detail pages: metadata, languages, seasons and related titles
"""
import logging
from typing import Dict, List, Tuple

from bs4 import BeautifulSoup

from ..core.cache import TTLCache, generate_cache_key
from ..core.errors import ExtractionError
from ..models.anime import AnimeDetails, EpisodeInfo, RelatedTitle, Season
from ..utils.parser import clean_text, extract_id_from_url, normalize_url, parse_episode_number

logger = logging.getLogger(__name__)

TITLE_SELECTORS = "h1.title, .single-post h1, article h1"
POSTER_SELECTORS = ".poster img, .thumbnail img, article img"
DESCRIPTION_SELECTORS = ".description, .summary, .content p"
GENRE_SELECTORS = ".genres a, .genre a, .sgeneros a, a[rel='tag']"
LANGUAGE_SELECTORS = ".languages a, .language a, .audio a"
RATING_SELECTORS = ".rating, .vote_average, .dt_rating_vgs"
STATUS_SELECTORS = ".status, .data .status"
EPISODE_SELECTORS = ".episodes-list li, .episodios li, .se-c .se-a ul li, .episode-item"
RELATED_SELECTORS = ".related article, .recommendations article, [class*='related'] article"

# (keyword, label) pairs in the order labels are reported
LANGUAGE_KEYWORDS = (
    ("hindi", "Hindi"),
    ("tamil", "Tamil"),
    ("telugu", "Telugu"),
    ("english", "English"),
)


def _first_text(soup: BeautifulSoup, selectors: str) -> str:
    node = soup.select_one(selectors)
    return clean_text(node.get_text(" ")) if node else ""


def _unique_texts(soup: BeautifulSoup, selectors: str) -> List[str]:
    values = []
    for node in soup.select(selectors):
        text = clean_text(node.get_text(" "))
        if text and text not in values:
            values.append(text)
    return values


def detect_languages_from_text(text: str) -> List[str]:
    """Keyword fallback for pages without language links.

    Matches over the whole page text, so a mention anywhere (comments,
    related titles) counts.
    """
    lower = (text or "").lower()
    return [label for keyword, label in LANGUAGE_KEYWORDS if keyword in lower]


def _parse_languages(soup: BeautifulSoup) -> Tuple[List[str], bool]:
    languages = _unique_texts(soup, LANGUAGE_SELECTORS)
    if languages:
        return languages, False
    return detect_languages_from_text(soup.get_text(" ")), True


def _parse_seasons(soup: BeautifulSoup, base_url: str) -> List[Season]:
    by_season: Dict[int, List[EpisodeInfo]] = {}
    for item in soup.select(EPISODE_SELECTORS):
        link = item.find("a")
        if link is None:
            continue
        url = normalize_url(link.get("href") or "", base_url)
        title = clean_text(link.get_text(" ")) or clean_text(link.get("title") or "")
        if not url or not title:
            continue
        image = item.find("img")
        season_number, episode_number = parse_episode_number(title)
        by_season.setdefault(season_number, []).append(
            EpisodeInfo(
                id=extract_id_from_url(url),
                episode_number=episode_number,
                season_number=season_number,
                title=title,
                url=url,
                thumbnail=normalize_url(image.get("src") or "", base_url) if image else "",
            )
        )
    return [
        Season(season_number=number, episodes=sorted(episodes, key=lambda e: e.episode_number))
        for number, episodes in sorted(by_season.items())
    ]


def _parse_related(soup: BeautifulSoup, base_url: str) -> List[RelatedTitle]:
    related = []
    for article in soup.select(RELATED_SELECTORS):
        link = article.find("a")
        if link is None:
            continue
        title = clean_text(link.get("title") or "") or clean_text(link.get_text(" "))
        url = normalize_url(link.get("href") or "", base_url)
        if not title or not url:
            continue
        image = article.find("img")
        related.append(
            RelatedTitle(
                id=extract_id_from_url(url),
                title=title,
                url=url,
                poster=normalize_url(image.get("src") or "", base_url) if image else "",
                type="series" if "/series/" in url else "movie",
            )
        )
    return related


def parse_anime_page(html: str, anime_id: str, url: str, base_url: str, kind: str = "series") -> AnimeDetails:
    """Map a series or movie page to ``AnimeDetails``; movies carry no seasons."""
    soup = BeautifulSoup(html or "", "html.parser")

    poster_node = soup.select_one(POSTER_SELECTORS)
    description = _first_text(soup, DESCRIPTION_SELECTORS) or _first_text(soup, ".content")
    languages, detected = _parse_languages(soup)

    return AnimeDetails(
        id=anime_id,
        title=_first_text(soup, TITLE_SELECTORS),
        url=url,
        type=kind,
        poster=normalize_url(poster_node.get("src") or "", base_url) if poster_node else "",
        description=description,
        genres=_unique_texts(soup, GENRE_SELECTORS),
        languages=languages,
        languages_detected=detected,
        rating=_first_text(soup, RATING_SELECTORS) or None,
        status=(_first_text(soup, STATUS_SELECTORS) or None) if kind == "series" else None,
        seasons=_parse_seasons(soup, base_url) if kind == "series" else [],
        related=_parse_related(soup, base_url),
    )


class AnimeScraper:
    """Fetches and caches series and movie detail pages"""

    def __init__(self, http_client, cache: TTLCache, settings):
        self.http = http_client
        self.cache = cache
        self.settings = settings

    def _base_url(self) -> str:
        return str(self.settings.get("base_url", "") or "").rstrip("/")

    def _scrape(self, kind: str, path: str, content_id: str) -> AnimeDetails:
        content_id = (content_id or "").strip().strip("/")
        if not content_id:
            raise ExtractionError(f"{kind.capitalize()} id is empty")

        cache_enabled = bool(self.settings.get("cache_enabled", True))
        cache_key = generate_cache_key("anime" if kind == "series" else "movie", content_id)
        if cache_enabled:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        url = f"{self._base_url()}/{path}/{content_id}/"
        html = self.http.fetch_html(url)
        details = parse_anime_page(html, content_id, url, self._base_url(), kind=kind)
        if details.languages_detected and details.languages:
            logger.debug("Languages for %s %s came from keyword fallback", kind, content_id)

        if cache_enabled:
            self.cache.set(cache_key, details, self.settings.ttl_for("anime"))
        return details

    def scrape_anime(self, anime_id: str) -> AnimeDetails:
        """
        Load a series page with its seasons and episodes

        Raises:
            ExtractionError: empty id
            FetchError: the page could not be fetched
        """
        return self._scrape("series", "series", anime_id)

    def scrape_movie(self, movie_id: str) -> AnimeDetails:
        return self._scrape("movie", "movies", movie_id)
