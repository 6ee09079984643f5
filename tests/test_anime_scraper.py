import unittest

from animestream.core.cache import TTLCache
from animestream.core.errors import ExtractionError, FetchError
from animestream.core.settings_manager import SettingsManager
from animestream.scrapers.anime import AnimeScraper, detect_languages_from_text, parse_anime_page

BASE = "https://watchanimeworld.in"

SERIES_HTML = """
<html><body>
  <article>
    <h1 class="title"> Bleach </h1>
    <div class="poster"><img src="/uploads/bleach.jpg"></div>
  </article>
  <div class="description">  A teen   gains the powers of a Soul Reaper. </div>
  <div class="genres"><a>Action</a><a>Adventure</a><a>Action</a></div>
  <span class="rating"> 8.6 </span>
  <span class="status">Ongoing</span>
  <ul class="episodios">
    <li><img src="/thumbs/1x2.jpg"><a href="/episode/bleach-1x2/">Bleach 1x2</a></li>
    <li><a href="/episode/bleach-1x1/">Bleach 1x1</a></li>
    <li><a href="/episode/bleach-2x1/">Bleach 2x1</a></li>
    <li><a href="">Broken</a></li>
  </ul>
  <div class="related-titles">
    <article><a href="/movies/bleach-movie/" title="Bleach Movie">poster</a><img src="//img.example/m.jpg"></article>
  </div>
  <p>Available in Hindi and English dub.</p>
</body></html>
"""

LANGUAGE_LINKS_HTML = """
<html><body>
  <h1 class="title">Naruto</h1>
  <div class="languages"><a>Hindi</a><a>Japanese</a><a>Hindi</a></div>
  <p>English subtitles soon.</p>
</body></html>
"""


class FakeHttp:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def fetch_html(self, url, headers=None):
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, attempts=1, status_code=404)
        return self.pages[url]


class TestParseAnimePage(unittest.TestCase):
    def setUp(self):
        self.details = parse_anime_page(SERIES_HTML, "bleach", BASE + "/series/bleach/", BASE)

    def test_metadata(self):
        d = self.details
        self.assertEqual(d.title, "Bleach")
        self.assertEqual(d.poster, BASE + "/uploads/bleach.jpg")
        self.assertEqual(d.description, "A teen gains the powers of a Soul Reaper.")
        self.assertEqual(d.genres, ["Action", "Adventure"])
        self.assertEqual(d.rating, "8.6")
        self.assertEqual(d.status, "Ongoing")

    def test_episodes_grouped_by_season_and_sorted(self):
        seasons = self.details.seasons
        self.assertEqual([s.season_number for s in seasons], [1, 2])
        self.assertEqual([e.id for e in seasons[0].episodes], ["bleach-1x1", "bleach-1x2"])
        self.assertEqual(seasons[0].episodes[1].thumbnail, BASE + "/thumbs/1x2.jpg")
        self.assertEqual(seasons[1].episodes[0].episode_number, 1)
        self.assertEqual(self.details.total_episodes, 3)

    def test_related_titles(self):
        related = self.details.related
        self.assertEqual(len(related), 1)
        self.assertEqual(related[0].id, "bleach-movie")
        self.assertEqual(related[0].title, "Bleach Movie")
        self.assertEqual(related[0].poster, "https://img.example/m.jpg")
        self.assertEqual(related[0].type, "movie")

    def test_languages_fall_back_to_page_keywords(self):
        self.assertEqual(self.details.languages, ["Hindi", "English"])
        self.assertTrue(self.details.languages_detected)

    def test_language_links_win_over_keywords(self):
        details = parse_anime_page(LANGUAGE_LINKS_HTML, "naruto", BASE + "/series/naruto/", BASE)
        self.assertEqual(details.languages, ["Hindi", "Japanese"])
        self.assertFalse(details.languages_detected)

    def test_keyword_detection(self):
        self.assertEqual(detect_languages_from_text("TELUGU and tamil audio"), ["Tamil", "Telugu"])
        self.assertEqual(detect_languages_from_text(""), [])

    def test_to_dict(self):
        payload = self.details.to_dict()
        self.assertEqual(payload["type"], "series")
        self.assertEqual(payload["totalEpisodes"], 3)
        self.assertEqual(payload["seasons"][0]["episodes"][0]["episodeNumber"], 1)
        self.assertEqual(payload["related"][0]["url"], BASE + "/movies/bleach-movie/")

    def test_movie_page_has_no_seasons(self):
        details = parse_anime_page(SERIES_HTML, "bleach-movie", BASE + "/movies/bleach-movie/", BASE, kind="movie")
        self.assertEqual(details.seasons, [])
        self.assertIsNone(details.status)
        payload = details.to_dict()
        self.assertNotIn("seasons", payload)
        self.assertNotIn("totalEpisodes", payload)


class TestAnimeScraper(unittest.TestCase):
    def setUp(self):
        self.settings = SettingsManager(persist=False)
        self.cache = TTLCache()

    def test_series_is_fetched_once_and_cached(self):
        http = FakeHttp({BASE + "/series/bleach/": SERIES_HTML})
        scraper = AnimeScraper(http, self.cache, self.settings)
        first = scraper.scrape_anime("bleach")
        second = scraper.scrape_anime("/bleach/")
        self.assertIs(first, second)
        self.assertEqual(http.calls, [BASE + "/series/bleach/"])
        self.assertIs(self.cache.get("anime:bleach"), first)
        self.assertEqual(first.url, BASE + "/series/bleach/")

    def test_movie_uses_its_own_path_and_key(self):
        http = FakeHttp({BASE + "/movies/bleach-movie/": SERIES_HTML})
        scraper = AnimeScraper(http, self.cache, self.settings)
        movie = scraper.scrape_movie("bleach-movie")
        self.assertEqual(movie.type, "movie")
        self.assertIs(self.cache.get("movie:bleach-movie"), movie)
        self.assertIsNone(self.cache.get("anime:bleach-movie"))

    def test_cache_disabled_fetches_every_time(self):
        self.settings.set("cache_enabled", False)
        http = FakeHttp({BASE + "/series/bleach/": SERIES_HTML})
        scraper = AnimeScraper(http, self.cache, self.settings)
        scraper.scrape_anime("bleach")
        scraper.scrape_anime("bleach")
        self.assertEqual(len(http.calls), 2)
        self.assertEqual(self.cache.size(), 0)

    def test_missing_page_propagates_fetch_error(self):
        scraper = AnimeScraper(FakeHttp({}), self.cache, self.settings)
        with self.assertRaises(FetchError):
            scraper.scrape_anime("missing")

    def test_empty_id_is_rejected(self):
        scraper = AnimeScraper(FakeHttp({}), self.cache, self.settings)
        with self.assertRaises(ExtractionError):
            scraper.scrape_anime("  ")


if __name__ == "__main__":
    unittest.main()
