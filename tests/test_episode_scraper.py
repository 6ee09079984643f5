import unittest

from animestream.core.cache import TTLCache
from animestream.core.errors import ExtractionError, FetchError
from animestream.core.settings_manager import SettingsManager
from animestream.models.stream import MediaKind
from animestream.scrapers.episode import EpisodeScraper, parse_episode_page

BASE = "https://watchanimeworld.in"

EPISODE_HTML = """
<html><body>
  <article>
    <h1>  Bleach:   Thousand-Year Blood War  1x13 </h1>
    <div class="thumbnail"><img src="/wp-content/uploads/bleach.jpg"></div>
  </article>
  <iframe src="https://play.zephyr.example/v/abc"></iframe>
  <div class="video-player" data-video="https://cdn.example/direct/ep13.m3u8">
    <iframe data-src="//play.zephyr.example/v/abc"></iframe>
    <iframe src="https://backup.example/embed/13"></iframe>
  </div>
  <ul>
    <li class="server-option" data-id="2" data-url="/server/2/">Server  Two</li>
    <li class="server-option" data-id="">Unnamed</li>
  </ul>
  <a class="download-link" href="https://dl.example/ep13-1080.mp4">Download 1080p</a>
  <a class="download-link" href="/local-only">HD</a>
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


class TestParseEpisodePage(unittest.TestCase):
    def test_metadata_and_numbers(self):
        episode = parse_episode_page(EPISODE_HTML, "bleach-1x13", BASE)
        self.assertEqual(episode.title, "Bleach: Thousand-Year Blood War 1x13")
        self.assertEqual(episode.thumbnail, BASE + "/wp-content/uploads/bleach.jpg")
        self.assertEqual((episode.season_number, episode.episode_number), (1, 13))

    def test_candidates_are_ordered_and_deduplicated(self):
        episode = parse_episode_page(EPISODE_HTML, "bleach-1x13", BASE)
        self.assertEqual(
            [(s.url, s.kind) for s in episode.sources],
            [
                ("https://play.zephyr.example/v/abc", MediaKind.IFRAME),
                ("https://backup.example/embed/13", MediaKind.IFRAME),
                ("https://cdn.example/direct/ep13.m3u8", MediaKind.HLS),
            ],
        )
        self.assertEqual(episode.sources[0].label, "iframe")

    def test_servers_and_downloads(self):
        episode = parse_episode_page(EPISODE_HTML, "bleach-1x13", BASE)
        self.assertEqual(len(episode.servers), 1)
        self.assertEqual(episode.servers[0].name, "Server Two")
        self.assertEqual(episode.servers[0].url, BASE + "/server/2/")
        self.assertEqual([(d.url, d.quality) for d in episode.downloads], [("https://dl.example/ep13-1080.mp4", "1080p")])
        payload = episode.to_dict()
        self.assertEqual(payload["episodeNumber"], 13)
        self.assertEqual(payload["sources"][0]["type"], "iframe")

    def test_episode_number_from_slug(self):
        episode = parse_episode_page("<html></html>", "naruto-episode-7", BASE)
        self.assertEqual((episode.season_number, episode.episode_number), (1, 7))
        self.assertEqual(episode.sources, [])

    def test_episode_number_from_season_episode_slug(self):
        episode = parse_episode_page("<html></html>", "one-piece-s2e5", BASE)
        self.assertEqual((episode.season_number, episode.episode_number), (2, 5))


class TestEpisodeScraper(unittest.TestCase):
    def setUp(self):
        self.settings = SettingsManager(persist=False)
        self.cache = TTLCache()

    def test_scrape_fetches_once_and_caches(self):
        http = FakeHttp({BASE + "/episode/bleach-1x13/": EPISODE_HTML})
        scraper = EpisodeScraper(http, self.cache, self.settings)
        first = scraper.scrape_episode("bleach-1x13")
        second = scraper.scrape_episode("bleach-1x13")
        self.assertIs(first, second)
        self.assertEqual(http.calls, [BASE + "/episode/bleach-1x13/"])
        self.assertIsNotNone(self.cache.get("episode:bleach-1x13"))

    def test_missing_page_propagates_fetch_error(self):
        scraper = EpisodeScraper(FakeHttp({}), self.cache, self.settings)
        with self.assertRaises(FetchError):
            scraper.scrape_episode("missing-1x1")

    def test_empty_id_is_rejected(self):
        scraper = EpisodeScraper(FakeHttp({}), self.cache, self.settings)
        with self.assertRaises(ExtractionError):
            scraper.scrape_episode("  ")

    def test_episode_server_lists_labelled_frames(self):
        http = FakeHttp({
            BASE + "/episode/bleach-1x13/": EPISODE_HTML,
            BASE + "/server/2/": '<iframe src="https://mirror.example/e/13"></iframe>',
        })
        scraper = EpisodeScraper(http, self.cache, self.settings)
        sources = scraper.get_episode_server("bleach-1x13", "2")
        self.assertEqual(len(sources), 1)
        self.assertEqual(sources[0].url, "https://mirror.example/e/13")
        self.assertEqual(sources[0].kind, MediaKind.IFRAME)
        self.assertEqual(sources[0].label, "Server Two")
        self.assertEqual(scraper.get_episode_server("bleach-1x13", "9"), [])


if __name__ == "__main__":
    unittest.main()
