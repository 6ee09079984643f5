import unittest

from animestream.utils.parser import (
    build_url,
    clean_text,
    extract_id_from_url,
    extract_quality,
    get_video_type,
    normalize_url,
    parse_episode_number,
)

BASE = "https://watchanimeworld.in"


class TestParserUtils(unittest.TestCase):
    def test_clean_text(self):
        self.assertEqual(clean_text("  Naruto \n\t Shippuden  "), "Naruto Shippuden")
        self.assertEqual(clean_text(None), "")

    def test_url_building_and_normalization(self):
        self.assertEqual(build_url("/episode/x/", BASE), BASE + "/episode/x/")
        self.assertEqual(build_url("episode/x/", BASE + "/"), BASE + "/episode/x/")
        self.assertEqual(normalize_url("", BASE), "")
        self.assertEqual(normalize_url("https://a.example/b", BASE), "https://a.example/b")
        self.assertEqual(normalize_url("//cdn.example/i.jpg", BASE), "https://cdn.example/i.jpg")
        self.assertEqual(normalize_url("/series/one-piece/", BASE), BASE + "/series/one-piece/")

    def test_extract_id_from_url(self):
        self.assertEqual(
            extract_id_from_url(BASE + "/series/bleach-thousand-year-blood-war/"),
            "bleach-thousand-year-blood-war",
        )
        self.assertEqual(extract_id_from_url(BASE + "/movies/your-name/"), "your-name")
        self.assertEqual(extract_id_from_url(BASE + "/about/"), "")

    def test_parse_episode_number(self):
        self.assertEqual(parse_episode_number("bleach-1x13"), (1, 13))
        self.assertEqual(parse_episode_number("S2E5"), (2, 5))
        self.assertEqual(parse_episode_number("Episode 9"), (1, 9))
        self.assertEqual(parse_episode_number("special"), (1, 1))

    def test_extract_quality(self):
        self.assertEqual(extract_quality("Download 1080p"), "1080p")
        self.assertEqual(extract_quality("HD mirror"), "720p")
        self.assertEqual(extract_quality("SD"), "480p")
        self.assertEqual(extract_quality("mirror"), "unknown")

    def test_get_video_type(self):
        self.assertEqual(get_video_type("https://a/b.m3u8?x"), "hls")
        self.assertEqual(get_video_type("https://a/b.mp4"), "mp4")
        self.assertEqual(get_video_type("https://a/embed/1"), "iframe")
        self.assertEqual(get_video_type("https://a/v/1"), "other")


if __name__ == "__main__":
    unittest.main()
