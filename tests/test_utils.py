import pytest
from aggregator.utils import (
    truncate_text,
    clean_text,
    strip_html_to_text,
    absolutize,
    host_of,
    is_video_host,
    first_from_srcset,
    strip_utm,
    dedupe_terms,
)


# ── truncate_text ──────────────────────────────────────────────

class TestTruncateText:
    def test_short_text_unchanged(self):
        assert truncate_text("hello", 10) == "hello"

    def test_truncates_with_ellipsis(self):
        result = truncate_text("hello world", 8)
        assert result == "hello..."
        assert len(result) == 8

    def test_none_input(self):
        assert truncate_text(None, 5) == ""


# ── clean_text ─────────────────────────────────────────────────

class TestCleanText:
    def test_strips_cdata(self):
        assert clean_text("<![CDATA[Hello world]]>") == "Hello world"

    def test_decodes_entities(self):
        assert clean_text("R&amp;D &quot;day&quot; &#39;24") == "R&D \"day\" '24"

    def test_collapses_whitespace(self):
        assert clean_text("  a\n\n  b\tc ") == "a b c"

    def test_none_input(self):
        assert clean_text(None) == ""


# ── strip_html_to_text ────────────────────────────────────────

class TestStripHtmlToText:
    def test_simple_html(self):
        result = strip_html_to_text("<p>Hello <b>world</b></p>")
        assert result == "Hello world"

    def test_empty_string(self):
        assert strip_html_to_text("") == ""

    def test_none_input(self):
        assert strip_html_to_text(None) == ""

    def test_html_entities(self):
        assert "&" in strip_html_to_text("<p>&amp; more</p>")


# ── absolutize / hosts ────────────────────────────────────────

class TestAbsolutize:
    def test_absolute_unchanged(self):
        assert absolutize("https://a.com/", "https://b.com/x") == "https://b.com/x"

    def test_relative_path(self):
        assert absolutize("https://www.anthropic.com/news", "/news/claude") == "https://www.anthropic.com/news/claude"

    def test_relative_to_directory(self):
        assert absolutize("https://openai.com/news/", "item-1") == "https://openai.com/news/item-1"

    def test_empty_href(self):
        assert absolutize("https://a.com/", "") == ""


class TestVideoHost:
    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=abc",
        "https://youtu.be/abc",
        "https://vimeo.com/12345",
        "https://player.vimeo.com/video/1",
    ])
    def test_video_hosts(self, url):
        assert is_video_host(url)

    def test_lookalike_host_is_not_video(self):
        assert not is_video_host("https://notyoutube.com/watch")

    def test_host_of_lowercases(self):
        assert host_of("https://Blog.Google/x") == "blog.google"


# ── first_from_srcset ─────────────────────────────────────────

class TestSrcset:
    def test_first_candidate(self):
        assert first_from_srcset("/a.jpg 1x, /b.jpg 2x") == "/a.jpg"

    def test_empty(self):
        assert first_from_srcset(None) == ""
        assert first_from_srcset("") == ""


# ── strip_utm ─────────────────────────────────────────────────

class TestStripUtm:
    def test_removes_utm_params(self):
        result = strip_utm("https://a.com/p?utm_source=x&utm_medium=rss")
        assert result == "https://a.com/p"

    def test_keeps_other_params(self):
        result = strip_utm("https://a.com/p?id=3&utm_campaign=c")
        assert result == "https://a.com/p?id=3"

    def test_no_query_unchanged(self):
        assert strip_utm("https://a.com/p#frag") == "https://a.com/p#frag"


# ── dedupe_terms ──────────────────────────────────────────────

class TestDedupeTerms:
    def test_deduplicates_case_insensitive(self):
        assert dedupe_terms(["AI", "ai", "Ai"]) == ["AI"]

    def test_drops_empty(self):
        assert dedupe_terms([None, "", "  "]) == []

    def test_truncates_long_terms(self):
        assert len(dedupe_terms(["x" * 200])[0]) == 80
