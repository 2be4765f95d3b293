from datetime import datetime, timezone

import pytest

from aggregator.models import FeedMode, Media, RawItem, Source
from aggregator.normalize import canonical_url, dedupe, item_id, normalize, parse_date
from fakes import make_item

SRC = Source(id="a", name="Source A", homepage="https://a.example/news/", mode=FeedMode("https://a.example/feed"))


class TestParseDate:
    def test_rfc822(self):
        assert parse_date("Mon, 10 Jun 2024 09:00:00 GMT") == datetime(2024, 6, 10, 9, tzinfo=timezone.utc)

    def test_iso_with_offset_converted_to_utc(self):
        assert parse_date("2024-06-10T11:00:00+02:00") == datetime(2024, 6, 10, 9, tzinfo=timezone.utc)

    def test_tz_abbreviation(self):
        assert parse_date("Mon, 10 Jun 2024 05:00:00 EDT") == datetime(2024, 6, 10, 9, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_date("2024-06-10 09:00").tzinfo == timezone.utc

    def test_unparsable_is_undated(self):
        assert parse_date("not a date") is None

    def test_empty_is_undated(self):
        assert parse_date(None) is None
        assert parse_date("   ") is None

    @pytest.mark.parametrize("partial", ["Jun 11", "10:00", "5", "June 2024", "Tuesday"])
    def test_partial_date_is_undated(self, partial):
        assert parse_date(partial) is None

    def test_full_date_without_time(self):
        assert parse_date("June 11, 2024") == datetime(2024, 6, 11, tzinfo=timezone.utc)


class TestCanonicalUrl:
    def test_strips_fragment(self):
        assert canonical_url("https://a.example/p#comments") == "https://a.example/p"

    def test_lowercases_scheme_and_host(self):
        assert canonical_url("HTTPS://A.Example/Path") == "https://a.example/Path"

    def test_strips_tracking_keeps_query(self):
        assert canonical_url("https://a.example/p?id=1&utm_source=rss#x") == "https://a.example/p?id=1"

    def test_empty(self):
        assert canonical_url("") == ""


class TestNormalize:
    def test_relative_link_resolved(self):
        item = normalize(RawItem(title="T", link="/news/post-1"), SRC)
        assert item.url == "https://a.example/news/post-1"
        assert item.id == item_id(item.url)

    def test_fields(self):
        media = Media("https://cdn/x.png", "image")
        raw = RawItem(title="T", link="https://a.example/p", date="2024-06-10T09:00:00Z", tags=("LLM",))
        item = normalize(raw, SRC, media)
        assert item.published_at == datetime(2024, 6, 10, 9, tzinfo=timezone.utc)
        assert item.source_id == "a"
        assert item.source_name == "Source A"
        assert item.tags == ("LLM",)
        assert item.media == media
        assert item.category is None

    def test_unparsable_date_is_explicitly_undated(self):
        item = normalize(RawItem(title="T", link="https://a.example/p", date="someday"), SRC)
        assert item.undated
        assert item.to_dict()["date"] is None

    def test_id_is_stable(self):
        a = normalize(RawItem(title="T", link="https://a.example/p#one"), SRC)
        b = normalize(RawItem(title="Other", link="https://a.example/p#two"), SRC)
        assert a.id == b.id


class TestDedupe:
    def test_first_seen_wins(self):
        first = make_item(url="https://shared.example/story", source_id="a")
        second = make_item(url="https://shared.example/story", source_id="b")
        out = dedupe([first, second])
        assert out == [first]

    def test_keeps_distinct(self):
        items = [make_item(url=f"https://x.example/{i}") for i in range(3)]
        assert dedupe(items) == items

    def test_drops_empty_url(self):
        assert dedupe([make_item(url="")]) == []
