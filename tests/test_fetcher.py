import asyncio

import aiohttp
import pytest

from aggregator.errors import SourceUnreachable
from aggregator.fetcher import Fetcher, content_type_ok
from fakes import FakeResponse, FakeSession

URL = "https://vendor.example/rss.xml"


def make_fetcher(response, **kw):
    session = FakeSession({URL: response})
    return Fetcher(session=session, timeout=5, user_agent="ua-test/1.0", revalidate=900, **kw), session


class TestContentType:
    def test_feed_types(self):
        assert content_type_ok("application/rss+xml; charset=utf-8", "feed")
        assert content_type_ok("text/xml", "feed")
        assert content_type_ok("application/atom+xml", "feed")
        assert not content_type_ok("text/html", "feed")

    def test_html(self):
        assert content_type_ok("text/html; charset=UTF-8", "html")
        assert not content_type_ok("application/json", "html")

    def test_missing_header_or_no_expectation(self):
        assert content_type_ok("", "feed")
        assert content_type_ok("application/json", None)


class TestFetch:
    @pytest.mark.asyncio
    async def test_success(self):
        fetcher, session = make_fetcher(FakeResponse(body=b"<rss/>", charset="iso-8859-1"))
        res = await fetcher.fetch(URL, expect="feed")
        assert res.status == 200
        assert res.body == b"<rss/>"
        assert res.encoding == "iso-8859-1"
        assert res.max_age == 900

    @pytest.mark.asyncio
    async def test_sends_identity_and_revalidation_headers(self):
        fetcher, session = make_fetcher(FakeResponse(body=b"<rss/>"))
        await fetcher.fetch(URL)
        url, kwargs = session.requests[0]
        assert url == URL
        assert kwargs["headers"]["User-Agent"] == "ua-test/1.0"
        assert kwargs["headers"]["Cache-Control"] == "max-age=900"
        assert kwargs["timeout"].total == 5

    @pytest.mark.asyncio
    async def test_default_charset(self):
        fetcher, _ = make_fetcher(FakeResponse(body="café".encode("utf-8"), charset=None))
        res = await fetcher.fetch(URL)
        assert res.text == "café"

    @pytest.mark.asyncio
    async def test_error_status(self):
        fetcher, _ = make_fetcher(FakeResponse(status=500))
        with pytest.raises(SourceUnreachable) as exc:
            await fetcher.fetch(URL)
        assert exc.value.reason == "status 500"
        assert exc.value.url == URL

    @pytest.mark.asyncio
    async def test_wrong_content_type(self):
        fetcher, _ = make_fetcher(FakeResponse(body=b"<html/>", content_type="text/html"))
        with pytest.raises(SourceUnreachable) as exc:
            await fetcher.fetch(URL, expect="feed")
        assert "content type" in exc.value.reason

    @pytest.mark.asyncio
    async def test_timeout(self):
        fetcher, _ = make_fetcher(asyncio.TimeoutError())
        with pytest.raises(SourceUnreachable) as exc:
            await fetcher.fetch(URL)
        assert exc.value.reason == "timeout after 5s"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        fetcher, _ = make_fetcher(aiohttp.ClientConnectionError("refused"))
        with pytest.raises(SourceUnreachable) as exc:
            await fetcher.fetch(URL)
        assert exc.value.reason.startswith("ClientConnectionError")


class TestSessionOwnership:
    @pytest.mark.asyncio
    async def test_borrowed_session_is_not_closed(self):
        fetcher, session = make_fetcher(FakeResponse())
        async with fetcher:
            pass
        assert session.closed is False
