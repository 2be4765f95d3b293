import asyncio
import logging
from typing import Optional

import aiohttp

from aggregator import config
from aggregator.errors import SourceUnreachable
from aggregator.models import FetchResult

log = logging.getLogger("ainews.fetcher")

# Accepted content-type fragments per purpose. A missing header is accepted.
EXPECTED_TYPES = {
    "feed": ("xml", "rss", "atom", "text/plain"),
    "html": ("html",),
}


def content_type_ok(content_type: str, expect: Optional[str]) -> bool:
    if not expect or not content_type:
        return True
    ct = content_type.lower()
    return any(frag in ct for frag in EXPECTED_TYPES.get(expect, ()))


class Fetcher:
    """One bounded-timeout GET per call, raising SourceUnreachable on any failure."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = config.FETCH_TIMEOUT,
                 user_agent: str = config.USER_AGENT,
                 revalidate: int = config.REVALIDATE_SECONDS):
        self.timeout = timeout
        self.user_agent = user_agent
        self.revalidate = revalidate
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def fetch(self, url: str, expect: Optional[str] = None) -> FetchResult:
        sess = await self._ensure_session()
        headers = {
            "User-Agent": self.user_agent,
            "Cache-Control": f"max-age={self.revalidate}",
        }
        try:
            async with sess.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                allow_redirects=True,
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise SourceUnreachable(url, f"status {resp.status}")
                ctype = resp.headers.get("Content-Type", "")
                if not content_type_ok(ctype, expect):
                    raise SourceUnreachable(url, f"unexpected content type {ctype!r}")
                body = await resp.read()
                return FetchResult(
                    url=url,
                    status=resp.status,
                    content_type=ctype,
                    body=body,
                    encoding=resp.charset or "utf-8",
                    max_age=self.revalidate,
                )
        except asyncio.TimeoutError:
            raise SourceUnreachable(url, f"timeout after {self.timeout:.0f}s") from None
        except aiohttp.ClientError as e:
            raise SourceUnreachable(url, f"{type(e).__name__}: {e}") from e
