"""Best-effort discovery of one representative image or video per item.

Tiers, first hit wins:
  1. enclosure declared as image/* or video/*
  2. media:content with an image/video medium or type
  3. media:thumbnail
  4. first <img> inside inlined HTML content
  5. first <img> (or <picture> source) inside a scraped fragment
  6. og:image / twitter:image of the article page, only while the
     per-source fallback budget lasts

Links to known video hosts are videos without any probing.
"""

import asyncio
import logging
from typing import Optional

from bs4 import BeautifulSoup

from aggregator import config
from aggregator.errors import SourceUnreachable
from aggregator.models import IMAGE, VIDEO, Media, RawItem
from aggregator.utils import absolutize, first_from_srcset, is_video_host

log = logging.getLogger("ainews.media")

_IMG_ATTRS = ("src", "data-src", "data-lazy-src", "data-original")
_SRCSET_ATTRS = ("srcset", "data-srcset")
_PREVIEW_META = (
    ("property", "og:image"),
    ("name", "og:image"),
    ("name", "twitter:image"),
    ("property", "twitter:image"),
)


def _typed(url: str, kind: str) -> Media:
    if is_video_host(url):
        return Media(url, VIDEO)
    return Media(url, kind)


def first_image_in_html(html: str) -> str:
    if not html or ("<img" not in html and "<source" not in html):
        return ""
    soup = BeautifulSoup(html, "html.parser")
    img = soup.find("img")
    if img is not None:
        for attr in _IMG_ATTRS:
            if img.get(attr):
                return str(img[attr]).strip()
        for attr in _SRCSET_ATTRS:
            src = first_from_srcset(img.get(attr))
            if src:
                return src
    source = soup.select_one("picture source[srcset]")
    if source is not None:
        return first_from_srcset(source.get("srcset"))
    return ""


def preview_image_in_html(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    for attr, value in _PREVIEW_META:
        tag = soup.find("meta", attrs={attr: value})
        if tag is not None and tag.get("content"):
            return str(tag["content"]).strip()
    return ""


def media_from_hints(raw: RawItem, item_url: str, homepage: str) -> Optional[Media]:
    """Tiers 1-5: everything answerable without another request."""
    hints = raw.hints

    for enc in hints.enclosures:
        typ = enc.get("type", "").lower()
        if typ.startswith("image/"):
            return _typed(absolutize(item_url, enc["url"]), IMAGE)
        if typ.startswith("video/"):
            return Media(absolutize(item_url, enc["url"]), VIDEO)

    for mc in hints.media_content:
        typ = mc.get("type", "").lower()
        medium = mc.get("medium", "").lower()
        if medium == "image" or typ.startswith("image/"):
            return _typed(absolutize(item_url, mc["url"]), IMAGE)
        if medium == "video" or typ.startswith("video/"):
            return Media(absolutize(item_url, mc["url"]), VIDEO)

    if hints.thumbnails:
        return _typed(absolutize(item_url, hints.thumbnails[0]), IMAGE)

    src = first_image_in_html(hints.html)
    if src:
        return _typed(absolutize(item_url, src), IMAGE)

    src = first_image_in_html(hints.fragment)
    if src:
        return _typed(absolutize(homepage, src), IMAGE)
    return None


class FallbackBudget:
    """Extra page fetches one source may spend in one cycle."""

    def __init__(self, remaining: int = config.MEDIA_FALLBACK_BUDGET):
        self.remaining = max(0, remaining)

    def take(self) -> bool:
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return True


class MediaResolver:
    def __init__(self, fetcher, limiter: Optional[asyncio.Semaphore] = None,
                 budget: int = config.MEDIA_FALLBACK_BUDGET):
        self.fetcher = fetcher
        self.budget = budget
        # asyncio.Semaphore wakes waiters in FIFO order
        self.limiter = limiter or asyncio.Semaphore(max(1, config.MEDIA_FALLBACK_CONCURRENCY))

    def new_budget(self) -> FallbackBudget:
        return FallbackBudget(self.budget)

    async def resolve(self, raw: RawItem, item_url: str, homepage: str,
                      budget: Optional[FallbackBudget] = None) -> Optional[Media]:
        media = media_from_hints(raw, item_url, homepage)
        if media:
            return media
        if is_video_host(item_url):
            return Media(item_url, VIDEO)
        # Budget is taken before the first await so items spend it in order.
        if budget is None or not budget.take():
            return None
        return await self.fetch_preview(item_url)

    async def fetch_preview(self, page_url: str) -> Optional[Media]:
        async with self.limiter:
            try:
                res = await self.fetcher.fetch(page_url, expect="html")
            except SourceUnreachable as e:
                log.debug("Preview image fetch failed: %s", e)
                return None
        src = preview_image_in_html(res.text)
        if not src:
            return None
        return _typed(absolutize(page_url, src), IMAGE)
