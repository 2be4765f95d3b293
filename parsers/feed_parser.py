import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

import feedparser

from aggregator.errors import MalformedEntry
from aggregator.models import MediaHints, RawItem, Source
from aggregator.utils import clean_text, dedupe_terms, strip_html_to_text, truncate_text
from parsers.base import Parser

log = logging.getLogger("ainews.parsers.feed")

SUMMARY_MAX = 500
_DATE_FIELDS = ("published", "updated", "created")


def _entry_title(entry: Any) -> str:
    return clean_text(str(getattr(entry, "title", "") or ""))


def _entry_link(entry: Any) -> str:
    link = getattr(entry, "link", None)
    if link:
        return str(link).strip()
    # Atom entries without a plain link: prefer rel="alternate"
    links = getattr(entry, "links", None) or []
    for rel in ("alternate", None):
        for ln in links:
            href = ln.get("href")
            if not href or ln.get("rel") == "enclosure":
                continue
            if rel is None or ln.get("rel", "alternate") == rel:
                return str(href).strip()
    return ""


def _entry_html(entry: Any) -> str:
    content = getattr(entry, "content", None)
    if content and isinstance(content, list) and len(content) > 0:
        v = getattr(content[0], "value", None)
        if v is None and isinstance(content[0], dict):
            v = content[0].get("value")
        if v:
            return str(v)
    return str(getattr(entry, "description", "") or getattr(entry, "summary", "") or "")


def _entry_date(entry: Any) -> Optional[str]:
    """ISO string from feedparser's parsed struct when present, else the raw field."""
    for name in _DATE_FIELDS:
        st = getattr(entry, f"{name}_parsed", None)
        if st:
            try:
                return datetime(*st[:6], tzinfo=timezone.utc).isoformat()
            except (TypeError, ValueError):
                pass
        raw = getattr(entry, name, None)
        if raw:
            return str(raw)
    return None


def _entry_tags(entry: Any) -> Tuple[str, ...]:
    terms: List[Optional[str]] = []
    c = getattr(entry, "category", None)
    if c:
        terms.append(str(c))
    for t in (getattr(entry, "tags", None) or []):
        term = t.get("term") if isinstance(t, dict) else getattr(t, "term", None)
        if term:
            terms.append(str(term))
    return tuple(dedupe_terms(terms))


def _as_dicts(values: Any) -> List[Dict[str, Any]]:
    if not values:
        return []
    if isinstance(values, dict):
        values = [values]
    return [v for v in values if isinstance(v, dict)]


def _entry_hints(entry: Any, html: str) -> MediaHints:
    enclosures = []
    for enc in _as_dicts(getattr(entry, "enclosures", None)):
        url = enc.get("href") or enc.get("url")
        if url:
            enclosures.append({"url": str(url), "type": str(enc.get("type") or "")})

    media_content = []
    for mc in _as_dicts(getattr(entry, "media_content", None)):
        if mc.get("url"):
            media_content.append({
                "url": str(mc["url"]),
                "type": str(mc.get("type") or ""),
                "medium": str(mc.get("medium") or ""),
            })

    thumbnails = tuple(
        str(mt["url"]) for mt in _as_dicts(getattr(entry, "media_thumbnail", None)) if mt.get("url")
    )
    return MediaHints(
        enclosures=tuple(enclosures),
        media_content=tuple(media_content),
        thumbnails=thumbnails,
        html=html,
    )


def entry_to_raw(entry: Any) -> RawItem:
    title = _entry_title(entry)
    link = _entry_link(entry)
    if not title or not link:
        raise MalformedEntry(f"entry without {'title' if not title else 'link'}")
    html = _entry_html(entry)
    return RawItem(
        title=title,
        link=link,
        date=_entry_date(entry),
        tags=_entry_tags(entry),
        hints=_entry_hints(entry, html),
        summary=truncate_text(strip_html_to_text(html), SUMMARY_MAX),
    )


class FeedParser(Parser):
    """RSS 0.9x/1.0/2.0 and Atom via feedparser."""

    mode = "feed"

    def parse(self, document: Union[str, bytes], source: Source) -> List[RawItem]:
        feed = feedparser.parse(document)
        entries = getattr(feed, "entries", None) or []
        version = getattr(feed, "version", "") or ""
        if not entries:
            if not version:
                log.warning("%s: document is not a recognized feed.", source.id)
            return []
        if getattr(feed, "bozo", False):
            log.debug("%s: feed not well-formed (%s), using recovered entries.",
                      source.id, getattr(feed, "bozo_exception", "?"))

        out: List[RawItem] = []
        for i, entry in enumerate(entries):
            if len(out) >= source.max_items:
                break
            try:
                out.append(entry_to_raw(entry))
            except (MalformedEntry, AttributeError, TypeError, ValueError, KeyError, IndexError) as e:
                log.debug("%s: entry #%d skipped: %s", source.id, i, e)
        log.debug("%s: %s feed, %d/%d entries kept.", source.id, version or "unknown", len(out), len(entries))
        return out
