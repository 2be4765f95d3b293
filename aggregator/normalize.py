import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional
from urllib.parse import urlparse, urlunparse

from dateutil.parser import parse as parse_date_string

from aggregator.models import Media, NormalizedItem, RawItem, Source
from aggregator.utils import absolutize, strip_utm

log = logging.getLogger("ainews.normalize")

# Timezone abbreviations for date parsing
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "Z": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "CET": timezone(timedelta(hours=1)),
    "CEST": timezone(timedelta(hours=2)),
}

_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_date(raw: Optional[str]) -> Optional[datetime]:
    """UTC datetime for a feed/markup date string, None when unparsable.

    Never falls back to the current time: None is the undated value.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        dt = parse_date_string(raw, tzinfos=TZINFOS, default=_FILL_DEFAULTS[0])
        other = parse_date_string(raw, tzinfos=TZINFOS, default=_FILL_DEFAULTS[1])
    except (ValueError, OverflowError) as e:
        log.debug("Unparsable date %r: %s", raw, e)
        return None
    # Missing year, month or day would be filled from the default
    if dt.date() != other.date():
        log.debug("Incomplete date %r, treated as undated.", raw)
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def canonical_url(url: str) -> str:
    """Dedup key: fragment stripped, scheme/host lower-cased, utm_* removed."""
    url = (url or "").strip()
    if not url:
        return ""
    try:
        u = urlparse(strip_utm(url))
    except ValueError:
        return url.split("#")[0]
    return urlunparse((u.scheme.lower(), u.netloc.lower(), u.path, u.params, u.query, ""))


def item_id(url: str) -> str:
    return "n" + hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]


def resolve_link(raw: RawItem, source: Source) -> str:
    return absolutize(source.homepage, raw.link)


def normalize(raw: RawItem, source: Source, media: Optional[Media] = None) -> NormalizedItem:
    url = canonical_url(resolve_link(raw, source))
    return NormalizedItem(
        id=item_id(url),
        title=raw.title,
        url=url,
        published_at=parse_date(raw.date),
        source_id=source.id,
        source_name=source.name,
        tags=tuple(raw.tags),
        media=media,
        summary=raw.summary,
    )


def dedupe(items: Iterable[NormalizedItem]) -> List[NormalizedItem]:
    """Keep the first item seen for each canonical URL."""
    seen = set()
    out = []
    for it in items:
        if not it.url or it.url in seen:
            continue
        seen.add(it.url)
        out.append(it)
    return out
