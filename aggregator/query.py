import re
import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional, Sequence, Union

from dateutil.parser import isoparse

from aggregator import config
from aggregator.cache import SourceCache
from aggregator.classify import classify
from aggregator.errors import CallerInputError
from aggregator.fetcher import Fetcher
from aggregator.media import MediaResolver
from aggregator.models import NormalizedItem, Source
from aggregator.monitoring import HealthMonitor
from aggregator.normalize import dedupe
from aggregator.pipeline import harvest_all
from aggregator.registry import get_sources

log = logging.getLogger("ainews.query")

DateBound = Union[None, str, date, datetime]

_YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_bound(value: DateBound, end_of_day: bool = False, field_name: str = "date") -> Optional[datetime]:
    """UTC datetime for a window bound. A date-only upper bound covers its whole day."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.max if end_of_day else time.min)
    elif isinstance(value, str):
        s = value.strip()
        try:
            if _YMD_RE.match(s):
                d = date.fromisoformat(s)
                dt = datetime.combine(d, time.max if end_of_day else time.min)
            else:
                dt = isoparse(s)
        except ValueError as e:
            raise CallerInputError(f"{field_name} must be an ISO-8601 date or datetime, got {value!r}") from e
    else:
        raise CallerInputError(f"{field_name} has unsupported type {type(value).__name__}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def check_limit(limit: Optional[int]) -> int:
    if limit is None:
        return min(config.DEFAULT_LIMIT, config.MAX_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise CallerInputError(f"limit must be an integer, got {limit!r}")
    if limit < 0:
        raise CallerInputError(f"limit must not be negative, got {limit}")
    return min(limit, config.MAX_LIMIT)


def matches_query(item: NormalizedItem, needle: str) -> bool:
    hay = " ".join([item.title, item.source_name, " ".join(item.tags)]).lower()
    return needle in hay


def in_window(item: NormalizedItem, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if item.published_at is None:
        return False
    if start is not None and item.published_at < start:
        return False
    if end is not None and item.published_at > end:
        return False
    return True


def sort_newest_first(items: Sequence[NormalizedItem]) -> List[NormalizedItem]:
    """Dated items newest first, undated items after them in arrival order."""
    dated = [it for it in items if it.published_at is not None]
    undated = [it for it in items if it.published_at is None]
    dated.sort(key=lambda it: it.published_at, reverse=True)
    return dated + undated


def filter_items(items: Sequence[NormalizedItem], query: Optional[str] = None,
                 start: Optional[datetime] = None, end: Optional[datetime] = None,
                 limit: int = config.DEFAULT_LIMIT) -> List[NormalizedItem]:
    """Query, window, sort and cap an already deduplicated list."""
    out = list(items)
    needle = (query or "").strip().lower()
    if needle:
        out = [it for it in out if matches_query(it, needle)]
    if start is not None or end is not None:
        # undated items would be misleading inside a bounded view
        out = [it for it in out if in_window(it, start, end)]
    return sort_newest_first(out)[:limit]


async def aggregate(query: Optional[str] = None, date_from: DateBound = None, date_to: DateBound = None,
                    limit: Optional[int] = None, *,
                    sources: Optional[Sequence[Source]] = None,
                    fetcher=None,
                    cache: Optional[SourceCache] = None,
                    monitor: Optional[HealthMonitor] = None,
                    classify_items: bool = False) -> List[NormalizedItem]:
    """Harvest all sources and return a filtered, newest-first, capped list.

    Only invalid caller input raises (CallerInputError); every source and
    per-item failure is absorbed and simply contributes nothing.
    """
    start = parse_bound(date_from, field_name="date_from")
    end = parse_bound(date_to, end_of_day=True, field_name="date_to")
    if start is not None and end is not None and start > end:
        raise CallerInputError(f"date_from ({start.isoformat()}) is after date_to ({end.isoformat()})")
    n = check_limit(limit)
    if n == 0:
        return []

    if sources is None:
        sources = get_sources()
    if monitor is None:
        monitor = HealthMonitor()

    own_fetcher = fetcher is None
    if own_fetcher:
        fetcher = Fetcher()
    try:
        resolver = MediaResolver(fetcher)
        items = await harvest_all(sources, fetcher, resolver, cache, monitor)
    finally:
        if own_fetcher:
            await fetcher.close()

    unique = dedupe(items)
    log.info("Aggregated %d item(s), %d unique, from %d source(s).", len(items), len(unique), len(sources))
    result = filter_items(unique, query, start, end, n)
    if classify_items:
        result = classify(result, sources)
    return result
