"""Per-source harvesting: fetch -> parse -> resolve media -> normalize.

Each source runs in its own branch with no shared mutable state. A failing
branch contributes an empty list and never cancels its siblings.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from aggregator.cache import SourceCache
from aggregator.errors import SourceUnreachable
from aggregator.media import FallbackBudget, MediaResolver
from aggregator.models import FeedMode, Media, NormalizedItem, RawItem, Source
from aggregator.monitoring import HealthMonitor
from aggregator.normalize import normalize, resolve_link
from parsers.base import get_parser

log = logging.getLogger("ainews.pipeline")


async def _resolve_media(resolver: MediaResolver, raw: RawItem, source: Source,
                         budget: FallbackBudget) -> Optional[Media]:
    link = resolve_link(raw, source)
    try:
        return await resolver.resolve(raw, link, source.homepage, budget)
    except Exception as e:
        log.warning("%s: media resolution failed for %s: %s", source.id, link, e)
        return None


async def harvest_source(source: Source, fetcher,
                         resolver: MediaResolver) -> Tuple[List[NormalizedItem], int]:
    """Items of one source and the fetch's max_age.

    Raises SourceUnreachable when the fetch fails.
    """
    is_feed = isinstance(source.mode, FeedMode)
    res = await fetcher.fetch(source.fetch_url, expect="feed" if is_feed else "html")
    parser = get_parser(source)
    raws = parser.parse(res.body if is_feed else res.text, source)

    budget = resolver.new_budget()
    media = await asyncio.gather(*(_resolve_media(resolver, r, source, budget) for r in raws))
    if raws and budget.remaining == 0:
        log.debug("%s: preview image budget exhausted.", source.id)
    return [normalize(raw, source, m) for raw, m in zip(raws, media)], res.max_age


async def harvest_branch(source: Source, fetcher, resolver: MediaResolver,
                         cache: Optional[SourceCache] = None,
                         monitor: Optional[HealthMonitor] = None) -> List[NormalizedItem]:
    """harvest_source with failure isolation: never raises."""
    if cache is not None:
        cached = cache.get(source.id)
        if cached is not None:
            log.debug("%s: %d item(s) from cache.", source.id, len(cached))
            return cached

    try:
        items, max_age = await harvest_source(source, fetcher, resolver)
    except SourceUnreachable as e:
        log.warning("%s: source unreachable: %s", source.id, e)
        if monitor is not None:
            monitor.record_failure(source.id, e.reason)
        return []
    except Exception as e:
        log.exception("%s: unexpected error while harvesting: %s", source.id, e)
        if monitor is not None:
            monitor.record_failure(source.id, type(e).__name__)
        return []

    if monitor is not None:
        monitor.record_success(source.id)
    if cache is not None:
        cache.set(source.id, items, max_age or None)
    log.info("%s: %d item(s).", source.id, len(items))
    return items


async def harvest_all(sources: Iterable[Source], fetcher, resolver: MediaResolver,
                      cache: Optional[SourceCache] = None,
                      monitor: Optional[HealthMonitor] = None) -> List[NormalizedItem]:
    """Run every source concurrently and concatenate results in source order."""
    results = await asyncio.gather(
        *(harvest_branch(s, fetcher, resolver, cache, monitor) for s in sources)
    )
    merged: List[NormalizedItem] = []
    for items in results:
        merged.extend(items)
    return merged
