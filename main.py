import sys
import json
import asyncio
import logging
import argparse
from typing import List, Optional

from aggregator import config
from aggregator.archive import bucket_by_day, day_window
from aggregator.cache import SourceCache
from aggregator.classify import infer_tags
from aggregator.errors import CallerInputError
from aggregator.models import NormalizedItem
from aggregator.monitoring import HealthMonitor
from aggregator.query import aggregate
from aggregator.registry import list_sources
from aggregator.utils import truncate_text

log = logging.getLogger("ainews")


# =========================
# ARGS
# =========================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aggregate AI vendor news from feeds and pages.")
    parser.add_argument("-q", "--query", help="case-insensitive text filter (title, source, tags)")
    parser.add_argument("--from", dest="date_from", help="window start, YYYY-MM-DD or ISO-8601")
    parser.add_argument("--to", dest="date_to", help="window end (inclusive), YYYY-MM-DD or ISO-8601")
    parser.add_argument("--day", help="shortcut for a one-day UTC window, YYYY-MM-DD")
    parser.add_argument("-n", "--limit", type=int, default=None, help="maximum number of items")
    parser.add_argument("--classify", action="store_true", help="annotate items with a category")
    parser.add_argument("--by-day", action="store_true", help="group output by UTC day")
    parser.add_argument("--sources", action="store_true", help="list configured sources and exit")
    parser.add_argument("--json", action="store_true", help="print JSON instead of text")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


# =========================
# OUTPUT
# =========================

def format_item(it: NormalizedItem) -> str:
    date = it.published_at.strftime("%Y-%m-%d %H:%M") if it.published_at else "undated"
    cat = f"[{it.category}] " if it.category else ""
    tags = it.tags or tuple(infer_tags(it.title))
    line = f"{date}  {cat}{truncate_text(it.title, 100)}  ({it.source_name})\n    {it.url}"
    if tags:
        line += "  " + " ".join(f"#{t}" for t in tags[:3])
    return line


def print_items(items: List[NormalizedItem], as_json: bool, by_day: bool) -> None:
    if by_day:
        buckets = bucket_by_day(items)
        if as_json:
            print(json.dumps([
                {"ymd": b.ymd, "count": b.count, "items": [it.to_dict() for it in b.items]}
                for b in buckets
            ], ensure_ascii=False, indent=2))
            return
        for b in buckets:
            print(f"== {b.ymd} ({b.count})")
            for it in b.items:
                print(format_item(it))
        return

    if as_json:
        print(json.dumps({"ok": True, "count": len(items), "items": [it.to_dict() for it in items]},
                         ensure_ascii=False, indent=2))
        return
    for it in items:
        print(format_item(it))


# =========================
# MAIN
# =========================

async def run(args: argparse.Namespace) -> int:
    date_from, date_to = args.date_from, args.date_to
    if args.day:
        date_from, date_to = day_window(args.day)

    cache = SourceCache(config.CACHE_TTL_SECONDS) if config.CACHE_TTL_SECONDS > 0 else None
    monitor = HealthMonitor()
    items = await aggregate(
        args.query, date_from, date_to, args.limit,
        cache=cache, monitor=monitor, classify_items=args.classify,
    )
    print_items(items, args.json, args.by_day)

    failing = {k: v for k, v in monitor.get_status().items() if v}
    if failing:
        log.warning("Sources without items this run: %s", ", ".join(sorted(failing)))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    config.validate_settings()

    if args.sources:
        srcs = list_sources()
        if args.json:
            print(json.dumps(srcs, ensure_ascii=False, indent=2))
        else:
            for s in srcs:
                print(f"{s['id']:<16} {s['name']:<36} {s['homepage']}")
        return 0

    try:
        return asyncio.run(run(args))
    except CallerInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
