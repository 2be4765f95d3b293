"""Helpers for daily archive and trending views."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from aggregator.errors import CallerInputError
from aggregator.models import NormalizedItem

_YMD_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


@dataclass
class DayBucket:
    ymd: str
    items: List[NormalizedItem] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.items)


def ymd_utc(dt: Optional[datetime] = None) -> str:
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d")


def parse_ymd(ymd: str) -> datetime:
    """'YYYY-MM-DD' as 00:00:00 UTC."""
    m = _YMD_RE.match(ymd or "")
    if not m:
        raise CallerInputError(f"Invalid day {ymd!r}, expected YYYY-MM-DD")
    try:
        return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)), tzinfo=timezone.utc)
    except ValueError as e:
        raise CallerInputError(f"Invalid day {ymd!r}: {e}") from e


def day_window(ymd: str) -> Tuple[datetime, datetime]:
    """Inclusive UTC bounds of one day, usable as an aggregate() date window."""
    start = parse_ymd(ymd)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def bucket_by_day(items: List[NormalizedItem]) -> List[DayBucket]:
    """Group dated items by UTC day: biggest buckets first, then most recent day."""
    buckets: Dict[str, DayBucket] = {}
    for it in items:
        if it.published_at is None:
            continue
        key = ymd_utc(it.published_at)
        buckets.setdefault(key, DayBucket(key)).items.append(it)

    for b in buckets.values():
        b.items.sort(key=lambda it: it.published_at, reverse=True)
    # ymd strings sort chronologically
    out = sorted(buckets.values(), key=lambda b: b.ymd, reverse=True)
    out.sort(key=lambda b: b.count, reverse=True)
    return out
