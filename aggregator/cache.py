import time
from typing import Callable, Dict, List, Optional, Tuple

from aggregator.models import NormalizedItem


class SourceCache:
    """In-memory TTL cache of one source's normalized items, keyed by source id.

    An entry lives for ``ttl_seconds``, or for the fetch's ``max_age`` when
    that is shorter.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, List[NormalizedItem]]] = {}

    def get(self, source_id: str) -> Optional[List[NormalizedItem]]:
        hit = self._entries.get(source_id)
        if hit is None:
            return None
        expires_at, items = hit
        if self._clock() >= expires_at:
            del self._entries[source_id]
            return None
        return list(items)

    def set(self, source_id: str, items: List[NormalizedItem], max_age: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if max_age is None else min(self.ttl_seconds, max_age)
        if ttl <= 0:
            return
        self._entries[source_id] = (self._clock() + ttl, list(items))

    def clear(self) -> None:
        self._entries.clear()
