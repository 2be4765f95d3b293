"""Error taxonomy for the aggregation pipeline.

Only ``CallerInputError`` ever reaches callers of ``aggregate``. The other
kinds are raised inside one source branch or one entry and absorbed there.
"""

from typing import Optional


class AggregatorError(Exception):
    pass


class SourceUnreachable(AggregatorError):
    """Network error, timeout, non-success status or unexpected content type."""

    def __init__(self, url: str, reason: str, source_id: Optional[str] = None):
        self.url = url
        self.reason = reason
        self.source_id = source_id
        super().__init__(f"{url}: {reason}")


class MalformedEntry(AggregatorError):
    """One feed entry or markup fragment could not be turned into a RawItem."""


class CallerInputError(AggregatorError, ValueError):
    """Invalid date window or limit passed to ``aggregate``."""
