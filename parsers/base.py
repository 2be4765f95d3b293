from abc import ABC, abstractmethod
from typing import List, Union

from aggregator.models import RawItem, Source


class Parser(ABC):
    mode: str

    @abstractmethod
    def parse(self, document: Union[str, bytes], source: Source) -> List[RawItem]:
        """Return the source's RawItems in document order, at most source.max_items."""
        ...


def get_parser(source: Source) -> Parser:
    from parsers.feed_parser import FeedParser
    from parsers.scrape_parser import ScrapeParser

    parsers = {FeedParser.mode: FeedParser(), ScrapeParser.mode: ScrapeParser()}
    try:
        return parsers[source.mode.kind]
    except KeyError:
        raise ValueError(f"no parser for mode {source.mode.kind!r} (source {source.id})") from None
