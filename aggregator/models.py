import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

IMAGE = "image"
VIDEO = "video"

TOOLS = "tools"
LLM = "llm"
MODELS = "models"
UPDATES = "updates"

# Categories that can score, in tie-break order; UPDATES is the catch-all
SUBSTANTIVE: Tuple[str, ...] = (LLM, MODELS, TOOLS)
CATEGORIES: Tuple[str, ...] = SUBSTANTIVE + (UPDATES,)


@dataclass(frozen=True)
class ScrapeRules:
    # link/title/date patterns expose their value in group 1
    item_pattern: re.Pattern
    link_pattern: re.Pattern
    title_pattern: re.Pattern
    date_pattern: Optional[re.Pattern] = None


@dataclass(frozen=True)
class FeedMode:
    url: str
    kind: str = field(default="feed", init=False)


@dataclass(frozen=True)
class ScrapeMode:
    rules: ScrapeRules
    kind: str = field(default="scrape", init=False)


FetchMode = Union[FeedMode, ScrapeMode]


@dataclass(frozen=True)
class Source:
    id: str
    name: str
    homepage: str
    mode: FetchMode
    max_items: int = 20
    boosts: Dict[str, Tuple[str, ...]] = field(default_factory=dict)  # category -> terms
    enabled: bool = True

    @property
    def fetch_url(self) -> str:
        if isinstance(self.mode, FeedMode):
            return self.mode.url
        return self.homepage


@dataclass(frozen=True)
class MediaHints:
    enclosures: Tuple[Dict[str, str], ...] = ()     # {"url", "type"}
    media_content: Tuple[Dict[str, str], ...] = ()  # {"url", "type", "medium"}
    thumbnails: Tuple[str, ...] = ()
    html: str = ""       # inlined HTML content fields (feed)
    fragment: str = ""   # scraped markup block (scrape)


@dataclass(frozen=True)
class RawItem:
    title: str
    link: str
    date: Optional[str] = None
    tags: Tuple[str, ...] = ()
    hints: MediaHints = field(default_factory=MediaHints)
    summary: str = ""


@dataclass(frozen=True)
class Media:
    url: str
    type: str  # IMAGE | VIDEO


@dataclass(frozen=True)
class NormalizedItem:
    id: str
    title: str
    url: str  # canonical, dedup key
    published_at: Optional[datetime]  # None means undated, always UTC otherwise
    source_id: str
    source_name: str
    tags: Tuple[str, ...] = ()
    media: Optional[Media] = None
    summary: str = ""
    category: Optional[str] = None

    @property
    def undated(self) -> bool:
        return self.published_at is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "date": self.published_at.isoformat() if self.published_at else None,
            "source": self.source_name,
            "sourceId": self.source_id,
            "categories": list(self.tags),
        }
        if self.media:
            out["media"] = {"url": self.media.url, "type": self.media.type}
        if self.summary:
            out["summary"] = self.summary
        if self.category:
            out["category"] = self.category
        return out


@dataclass(frozen=True)
class FetchResult:
    url: str
    status: int
    content_type: str
    body: bytes
    encoding: str = "utf-8"
    max_age: int = 0  # staleness window for caller-side caching

    @property
    def text(self) -> str:
        try:
            return self.body.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

