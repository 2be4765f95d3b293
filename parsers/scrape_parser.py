import logging
from typing import List, Optional, Union

from aggregator.errors import MalformedEntry
from aggregator.models import MediaHints, RawItem, ScrapeMode, ScrapeRules, Source
from aggregator.utils import clean_text, strip_html_to_text
from parsers.base import Parser

log = logging.getLogger("ainews.parsers.scrape")

# Visible block text used as a title when the title pattern misses.
MIN_FALLBACK_TITLE = 20


def _group1(pattern, block: str) -> str:
    m = pattern.search(block)
    if not m:
        return ""
    return (m.group(1) if m.groups() else m.group(0)) or ""


def block_to_raw(block: str, rules: ScrapeRules) -> RawItem:
    link = _group1(rules.link_pattern, block).strip()
    if not link:
        raise MalformedEntry("block without link")

    title = clean_text(_group1(rules.title_pattern, block))
    if not title:
        text = strip_html_to_text(block)
        if len(text) >= MIN_FALLBACK_TITLE:
            title = text
    if not title:
        raise MalformedEntry(f"block without title ({link})")

    date: Optional[str] = None
    if rules.date_pattern is not None:
        date = clean_text(_group1(rules.date_pattern, block)) or None

    return RawItem(
        title=title,
        link=link,
        date=date,
        hints=MediaHints(fragment=block),
    )


class ScrapeParser(Parser):
    """Pseudo-items from homepage markup using per-source regex rules."""

    mode = "scrape"

    def parse(self, document: Union[str, bytes], source: Source) -> List[RawItem]:
        if not isinstance(source.mode, ScrapeMode):
            raise ValueError(f"{source.id} is not a scrape source")
        if isinstance(document, bytes):
            document = document.decode("utf-8", errors="replace")
        rules = source.mode.rules

        out: List[RawItem] = []
        for i, m in enumerate(rules.item_pattern.finditer(document)):
            if len(out) >= source.max_items:
                break
            try:
                out.append(block_to_raw(m.group(0), rules))
            except (MalformedEntry, IndexError, ValueError) as e:
                log.debug("%s: block #%d skipped: %s", source.id, i, e)
        if not out:
            log.info("%s: no items matched on %s.", source.id, source.homepage)
        return out
