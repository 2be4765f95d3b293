"""Static catalog of vendor publishers and their fetch/parse configuration.

The table is loaded once; ``NEWS_SOURCES_FILE`` may point to a JSON file that
replaces it at deploy time. Adding a source never requires code changes in the
fetcher, parsers or classifier.
"""

import re
import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse, parse_qs

from aggregator import config
from aggregator.models import SUBSTANTIVE, FeedMode, ScrapeMode, ScrapeRules, Source

log = logging.getLogger("ainews.registry")

# Anchor-block rules shared by vendor pages that list posts as plain links.
_ANCHOR_TITLE = r">([^<]{8,200})</a>"


def _anchor_rules(href_prefix: str) -> ScrapeRules:
    return ScrapeRules(
        item_pattern=re.compile(r'<a[^>]+href="' + href_prefix + r'[^"]+"[\s\S]*?</a>', re.I),
        link_pattern=re.compile(r'href="(' + href_prefix + r'[^"]+)"', re.I),
        title_pattern=re.compile(_ANCHOR_TITLE),
    )


def _boosts(**kw: List[str]) -> Dict[str, Tuple[str, ...]]:
    return {cat: tuple(terms) for cat, terms in kw.items()}


BUILTIN_SOURCES: Tuple[Source, ...] = (
    Source(
        id="openai", name="OpenAI News", homepage="https://openai.com/news/",
        mode=FeedMode("https://openai.com/news/rss.xml"),
        boosts=_boosts(
            llm=["gpt", "o1", "o3", "chatgpt"],
            tools=["assistants", "structured output", "realtime", "api", "function calling"],
            models=["whisper", "sora"],
        ),
    ),
    Source(
        id="anthropic", name="Anthropic", homepage="https://www.anthropic.com/news",
        mode=ScrapeMode(_anchor_rules(r"/news/")),
        boosts=_boosts(llm=["claude", "sonnet", "opus", "haiku"], tools=["artifacts", "api", "tool use"]),
    ),
    Source(
        id="deepmind", name="Google DeepMind (Blog.Google)", homepage="https://blog.google/",
        mode=FeedMode("https://blog.google/rss/?category=Google%20DeepMind"),
        boosts=_boosts(llm=["gemini"], models=["vision", "multimodal", "video"], tools=["benchmark", "agents"]),
    ),
    Source(
        id="microsoft-ai", name="Microsoft (Official Blog - AI)", homepage="https://blogs.microsoft.com/",
        mode=FeedMode("https://blogs.microsoft.com/blog/tag/ai/feed/"),
        boosts=_boosts(llm=["phi", "copilot"], tools=["azure openai", "prompt flow", "autogen", "fabric", "ml"]),
    ),
    Source(
        id="nvidia", name="NVIDIA Blog", homepage="https://blogs.nvidia.com/",
        mode=FeedMode("https://blogs.nvidia.com/feed/"),
        boosts=_boosts(
            tools=["tensorrt", "triton", "nemo", "nim", "ngc", "cuda-x ai", "riva", "maxine"],
            models=["model", "inference"],
        ),
    ),
    Source(
        id="meta-eng", name="Engineering at Meta", homepage="https://engineering.fb.com/",
        mode=FeedMode("https://engineering.fb.com/feed/"),
        boosts=_boosts(llm=["llama"], models=["segment anything", "vision", "multimodal"]),
    ),
    Source(
        id="ibm-research", name="IBM Research Blog", homepage="https://research.ibm.com/blog",
        mode=ScrapeMode(_anchor_rules(r"/blog/")),
        boosts=_boosts(models=["granite", "watsonx"], tools=["instructlab", "fm inference"]),
    ),
    Source(
        id="aws-ml", name="AWS Machine Learning Blog", homepage="https://aws.amazon.com/blogs/machine-learning/",
        mode=FeedMode("https://aws.amazon.com/blogs/machine-learning/feed/"),
        boosts=_boosts(tools=["bedrock", "sagemaker", "guardrails", "agents for bedrock"], models=["titan", "model"]),
    ),
    Source(
        id="salesforce-eng", name="Salesforce Engineering", homepage="https://engineering.salesforce.com/",
        mode=ScrapeMode(_anchor_rules(r"https://engineering\.salesforce\.com/")),
        boosts=_boosts(tools=["einstein", "agentforce"], llm=["xgen", "codegen"]),
    ),
    Source(
        id="hugging-face", name="Hugging Face Blog", homepage="https://huggingface.co/blog",
        mode=FeedMode("https://huggingface.co/blog/feed.xml"),
        boosts=_boosts(
            tools=["transformers", "diffusers", "datasets", "text-generation-inference", "safetensors"],
            models=["model", "checkpoint"],
        ),
    ),
)


def google_news_topic_feed(url: str) -> Optional[str]:
    """Rewrite a news.google.com topic page URL to its RSS endpoint."""
    try:
        u = urlparse(url)
    except ValueError:
        return None
    m = re.search(r"/topics/([^/]+)", u.path)
    if not m:
        return None
    qs = parse_qs(u.query)
    hl = (qs.get("hl") or ["en-US"])[0]
    gl = (qs.get("gl") or ["US"])[0]
    lang = hl.split("-")[1] if "-" in hl else "en"
    return f"https://news.google.com/rss/topics/{m.group(1)}?hl={hl}&gl={gl}&ceid={gl}:{lang}"


def _rules_from_dict(raw: Dict[str, Any]) -> ScrapeRules:
    date = raw.get("date")
    return ScrapeRules(
        item_pattern=re.compile(raw["item"], re.I),
        link_pattern=re.compile(raw["link"], re.I),
        title_pattern=re.compile(raw["title"]),
        date_pattern=re.compile(date) if date else None,
    )


def source_from_dict(raw: Dict[str, Any]) -> Source:
    """Build a Source from one JSON entry. Raises ValueError/KeyError/re.error."""
    mode_name = raw.get("mode", "feed")
    if mode_name == "feed":
        mode = FeedMode(raw["feed"])
    elif mode_name == "google-news-topic":
        feed = google_news_topic_feed(raw["url"])
        if not feed:
            raise ValueError(f"not a Google News topic URL: {raw['url']}")
        mode = FeedMode(feed)
    elif mode_name == "scrape":
        mode = ScrapeMode(_rules_from_dict(raw["rules"]))
    else:
        raise ValueError(f"unknown mode {mode_name!r}")

    boosts = {}
    for cat, terms in (raw.get("boosts") or {}).items():
        if cat not in SUBSTANTIVE:
            raise ValueError(f"boost for unknown category {cat!r}")
        boosts[cat] = tuple(str(t).lower() for t in terms)

    return Source(
        id=str(raw["id"]),
        name=str(raw["name"]),
        homepage=str(raw["homepage"]),
        mode=mode,
        max_items=int(raw.get("max", config.PER_SOURCE_MAX)),
        boosts=boosts,
        enabled=bool(raw.get("enabled", True)),
    )


def load_sources_file(path: str) -> Tuple[Source, ...]:
    """Load a JSON list of sources; fall back to the built-in table on error."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError("sources file must contain a list")
    except FileNotFoundError:
        log.warning("Sources file %s not found, using built-in sources.", path)
        return BUILTIN_SOURCES
    except (json.JSONDecodeError, ValueError) as e:
        log.error("Error reading %s: %s", path, e)
        return BUILTIN_SOURCES

    out = []
    seen = set()
    for i, entry in enumerate(data):
        try:
            src = source_from_dict(entry)
        except (KeyError, TypeError, ValueError, AttributeError, re.error) as e:
            log.warning("Invalid source #%d in %s: %s", i, path, e)
            continue
        if src.id in seen:
            log.warning("Duplicate source id %s in %s, skipped.", src.id, path)
            continue
        seen.add(src.id)
        out.append(src)
    return tuple(out)


_loaded: Optional[Tuple[Source, ...]] = None


def _all_sources() -> Tuple[Source, ...]:
    global _loaded
    if _loaded is None:
        _loaded = load_sources_file(config.SOURCES_FILE) if config.SOURCES_FILE else BUILTIN_SOURCES
    return _loaded


def get_sources(include_disabled: bool = False) -> List[Source]:
    return [s for s in _all_sources() if include_disabled or s.enabled]


def get_source(source_id: str) -> Optional[Source]:
    for s in _all_sources():
        if s.id == source_id:
            return s
    return None


def list_sources() -> List[Dict[str, str]]:
    """id, name and homepage of every enabled source, for listing pages."""
    return [{"id": s.id, "name": s.name, "homepage": s.homepage} for s in get_sources()]
