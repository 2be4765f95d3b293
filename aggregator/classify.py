"""Deterministic keyword classifier for aggregated items.

Each item gets exactly one of ``llm``, ``models``, ``tools`` or the catch-all
``updates``. The score only depends on title, declared tags, source name,
source boosts and URL, so identical input always yields the same category.
"""

import re
from dataclasses import replace
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

from aggregator import config
from aggregator.models import (
    CATEGORIES, LLM, MODELS, SUBSTANTIVE, TOOLS, UPDATES, NormalizedItem, Source,
)
from aggregator.registry import get_sources

TOOL_TERMS = (
    "api", "sdk", "tool", "tools", "plugin", "integration", "framework", "library", "package", "cli",
    "studio", "console", "dashboard", "ui", "workspace", "playground",
    "endpoint", "realtime", "function calling", "tool use", "agents", "agent",
    "rag", "retrieval", "embedding", "vector", "vector db", "faiss", "pgvector", "pinecone", "weaviate",
    "milvus", "chroma", "lancedb",
    "observability", "evals", "benchmark", "leaderboard", "guardrails",
    "langchain", "llamaindex", "tgi", "triton", "tensorrt", "nemo", "nim", "bedrock", "sagemaker",
    "vertex ai", "azure openai", "fabric",
)
LLM_TERMS = (
    "llm", "large language model", "language model", "chat model", "chatgpt", "gpt", "gpt-4", "gpt-4o",
    "o1", "o3",
    "claude", "sonnet", "opus", "haiku",
    "gemini", "gemma",
    "llama", "llama 3", "llama3", "mistral", "mixtral", "phi", "deepseek", "qwen", "yi", "grok", "reka",
    "jurassic", "jamba",
)
MODEL_TERMS = (
    "model", "checkpoint", "weights", "parameters", "multimodal", "vision", "image", "video", "audio",
    "speech", "tts", "asr",
    "diffusion", "stable diffusion", "sdxl", "imagen", "kosmos", "whisper", "musicgen", "seamlessm4t",
    "v-jepa",
    "quantization", "gguf", "awq", "gptq", "moe", "mixture of experts", "fine-tune", "finetune", "sft",
    "dpo", "rlhf",
)
NEGATIVE_TERMS = (
    "policy", "regulation", "ban", "lawsuit", "court", "copyright", "ethics",
    "stock", "shares", "ipo", "earnings", "market cap", "valuation",
    "autonomous vehicle", "self-driving", "robot", "robotics", "drone", "drones",
    "metaverse", "vr", "ar", "headset", "crypto", "bitcoin", "blockchain", "nft",
)

DICTIONARIES: Dict[str, Tuple[str, ...]] = {
    TOOLS: TOOL_TERMS,
    LLM: LLM_TERMS,
    MODELS: MODEL_TERMS,
}

PATH_HINT_RE = re.compile(r"(/ai/|/ml/|machine-?learning|/model|/llm|/genai|/generative-ai)", re.I)
PATH_HINT_CATEGORY = TOOLS
PATH_HINT_BONUS = 1
NEGATIVE_PENALTY = 1

# Terms that are substrings of too many common words ("learning", "build", "urban")
WHOLE_WORD_TERMS = frozenset({"ar", "vr", "ui", "yi", "ban", "phi", "nim"})

_INFER_TAGS = (
    ("LLM", re.compile(r"\b(gpt|llm|mistral|gemini|claude|llama)\b")),
    ("Vision", re.compile(r"\b(image|vision|multimodal|video)\b")),
    ("RAG", re.compile(r"\b(retrieval|rag|vector|embedding)\b")),
    ("Funding", re.compile(r"\b(funding|seed|series [a-d]|acquire|acquisition)\b")),
    ("Benchmarks", re.compile(r"\b(benchmark|leaderboard|eval|mmlu|arena)\b")),
    ("Policy", re.compile(r"\b(policy|regulation|eu ai act|law)\b")),
)


@lru_cache(maxsize=64)
def _word_pattern(term: str) -> re.Pattern:
    return re.compile(r"(?<![a-z0-9])" + re.escape(term) + r"(?![a-z0-9])")


def term_hit(haystack: str, term: str) -> bool:
    term = term.lower()
    if term in WHOLE_WORD_TERMS:
        return bool(_word_pattern(term).search(haystack))
    return term in haystack


def count_hits(haystack: str, terms: Iterable[str]) -> int:
    """Number of terms contained in the lower-cased haystack."""
    return sum(1 for t in terms if term_hit(haystack, t))


def path_hint(url: str) -> bool:
    try:
        path = urlparse(url).path
    except ValueError:
        return False
    return bool(PATH_HINT_RE.search(path))


def haystack(title: str, tags: Sequence[str], source_name: str) -> str:
    return " ".join([title or "", " ".join(tags or ()), source_name or ""]).lower()


def score(title: str, source_name: str, tags: Sequence[str], url: str,
          boosts: Optional[Mapping[str, Sequence[str]]] = None,
          boost_weight: int = 1) -> Dict[str, int]:
    """CategoryScore vector for one item (substantive categories only)."""
    hay = haystack(title, tags, source_name)
    boosts = boosts or {}

    scores: Dict[str, int] = {}
    for cat in SUBSTANTIVE:
        s = count_hits(hay, DICTIONARIES[cat])
        s += boost_weight * count_hits(hay, boosts.get(cat, ()))
        if cat == PATH_HINT_CATEGORY and path_hint(url):
            s += PATH_HINT_BONUS
        scores[cat] = s

    if count_hits(hay, NEGATIVE_TERMS) > 0:
        for cat in scores:
            scores[cat] = max(0, scores[cat] - NEGATIVE_PENALTY)
    return scores


def pick_category(scores: Mapping[str, int]) -> str:
    best = UPDATES
    best_score = 0
    for cat in SUBSTANTIVE:
        if scores.get(cat, 0) > best_score:
            best, best_score = cat, scores[cat]
    return best


def score_item(item: NormalizedItem, boosts: Optional[Mapping[str, Sequence[str]]] = None,
               boost_weight: int = 1) -> Dict[str, int]:
    return score(item.title, item.source_name, item.tags, item.url, boosts, boost_weight)


def classify_item(item: NormalizedItem, boosts: Optional[Mapping[str, Sequence[str]]] = None,
                  boost_weight: int = 1) -> str:
    return pick_category(score_item(item, boosts, boost_weight))


def classify(items: Iterable[NormalizedItem], sources: Optional[Iterable[Source]] = None,
             boost_weight: Optional[int] = None) -> List[NormalizedItem]:
    """Return copies of ``items`` with ``category`` set."""
    if sources is None:
        sources = get_sources(include_disabled=True)
    boosts_by_source = {s.id: s.boosts for s in sources}
    weight = config.BOOST_WEIGHT if boost_weight is None else boost_weight

    out = []
    for it in items:
        cat = classify_item(it, boosts_by_source.get(it.source_id), weight)
        out.append(replace(it, category=cat))
    return out


def infer_tags(text: str) -> List[str]:
    """Up to two display tags for a piece of text."""
    t = (text or "").lower()
    return [name for name, pat in _INFER_TAGS if pat.search(t)][:2]
