import re
import html
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse, parse_qsl, urlencode, urlunparse

from bs4 import BeautifulSoup

_CDATA_RE = re.compile(r"<!\[CDATA\[|\]\]>")
_WS_RE = re.compile(r"\s+")

VIDEO_HOSTS = ("youtube.com", "youtu.be", "vimeo.com")


def truncate_text(text: str, limit: int) -> str:
    text = text or ""
    if len(text) > limit:
        return text[: max(0, limit - 3)] + "..."
    return text


def clean_text(raw: Optional[str]) -> str:
    """Strip CDATA wrappers, decode entities and collapse whitespace."""
    txt = _CDATA_RE.sub("", raw or "")
    txt = html.unescape(txt)
    return _WS_RE.sub(" ", txt).strip()


def strip_html_to_text(raw_html: str) -> str:
    raw_html = _CDATA_RE.sub("", raw_html or "")
    if not raw_html.strip():
        return ""
    text = BeautifulSoup(raw_html, "html.parser").get_text(" ")
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def absolutize(base: str, href: Optional[str]) -> str:
    href = (href or "").strip()
    if not href:
        return ""
    if re.match(r"^https?://", href, flags=re.I):
        return href
    try:
        return urljoin(base, href)
    except ValueError:
        return href


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_video_host(url: str) -> bool:
    host = host_of(url)
    return any(host == h or host.endswith("." + h) for h in VIDEO_HOSTS)


def first_from_srcset(srcset: Optional[str]) -> str:
    if not srcset:
        return ""
    first = srcset.split(",")[0].strip()
    if not first:
        return ""
    return first.split()[0]


def strip_utm(url: str) -> str:
    """Drop utm_* tracking parameters, keep the rest of the query."""
    try:
        u = urlparse(url)
    except ValueError:
        return url
    if not u.query:
        return url
    q = [(k, v) for k, v in parse_qsl(u.query, keep_blank_values=True)
         if not k.lower().startswith("utm_")]
    return urlunparse((u.scheme, u.netloc, u.path, u.params, urlencode(q, doseq=True), u.fragment))


def dedupe_terms(terms: Iterable[Optional[str]], max_len: int = 80) -> List[str]:
    """Clean category terms, drop empties and case-insensitive duplicates."""
    seen = set()
    clean = []
    for term in terms:
        term = clean_text(term)[:max_len]
        if not term:
            continue
        key = term.lower()
        if key not in seen:
            seen.add(key)
            clean.append(term)
    return clean
