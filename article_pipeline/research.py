# article_pipeline/research.py
"""Source gathering for topics: fetch pages, attach sources, propose topics."""
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from .llm import CompletionClient
from .models import SourceRef, TopicCandidate
from .outline_parser import parse_topics
from .prompt_factory import make_topics_prompt

logger = logging.getLogger(__name__)

UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0 Safari/537.36"
)
SNIPPET_CHARS = 300

Fetcher = Callable[[str, float], SourceRef]


def _main_node(soup: BeautifulSoup):
    return (
        soup.find("article")
        or soup.find("main")
        or soup.find("div", attrs={"class": re.compile(r"(post|entry|content)")})
        or soup.body
    )


def fetch_source(url: str, timeout: float = 10) -> SourceRef:
    """Title and first meaningful paragraph of a page. Raises requests errors."""
    r = requests.get(
        url,
        headers={"User-Agent": UA, "Accept-Language": "en-US,en;q=0.9"},
        timeout=timeout,
        allow_redirects=True,
    )
    r.raise_for_status()
    soup = BeautifulSoup(r.text, "html.parser")

    title = (soup.title.string or "").strip() if soup.title and soup.title.string else ""
    if not title:
        og = soup.find("meta", {"property": "og:title"})
        title = (og.get("content") or "").strip() if og else ""

    snippet = ""
    node = _main_node(soup)
    for p in (node.find_all("p") if node else soup.find_all("p")):
        text = re.sub(r"\s+", " ", p.get_text(" ", strip=True)).strip()
        if len(text) > 30:
            snippet = text[:SNIPPET_CHARS]
            break
    return SourceRef(url=url, title=title or None, snippet=snippet or None)


def gather_sources(
    urls: Iterable[str],
    fetch: Optional[Fetcher] = None,
    max_workers: int = 5,
    timeout: float = 10,
) -> List[SourceRef]:
    """
    Fetch many sources in parallel, deduped by URL, in input order.

    A page that fails or times out is dropped; one bad URL never fails the batch.
    """
    fetch = fetch or fetch_source
    seen, ordered = set(), []
    for u in urls:
        u = (u or "").strip()
        if u and u not in seen:
            seen.add(u)
            ordered.append(u)
    if not ordered:
        return []

    def _one(u: str) -> Optional[SourceRef]:
        try:
            return fetch(u, timeout)
        except Exception as e:
            logger.warning("Source fetch failed for %s: %s", u, e)
            return None

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ordered)))) as pool:
        results = list(pool.map(_one, ordered))
    found = [s for s in results if s is not None]
    logger.info("Gathered %d/%d sources", len(found), len(ordered))
    return found


def match_sources_to_topic(title: str, sources: Sequence[SourceRef], limit: int = 5) -> List[SourceRef]:
    """Sources sharing keywords (>3 chars) with the title; first 3 when none match."""
    keywords = [w for w in title.lower().split() if len(w) > 3]
    matched, used = [], set()
    for s in sources:
        if s.url in used:
            continue
        text = f"{s.title or ''} {s.snippet or ''}".lower()
        hits = sum(1 for k in keywords if k in text)
        if hits >= 2 or (hits == 1 and len(keywords) <= 2):
            matched.append(s)
            used.add(s.url)
            if len(matched) >= limit:
                break
    return matched or list(sources[:3])


def filter_similar_topics(topics: Sequence[TopicCandidate], existing: Sequence[str]) -> List[TopicCandidate]:
    """Drop topics whose title contains, or is contained in, an existing title."""
    existing_l = [e.lower() for e in existing if e.strip()]
    out = []
    for t in topics:
        tl = t.title.lower()
        if any(e in tl or tl in e for e in existing_l):
            logger.info("Skipping topic %r: overlaps existing article", t.title)
            continue
        out.append(t)
    return out


def discover_topics(
    client: CompletionClient,
    industry: str,
    keywords: Sequence[str] = (),
    sources: Sequence[SourceRef] = (),
    existing_topics: Sequence[str] = (),
) -> List[TopicCandidate]:
    ps = make_topics_prompt(industry, list(keywords), list(sources), list(existing_topics))
    content = client.complete(ps.system, ps.user, temperature=ps.temperature)
    topics = parse_topics(content)
    for t in topics:
        t.sources = match_sources_to_topic(t.title, sources)
    return filter_similar_topics(topics, existing_topics)
