# article_pipeline/source_links.py
import re
from typing import List, Sequence

from .models import SourceRef

MIN_EXTERNAL_SOURCES = 2

# one level of balanced parentheses inside the URL, e.g. .../Python_(programming_language)
_EXTERNAL_LINK = re.compile(r"\[[^\]]*\]\((https?://(?:[^()\s]|\([^()\s]*\))+)\)", re.IGNORECASE)


def _norm(url: str) -> str:
    return (url or "").strip().rstrip("/")


def _anchor(source: SourceRef) -> str:
    # brackets in a title would break the link we are about to write
    title = re.sub(r"[\[\]]", "", source.title or "").strip()
    return title or source.url.strip()


def cited_source_urls(document: str, sources: Sequence[SourceRef]) -> List[str]:
    """Distinct source URLs already cited as markdown links, in document order."""
    pool = {_norm(s.url) for s in sources if s.url}
    found: List[str] = []
    for m in _EXTERNAL_LINK.finditer(document or ""):
        url = _norm(m.group(1))
        if url in pool and url not in found:
            found.append(url)
    return found


def ensure_external_source_links(document: str, sources: Sequence[SourceRef], minimum: int = MIN_EXTERNAL_SOURCES) -> str:
    """
    Guarantee ``minimum`` cited sources by appending a ``## Sources`` section.

    Only unused URLs from ``sources`` are appended, so running it twice is a
    no-op. With fewer sources than ``minimum`` every available one is cited.
    """
    found = cited_source_urls(document, sources)
    missing = minimum - len(found)
    if missing <= 0:
        return document

    extra: List[SourceRef] = []
    seen = set(found)
    for s in sources:
        url = _norm(s.url)
        if not url.lower().startswith(("http://", "https://")) or url in seen:
            continue
        extra.append(s)
        seen.add(url)
        if len(extra) >= missing:
            break

    if not extra:
        return document

    lines = [f"- [{_anchor(s)}]({s.url.strip()})" for s in extra]
    return f"{document.rstrip()}\n\n## Sources\n\n" + "\n".join(lines)
