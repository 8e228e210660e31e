# article_pipeline/internal_links.py
import json
import logging
import os
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from openai import OpenAI
from pydantic import ValidationError
from sklearn.metrics.pairwise import cosine_similarity

from .config import Settings, load_settings
from .models import AllowedInternalLink, CandidateArticle, InternalLinkRecord, Outline, SuggestedLink

logger = logging.getLogger(__name__)

BLOG_PREFIX = "/blog/"
INDEX_JSON = "link_index.json"
INDEX_VEC = "link_vectors.npy"

# [text](/blog/slug) plus the legacy /articles/ prefix
_INTERNAL_LINK = re.compile(r"\[([^\]]+)\]\(/(?:blog|articles)/([^)\s#?]+)[^)]*\)")

Embedder = Callable[[List[str]], np.ndarray]


# ---------- allow-list ----------

def collect_suggested_links(outline: Outline) -> List[SuggestedLink]:
    return [lk for section in outline.sections for lk in section.suggested_links]


def build_allowed_internal_links(
    suggested_links: Iterable[SuggestedLink],
    candidates: Sequence[CandidateArticle],
) -> List[AllowedInternalLink]:
    """
    Resolve outline link suggestions against real published articles.

    Unknown article ids, articles without a slug and repeated URLs are dropped;
    the first suggestion for a URL wins.
    """
    by_id: Dict[str, CandidateArticle] = {c.id: c for c in candidates}
    allowed: List[AllowedInternalLink] = []
    seen_urls = set()
    for lk in suggested_links:
        article = by_id.get(lk.article_id)
        if article is None or not article.slug.strip():
            continue
        url = f"{BLOG_PREFIX}{article.slug.strip()}"
        if url in seen_urls:
            continue
        seen_urls.add(url)
        allowed.append(AllowedInternalLink(anchor_text=lk.anchor_text, url=url, title=article.title))
    return allowed


# ---------- extraction for persistence ----------

def extract_internal_links(
    document: str,
    candidates: Sequence[CandidateArticle],
    context_chars: int = 50,
) -> List[InternalLinkRecord]:
    by_slug = {c.slug: c for c in candidates if c.slug}
    records: List[InternalLinkRecord] = []
    for m in _INTERNAL_LINK.finditer(document or ""):
        slug = m.group(2).rstrip("/")
        article = by_slug.get(slug)
        if article is None:
            continue
        start = max(0, m.start() - context_chars)
        end = min(len(document), m.end() + context_chars)
        records.append(InternalLinkRecord(
            target_id=article.id,
            anchor_text=m.group(1),
            context=document[start:end].replace("\n", " "),
        ))
    return records


# ---------- related-article suggestion (embeddings) ----------

class OpenAIEmbedder:
    """Embeds texts in batches to stay under request limits."""

    def __init__(self, client: Optional[OpenAI] = None, settings: Optional[Settings] = None, batch_size: int = 100):
        self.settings = settings or load_settings()
        self._client = client
        self.batch_size = batch_size

    def __call__(self, texts: List[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)
        if self._client is None:
            self._client = OpenAI(api_key=self.settings.require_api_key(), timeout=self.settings.request_timeout)
        all_vecs = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            resp = self._client.embeddings.create(model=self.settings.embed_model, input=batch)
            all_vecs.extend(d.embedding for d in resp.data)
        return np.asarray(all_vecs, dtype=np.float32)


def _doc(article: CandidateArticle) -> str:
    return f"{article.title} - {article.excerpt}" if article.excerpt else article.title


def suggest_related_articles(
    query: str,
    candidates: Sequence[CandidateArticle],
    embed: Embedder,
    k: int = 5,
    vectors: Optional[np.ndarray] = None,
    min_score: float = 0.0,
) -> List[CandidateArticle]:
    """Top-``k`` candidates by cosine similarity to ``query`` (highest first)."""
    if not candidates or not query.strip():
        return []
    if vectors is None:
        vectors = embed([_doc(c) for c in candidates])
    q_vec = embed([query])[0]
    sims = cosine_similarity([q_vec], vectors)[0]

    out = []
    for idx in np.argsort(sims)[::-1]:
        if len(out) >= k:
            break
        if idx >= len(candidates) or sims[idx] < min_score:
            continue
        out.append(candidates[int(idx)])
    return out


def ingest_from_jsonl(path: str, embed: Embedder, storage_dir: str = "storage") -> int:
    """Load published articles from JSONL into the on-disk link index."""
    os.makedirs(storage_dir, exist_ok=True)
    items: List[CandidateArticle] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                rec = json.loads(line)
                items.append(CandidateArticle(
                    id=str(rec["id"]),
                    title=rec["title"],
                    slug=rec.get("slug", ""),
                    excerpt=rec.get("excerpt") or rec.get("summary") or "",
                ))
            except (json.JSONDecodeError, KeyError, ValidationError) as e:
                logger.warning("Skipping line %d of %s: %s", line_num, path, e)

    vecs = embed([_doc(a) for a in items])
    with open(os.path.join(storage_dir, INDEX_JSON), "w", encoding="utf-8") as f:
        json.dump([a.model_dump() for a in items], f, ensure_ascii=False, indent=2)
    np.save(os.path.join(storage_dir, INDEX_VEC), vecs)
    logger.info("Indexed %d published articles", len(items))
    return len(items)


def load_index(storage_dir: str = "storage") -> Tuple[List[CandidateArticle], np.ndarray]:
    index_json = os.path.join(storage_dir, INDEX_JSON)
    index_vec = os.path.join(storage_dir, INDEX_VEC)
    if not (os.path.exists(index_json) and os.path.exists(index_vec)):
        raise FileNotFoundError(
            "Link index not found. Build it with: python scripts/build_link_index.py"
        )
    with open(index_json, "r", encoding="utf-8") as f:
        items = [CandidateArticle(**rec) for rec in json.load(f)]
    return items, np.load(index_vec)
