# article_pipeline/publishing.py
import json
import logging
import os
from datetime import datetime
from typing import List, Optional, Sequence

from .internal_links import extract_internal_links
from .models import ArticleRecord, CandidateArticle, Outline, WriterResult
from .text_utils import generate_excerpt, generate_slug, markdown_to_html

logger = logging.getLogger(__name__)

ARTICLES_DIR = "articles"


def _body_for_excerpt(document: str) -> str:
    # the excerpt should open on prose, not on the "# Title" line
    lines = [ln for ln in (document or "").splitlines() if not ln.lstrip().startswith("#")]
    return "\n".join(lines)


def build_article_record(
    result: WriterResult,
    outline: Outline,
    candidates: Sequence[CandidateArticle] = (),
) -> ArticleRecord:
    """Everything the store needs, derived from a finished writer run."""
    doc = result.full_document
    slug = generate_slug(outline.title)
    if not slug:
        # titles made only of punctuation slugify to nothing
        slug = f"article-{datetime.now():%Y%m%d-%H%M%S}"
        logger.warning("Title %r has no usable slug; saving as %s", outline.title, slug)
    return ArticleRecord(
        title=outline.title,
        slug=slug,
        content=doc,
        content_html=markdown_to_html(doc),
        excerpt=generate_excerpt(_body_for_excerpt(doc)),
        word_count=result.word_count,
        reading_time=result.reading_time,
        seo_keywords=list(outline.seo_keywords),
        cover_image=result.cover_image,
        links=extract_internal_links(doc, candidates),
        warnings=list(result.warnings),
    )


class ArticleStore:
    """One JSON file per article under ``<storage_dir>/articles``, keyed by slug."""

    def __init__(self, storage_dir: str = "storage"):
        self.root = os.path.join(storage_dir, ARTICLES_DIR)

    def _path(self, slug: str) -> str:
        if not slug:
            raise ValueError("Article slug is required")
        return os.path.join(self.root, f"{slug}.json")

    def save(self, record: ArticleRecord) -> str:
        os.makedirs(self.root, exist_ok=True)
        path = self._path(record.slug)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record.model_dump(), f, ensure_ascii=False, indent=2)
        logger.info("Saved article %r (%d words, %d links) to %s", record.title, record.word_count, len(record.links), path)
        return path

    def load(self, slug: str) -> Optional[ArticleRecord]:
        path = self._path(slug)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return ArticleRecord.model_validate(json.load(f))

    def list(self) -> List[ArticleRecord]:
        if not os.path.isdir(self.root):
            return []
        out = []
        for name in sorted(os.listdir(self.root)):
            if name.endswith(".json"):
                rec = self.load(name[:-5])
                if rec is not None:
                    out.append(rec)
        return out

    def as_candidates(self) -> List[CandidateArticle]:
        """Saved articles in the shape the link allow-list expects (slug doubles as id)."""
        return [CandidateArticle(id=r.slug, title=r.title, slug=r.slug, excerpt=r.excerpt) for r in self.list()]
