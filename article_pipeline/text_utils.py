# article_pipeline/text_utils.py
"""
Deterministic text helpers shared by the writer, editor and publishing steps.
Nothing in here talks to a model.
"""
from __future__ import annotations
import math
import re
from typing import Union

import markdown

from .models import Paragraphing

_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_MD_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_MD_MARKERS = re.compile(r"[#*_~`]")
_EM_DASH = re.compile(r"\s*(?:—|&mdash;|&#8212;|&#x2014;)\s*", re.IGNORECASE)
_NON_SLUG = re.compile(r"[^a-z0-9]+")

WORDS_PER_MINUTE = 200
SLUG_MAX_LEN = 100


def count_words(text: str) -> int:
    """
    Count prose words in markdown.

    Code fences are dropped, ``[label](url)`` counts only ``label`` and the
    emphasis/heading markers are removed before splitting on whitespace.
    """
    cleaned = _CODE_FENCE.sub(" ", text or "")
    cleaned = _MD_LINK.sub(r"\1", cleaned)
    cleaned = _MD_MARKERS.sub("", cleaned)
    return len([w for w in cleaned.split() if w])


def recommended_paragraphing(word_target: int) -> Paragraphing:
    """Paragraph plan handed to the model. Advisory only, never enforced."""
    if word_target <= 150:
        count = 2
    elif word_target <= 250:
        count = 3
    elif word_target <= 350:
        count = 4
    elif word_target <= 450:
        count = 5
    else:
        count = math.ceil(word_target / 90)
    return Paragraphing(count=count, words_per_paragraph=word_target // count)


def strip_em_dash(text: str) -> str:
    """Replace every em dash (raw or HTML entity) with ", "."""
    return _EM_DASH.sub(", ", text or "")


def generate_slug(title: str) -> str:
    slug = _NON_SLUG.sub("-", (title or "").lower()).strip("-")
    return slug[:SLUG_MAX_LEN].rstrip("-")


def _plain_text(md: str) -> str:
    text = _CODE_FENCE.sub(" ", md or "")
    text = _MD_LINK.sub(r"\1", text)
    text = re.sub(r"[#*_~`\[\]()>]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def generate_excerpt(text: str, max_len: int = 160) -> str:
    plain = _plain_text(text)
    if len(plain) <= max_len:
        return plain
    truncated = plain[:max_len]
    # cut back to the last word boundary unless the next char already is one
    if plain[max_len] != " ":
        last_space = truncated.rfind(" ")
        if last_space > 0:
            truncated = truncated[:last_space]
    return truncated.rstrip() + "..."


def reading_time(text_or_count: Union[str, int], words_per_minute: int = WORDS_PER_MINUTE) -> int:
    words = text_or_count if isinstance(text_or_count, int) else count_words(text_or_count)
    return math.ceil(words / words_per_minute)


def markdown_to_html(md: str) -> str:
    return markdown.markdown(
        md or "",
        extensions=["extra", "sane_lists"],
        output_format="html5",
    )
