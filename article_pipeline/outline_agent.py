# article_pipeline/outline_agent.py
import logging
from typing import Optional, Sequence

from .llm import CompletionClient
from .models import CandidateArticle, ParsedOutline, TopicCandidate
from .outline_parser import parse_outline
from .prompt_factory import OutlinePromptParams, make_outline_prompt

logger = logging.getLogger(__name__)


class OutlineAgent:
    def __init__(self, client: CompletionClient):
        self.client = client

    def create_outline(
        self,
        topic: TopicCandidate,
        article_type: str = "blog",
        target_length: str = "medium",
        tone: str = "professional",
        related_articles: Optional[Sequence[CandidateArticle]] = None,
    ) -> ParsedOutline:
        """One completion call; raises OutlineParseError if nothing usable came back."""
        ps = make_outline_prompt(OutlinePromptParams(
            topic=topic,
            article_type=article_type,
            target_length=target_length,
            tone=tone,
            related_articles=list(related_articles or []),
        ))
        content = self.client.complete(ps.system, ps.user, temperature=ps.temperature)
        parsed = parse_outline(content)

        # suggestions must point at articles we actually offered
        known = {a.id for a in related_articles or []}
        for section in parsed.outline.sections:
            section.suggested_links = [lk for lk in section.suggested_links if lk.article_id in known]

        logger.info(
            "Outline for %r: %d sections, %d words planned",
            topic.title, len(parsed.outline.sections),
            sum(s.word_target for s in parsed.outline.sections),
        )
        return parsed
