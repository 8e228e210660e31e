# article_pipeline/section_writer.py
from typing import List, Optional, Sequence

from .llm import CompletionClient
from .models import AllowedInternalLink, OutlineSection, SourceRef
from .prompt_factory import SectionPromptParams, make_section_prompt


class SectionWriter:
    """Asks the completion client for one section. No validation happens here."""

    def __init__(self, client: CompletionClient):
        self.client = client

    def write(
        self,
        section: OutlineSection,
        *,
        index: int = 0,
        total: int = 1,
        title: str = "",
        previous_sections: Sequence[str] = (),
        allowed_links: Sequence[AllowedInternalLink] = (),
        sources: Sequence[SourceRef] = (),
        custom_instructions: Optional[str] = None,
        article_type: str = "blog",
        tone: str = "professional",
    ) -> str:
        ps = make_section_prompt(SectionPromptParams(
            section=section,
            section_index=index,
            total_sections=total,
            article_title=title,
            article_type=article_type,
            tone=tone,
            previous_sections=list(previous_sections)[-2:],
            allowed_links=list(allowed_links),
            sources=list(sources),
            custom_instructions=custom_instructions,
        ))
        return self.client.complete(ps.system, ps.user, temperature=ps.temperature).strip()
