# article_pipeline/prompt_factory.py
from __future__ import annotations
import json
from typing import Iterable, List, Optional
from pydantic import BaseModel, Field
from .models import (
    AllowedInternalLink,
    CandidateArticle,
    OutlineSection,
    PromptSect,
    SourceRef,
    TopicCandidate,
)
from .content_guidelines import (
    describe_article_type,
    describe_target_length,
    get_polish_rules,
    get_style_instructions,
    get_temperature_by_stage,
)
from .text_utils import recommended_paragraphing
from .validators import word_band

# ---------- parameter objects ----------

class SectionPromptParams(BaseModel):
    section: OutlineSection
    section_index: int = 0
    total_sections: int = 1
    article_title: str = ""
    article_type: str = "blog"
    tone: str = "professional"
    previous_sections: List[str] = Field(default_factory=list)
    allowed_links: List[AllowedInternalLink] = Field(default_factory=list)
    sources: List[SourceRef] = Field(default_factory=list)
    custom_instructions: Optional[str] = None


class OutlinePromptParams(BaseModel):
    topic: TopicCandidate
    article_type: str = "blog"
    target_length: str = "medium"
    tone: str = "professional"
    related_articles: List[CandidateArticle] = Field(default_factory=list)


# ---------- helpers ----------

def _links_md(links: Iterable[AllowedInternalLink]) -> str:
    """Render the internal-link allow-list as numbered lines."""
    lines = [
        f'{i}. Anchor: "{lk.anchor_text}" -> URL: {lk.url} (Article: {lk.title})'
        for i, lk in enumerate(links or [], 1)
    ]
    if not lines:
        return "No internal links are available. Do not create any internal links in this section."
    return "Allowed Internal Links (ONLY use these - do not invent any):\n" + "\n".join(lines)


def _sources_md(sources: Iterable[SourceRef]) -> str:
    lines = [f"{i}. {s.title or s.url}\n   URL: {s.url}" for i, s in enumerate(sources or [], 1)]
    if not lines:
        return "WARNING: No sources provided. You must still write the section, but cannot add external links."
    return "Available Sources (MUST use these URLs for external links - at least 2 required):\n" + "\n".join(lines)


def _custom_md(custom_instructions: Optional[str]) -> str:
    text = (custom_instructions or "").strip()
    return f"Custom Instructions (MUST follow):\n{text}" if text else ""


# ---------- main factories ----------

def make_section_prompt(params: SectionPromptParams) -> PromptSect:
    """
    Build the prompt for one outline section.

    The word band quoted to the model is the same one the validator enforces.
    """
    section = params.section
    min_words, max_words = word_band(section.word_target)
    plan = recommended_paragraphing(section.word_target)
    previous_context = "\n\n".join(params.previous_sections[-2:])
    key_points = ", ".join(section.key_points) or "(none)"

    sys = (
        "You are an expert content writer specializing in precision and conciseness.\n\n"
        "PRIMARY DIRECTIVE: WORD COUNT COMPLIANCE.\n"
        "A section outside the valid range is REJECTED and rewritten from scratch.\n"
        "Count every word in markdown links' visible text. Headings count too. Do not pad with filler.\n\n"
        f"Article Type: {params.article_type} ({describe_article_type(params.article_type)})\n"
        f"Tone: {params.tone}\n\n"
        f"{get_style_instructions()}"
    )

    rules = [
        f"Word count MUST be within {min_words}-{max_words} words.",
        f"Start with the heading line: ## {section.heading}",
        "At least 2 external links from the Sources list.",
        "Only approved internal links (if any).",
        "Zero em dashes.",
        "Cover all key points.",
    ]

    user = f"""You're writing section {params.section_index + 1} of {params.total_sections} for "{params.article_title}".

TARGET WORD COUNT: {section.word_target} words
VALID RANGE: {min_words}-{max_words} words (+/-10%)
RECOMMENDED STRUCTURE: {plan.count} paragraphs x ~{plan.words_per_paragraph} words each

Heading: {section.heading}
Key Points to Cover: {key_points}

Previous Context (for transitions):
{previous_context or "[First section - no previous context]"}

{_links_md(params.allowed_links)}

{_sources_md(params.sources)}

{_custom_md(params.custom_instructions)}

CHECKLIST:
- """ + "\n- ".join(rules) + "\n\nWrite the section now. STOP when approaching the upper limit."

    return PromptSect(system=sys, user=user, rules=rules, temperature=get_temperature_by_stage("section"))


def make_polish_prompt(document: str) -> PromptSect:
    sys = (
        "You are a copy editor performing a final polish pass. Your job is to EDIT, not ADD.\n\n"
        f"{get_polish_rules()}\n\n"
        "If anything, REDUCE word count by tightening prose.\n"
        "Preserve all links exactly as written. Return only the polished article."
    )
    return PromptSect(system=sys, user=document, temperature=get_temperature_by_stage("polish"))


def make_cover_prompt(title: str, summary: str) -> PromptSect:
    sys = (
        "You are an AI art director. Create a compelling, high-quality image generation prompt "
        "for the cover image of this article. Output ONLY the English prompt, no other text."
    )
    user = f"Title: {title}\n\nSummary: {summary}"
    return PromptSect(system=sys, user=user, temperature=get_temperature_by_stage("cover_prompt"))


OUTLINE_JSON_SHAPE = {
    "title": "Article title",
    "hook": "Compelling opening hook",
    "sections": [
        {
            "heading": "Section heading",
            "keyPoints": ["point 1", "point 2"],
            "wordTarget": 200,
            "suggestedLinks": [{"articleId": "uuid", "anchorText": "link text"}],
        }
    ],
    "conclusion": {"summary": "Conclusion summary", "callToAction": "CTA text"},
    "seoKeywords": ["keyword1", "keyword2"],
}


def make_outline_prompt(params: OutlinePromptParams) -> PromptSect:
    """Build the outline-architect prompt; the model must answer with JSON only."""
    related = "\n".join(
        f"- {a.title} (id: {a.id}, slug: {a.slug})" for a in params.related_articles
    ) or "No related articles available"

    sys = f"""You are an expert content strategist and outline architect.
Your job is to create detailed, structured outlines that will guide the writing agent.

Article Type: {params.article_type} ({describe_article_type(params.article_type)})
Target Length: {params.target_length} ({describe_target_length(params.target_length)})
Tone: {params.tone}

Related Articles for Internal Linking:
{related}

For each section, suggest opportunities to link to related articles using natural anchor text.
Only use articleId values from the list above.

Create an outline that:
1. Opens with a compelling hook
2. Flows logically from section to section
3. Includes specific talking points (not vague)
4. Suggests internal links where relevant
5. Ends with a strong conclusion and CTA
6. Includes SEO keywords"""

    sources = [s.model_dump(exclude_none=True) for s in params.topic.sources[:10]]
    user = (
        f"Topic: {params.topic.title}\n\n"
        f"Summary: {params.topic.summary}\n\n"
        f"Sources: {json.dumps(sources, ensure_ascii=False)}\n\n"
        "Return ONLY a JSON object with this exact structure:\n"
        f"{json.dumps(OUTLINE_JSON_SHAPE, indent=2)}"
    )
    return PromptSect(system=sys, user=user, temperature=get_temperature_by_stage("outline"))


def make_topics_prompt(industry: str, keywords: List[str], sources: List[SourceRef], existing_topics: List[str]) -> PromptSect:
    sys = (
        "You are a content researcher. Propose fresh article topics for the given industry, "
        "grounded in the research sources provided. Return ONLY JSON."
    )
    src_md = "\n".join(f"- {s.title or s.url}: {s.snippet or ''}".rstrip(": ") for s in sources[:20]) or "(none)"
    existing = "\n".join(f"- {t}" for t in existing_topics) or "(none)"
    user = f"""Industry: {industry}
Keywords: {", ".join(keywords) or "(none)"}

Research sources:
{src_md}

Topics we already covered (do not repeat):
{existing}

Return a JSON object: {{"topics": [{{"title": "...", "summary": "...", "angle": "...", "relevanceScore": 0.0}}]}}"""
    return PromptSect(system=sys, user=user, temperature=get_temperature_by_stage("topics"))


def make_editor_prompt(content: str, article_type: Optional[str] = None, tone: Optional[str] = None) -> PromptSect:
    sys = f"""You are an expert magazine editor refining content for publication so it reads as genuinely human-written.

EDITING TASKS:
1. Remove ALL em dashes. Replace them with commas, parentheses, colons, or periods.
2. Fix AI-sounding patterns: robotic phrasing, repetitive sentence structures, generic transitions
   ("Furthermore", "Moreover"), filler like "it's important to note".
3. Remove duplicate sentences or paragraphs and consolidate repeated ideas.
4. Improve flow: smooth transitions, varied sentence length, logical progression.
5. Keep meaning and facts intact. Preserve ALL links and markdown formatting exactly.
6. Fix grammar and punctuation.

Do NOT rewrite the whole article. Only edit what needs improvement.

Article Type: {article_type or "blog"}
Tone: {tone or "professional"}"""
    user = (
        "Please review and edit this article. Preserve all links, formatting, and structure.\n\n"
        f"Article to edit:\n{content}"
    )
    return PromptSect(system=sys, user=user, temperature=get_temperature_by_stage("editor"))


def make_verify_prompt(content: str) -> PromptSect:
    sys = (
        "You are a quality assurance editor. Do a final check for: 1) Any remaining em dashes, "
        "2) AI-sounding phrases, 3) Duplicate content, 4) Flow issues. Make minimal, targeted fixes only. "
        "Preserve all links and formatting."
    )
    user = f"Final review pass - only fix remaining issues:\n{content}"
    return PromptSect(system=sys, user=user, temperature=get_temperature_by_stage("editor"))
