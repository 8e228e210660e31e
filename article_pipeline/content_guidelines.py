# article_pipeline/content_guidelines.py
"""
House style for generated articles.
Defines tone, linking rules and formatting constraints shared by every prompt.
"""
import re

GUIDELINES = {
    "article_types": {
        "blog": "Conversational, engaging, personal insights",
        "technical": "In-depth, code examples, precise terminology",
        "news": "Factual, timely, objective reporting",
        "opinion": "Persuasive, well-argued, clear stance",
        "tutorial": "Step-by-step, actionable, beginner-friendly",
        "listicle": "Scannable numbered items, one idea per item",
        "affiliate": "Honest product comparison, clear pros and cons",
    },
    "target_lengths": {
        "short": "~500 words (3-4 sections)",
        "medium": "~1000 words (5-6 sections)",
        "long": "~2000+ words (7-10 sections)",
    },
    "ai_tells": [
        "it's important to note",
        "it's worth mentioning",
        "in today's fast-paced world",
        "delve into",
        "furthermore,",
        "moreover,",
    ],
}


def describe_article_type(article_type: str) -> str:
    return GUIDELINES["article_types"].get(article_type, article_type or "blog")


def describe_target_length(target_length: str) -> str:
    return GUIDELINES["target_lengths"].get(target_length, GUIDELINES["target_lengths"]["medium"])


def get_style_instructions() -> str:
    """Return consolidated style instructions for prompts."""
    return """STYLE GUIDE:

CONTENT:
- Follow the outline structure; don't deviate from the key points
- Transition smoothly from the previous sections
- Use concrete examples and data points
- Every sentence must add value; no filler
- Incorporate sources naturally with attribution

FORMATTING:
- Never use em dashes. Use commas, periods, parentheses, or colons instead
- Comparisons/data: markdown tables (| Header | Header |)
- Code/commands: fenced code blocks with a language tag
- All links in markdown format: [link text](URL)
- No links inside headings

LINKING:
- Internal links: ONLY the exact URLs from the Allowed Internal Links list
- External links: at least 2, using URLs from the Sources list
- Never invent URLs or slugs
- If no internal links are allowed, do not create any"""


def get_polish_rules() -> str:
    return (
        "ALLOWED CHANGES:\n"
        "- Fix grammar, spelling, and punctuation errors\n"
        "- Improve sentence flow and transitions\n"
        "- Replace em dashes with commas, periods, or colons\n"
        "- Ensure consistency in tone and style\n"
        "- Fix awkward phrasing\n\n"
        "FORBIDDEN CHANGES:\n"
        "- DO NOT add new sentences or paragraphs\n"
        "- DO NOT expand on existing content\n"
        "- DO NOT add new examples or data points\n"
        "- DO NOT introduce new em dashes\n"
        "- DO NOT increase the word count"
    )


def get_prohibited_patterns() -> list[str]:
    """Regex patterns for formatting/AI-tell checks."""
    return [r"—", r"&mdash;", r"&#8212;"] + [
        r"\b" + re.escape(phrase) for phrase in GUIDELINES["ai_tells"]
    ]


def get_temperature_by_stage(stage: str) -> float:
    """Return appropriate temperature for different pipeline stages."""
    temps = {
        "section": 0.7,      # creative writing
        "polish": 0.3,       # edit, don't invent
        "editor": 0.3,
        "outline": 0.4,
        "cover_prompt": 0.7,
        "topics": 0.5,
    }
    return temps.get(stage, 0.5)
