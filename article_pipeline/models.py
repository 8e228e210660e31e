# article_pipeline/models.py
from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class _CamelModel(BaseModel):
    # Outline JSON comes from the LLM / database with camelCase keys
    model_config = ConfigDict(populate_by_name=True)


class SuggestedLink(_CamelModel):
    article_id: str = Field(alias="articleId")
    anchor_text: str = Field(alias="anchorText")


class OutlineSection(_CamelModel):
    heading: str
    key_points: List[str] = Field(default_factory=list, alias="keyPoints")
    word_target: int = Field(alias="wordTarget", gt=0)
    suggested_links: List[SuggestedLink] = Field(default_factory=list, alias="suggestedLinks")


class Conclusion(_CamelModel):
    summary: str = ""
    call_to_action: str = Field("", alias="callToAction")


class Outline(_CamelModel):
    title: str
    hook: str = ""
    sections: List[OutlineSection] = Field(default_factory=list)
    conclusion: Conclusion = Field(default_factory=Conclusion)
    seo_keywords: List[str] = Field(default_factory=list, alias="seoKeywords")


class ParsedOutline(BaseModel):
    outline: Outline
    degraded: bool = False  # True when the heuristic fallback produced it


class TopicCandidate(BaseModel):
    title: str
    summary: str = ""
    angle: str = ""
    sources: List["SourceRef"] = Field(default_factory=list)
    relevance_score: float = 0.0


class SourceRef(BaseModel):
    url: str
    title: Optional[str] = None
    snippet: Optional[str] = None


class CandidateArticle(BaseModel):
    id: str
    title: str
    slug: str = ""
    excerpt: str = ""


class AllowedInternalLink(BaseModel):
    anchor_text: str
    url: str
    title: str


class InternalLinkRecord(BaseModel):
    target_id: str
    anchor_text: str
    context: str


class Paragraphing(BaseModel):
    count: int
    words_per_paragraph: int


class PromptSect(BaseModel):
    system: str
    user: str
    rules: List[str] = Field(default_factory=list)
    temperature: float = 0.3


class GeneratedSection(BaseModel):
    index: int
    text: str
    word_count: int
    attempt: int = 0
    warning: bool = False


class PipelineState(str, Enum):
    WRITE_SECTION = "write_section"
    VALIDATE = "validate"
    COMPILE = "compile"
    POLISH = "polish"
    CLEANUP = "cleanup"
    GENERATE_ASSETS = "generate_assets"
    DONE = "done"


class PipelineRun(BaseModel):
    """Mutable state of a single writer run. Never shared between runs."""
    state: PipelineState = PipelineState.WRITE_SECTION
    current_section_index: int = 0
    accepted_sections: List[str] = Field(default_factory=list)
    retry_count: int = 0
    pending: Optional[GeneratedSection] = None
    sections: List[GeneratedSection] = Field(default_factory=list)
    full_document: str = ""
    cover_image: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    completion_calls: int = 0


class PipelineEvent(BaseModel):
    kind: str  # "progress" | "section_accepted" | "retry" | "warning" | "complete"
    message: str
    state: PipelineState
    section_index: Optional[int] = None
    progress: int = 0  # 0-100


class WriterResult(BaseModel):
    full_document: str
    cover_image: Optional[str] = None
    sections: List[GeneratedSection] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    completion_calls: int = 0
    word_count: int = 0
    reading_time: int = 0


class ImageResult(BaseModel):
    success: bool
    image_base64: Optional[str] = None
    error: Optional[str] = None


class EditResult(BaseModel):
    content: str
    word_count: int
    reading_time: int


class ArticleRecord(BaseModel):
    title: str
    slug: str
    content: str
    content_html: str
    excerpt: str
    word_count: int
    reading_time: int
    seo_keywords: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = None
    links: List[InternalLinkRecord] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


TopicCandidate.model_rebuild()
