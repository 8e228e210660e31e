# article_pipeline/writer_agent.py
"""
Writer pipeline: a small explicit state machine.

    WRITE_SECTION -> VALIDATE -> (WRITE_SECTION | COMPILE) -> POLISH
        -> CLEANUP -> GENERATE_ASSETS -> DONE

Sections are written strictly in outline order because every prompt carries
the previously accepted text. Each run owns its own ``PipelineRun``; nothing
is shared between runs.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence

from .images import ImageGenerator
from .llm import CompletionClient
from .models import (
    AllowedInternalLink,
    GeneratedSection,
    Outline,
    PipelineEvent,
    PipelineRun,
    PipelineState,
    SourceRef,
    WriterResult,
)
from .prompt_factory import make_cover_prompt, make_polish_prompt
from .section_writer import SectionWriter
from .source_links import ensure_external_source_links
from .text_utils import count_words, reading_time, strip_em_dash
from .validators import (
    SectionValidator,
    ValidationState,
    compliance_check,
    verify_internal_links,
)

logger = logging.getLogger(__name__)

POLISH_GROWTH_TOLERANCE = 0.10

EventCallback = Callable[[PipelineEvent], None]


class PipelineCancelled(RuntimeError):
    """Raised at a state boundary when the caller set the cancel event."""


def compile_article(title: str, hook: str, sections: Sequence[str], summary: str, call_to_action: str) -> str:
    return (
        f"# {title}\n\n{hook}\n\n" + "\n\n".join(sections)
        + f"\n\n## Conclusion\n\n{summary}\n\n{call_to_action}"
    )


class WriterPipeline:
    """
    Drives the section writer and validator across an outline, then compiles,
    polishes and cleans the document.

    The completion client and image generator are injected so tests can swap
    in doubles. ``image_generator=None`` skips cover generation.
    """

    def __init__(
        self,
        client: CompletionClient,
        image_generator: Optional[ImageGenerator] = None,
        validator: Optional[SectionValidator] = None,
        writer: Optional[SectionWriter] = None,
    ):
        self.client = client
        self.image_generator = image_generator
        self.validator = validator or SectionValidator()
        self.writer = writer or SectionWriter(client)

    def run(
        self,
        outline: Outline,
        *,
        sources: Sequence[SourceRef] = (),
        allowed_links: Sequence[AllowedInternalLink] = (),
        custom_instructions: Optional[str] = None,
        article_type: str = "blog",
        tone: str = "professional",
        cancel_event: Optional[threading.Event] = None,
        on_event: Optional[EventCallback] = None,
    ) -> WriterResult:
        ctx = _RunContext(
            outline=outline,
            sources=list(sources),
            allowed_links=list(allowed_links),
            custom_instructions=custom_instructions,
            article_type=article_type,
            tone=tone,
            cancel_event=cancel_event,
            on_event=on_event,
        )
        run = PipelineRun(state=PipelineState.WRITE_SECTION if outline.sections else PipelineState.COMPILE)

        handlers: Dict[PipelineState, Callable[[PipelineRun, "_RunContext"], PipelineState]] = {
            PipelineState.WRITE_SECTION: self._write_section,
            PipelineState.VALIDATE: self._validate,
            PipelineState.COMPILE: self._compile,
            PipelineState.POLISH: self._polish,
            PipelineState.CLEANUP: self._cleanup,
            PipelineState.GENERATE_ASSETS: self._generate_assets,
        }
        while run.state is not PipelineState.DONE:
            run.state = handlers[run.state](run, ctx)

        words = count_words(run.full_document)
        ctx.emit(run, "complete", "Article complete", progress=100)
        return WriterResult(
            full_document=run.full_document,
            cover_image=run.cover_image,
            sections=run.sections,
            warnings=run.warnings,
            completion_calls=run.completion_calls,
            word_count=words,
            reading_time=reading_time(words),
        )

    # ---------- states ----------

    def _write_section(self, run: PipelineRun, ctx: "_RunContext") -> PipelineState:
        idx = run.current_section_index
        section = ctx.outline.sections[idx]
        ctx.emit(
            run, "progress",
            f"Writing: {section.heading}" + (f" (retry {run.retry_count}/{self.validator.max_retries})" if run.retry_count else ""),
            section_index=idx,
        )
        ctx.check_cancelled()

        run.completion_calls += 1
        text = self.writer.write(
            section,
            index=idx,
            total=len(ctx.outline.sections),
            title=ctx.outline.title,
            previous_sections=run.accepted_sections[-2:],
            allowed_links=ctx.allowed_links,
            sources=ctx.sources,
            custom_instructions=ctx.custom_instructions,
            article_type=ctx.article_type,
            tone=ctx.tone,
        )
        run.pending = GeneratedSection(index=idx, text=text, word_count=count_words(text), attempt=run.retry_count)
        return PipelineState.VALIDATE

    def _validate(self, run: PipelineRun, ctx: "_RunContext") -> PipelineState:
        pending = run.pending
        section = ctx.outline.sections[pending.index]
        outcome = self.validator.evaluate(pending.text, section.word_target, run.retry_count)
        logger.info(
            "Section %d validation: %d words (target: %d, range: %d-%d) -> %s",
            pending.index + 1, outcome.word_count, section.word_target,
            outcome.min_words, outcome.max_words, outcome.state.value,
        )

        if outcome.state is ValidationState.RETRY:
            run.retry_count += 1
            run.pending = None  # discarded, never fed back as context
            logger.warning(
                "Section %d FAILED validation. Retry %d/%d",
                pending.index + 1, run.retry_count, self.validator.max_retries,
            )
            ctx.emit(run, "retry", f"Rewriting section {pending.index + 1} ({outcome.word_count} words)", section_index=pending.index)
            return PipelineState.WRITE_SECTION

        if outcome.state is ValidationState.ACCEPTED_WITH_WARNING:
            pending.warning = True
            msg = (
                f"Section {pending.index + 1} ({section.heading}) accepted after {self.validator.max_retries} retries "
                f"with {outcome.word_count} words (range {outcome.min_words}-{outcome.max_words})"
            )
            logger.warning(msg)
            run.warnings.append(msg)
            ctx.emit(run, "warning", msg, section_index=pending.index)

        run.accepted_sections.append(pending.text)
        run.sections.append(pending)
        run.pending = None
        run.retry_count = 0
        run.current_section_index += 1
        ctx.emit(run, "section_accepted", f"Finished: {section.heading}", section_index=pending.index)

        if run.current_section_index < len(ctx.outline.sections):
            return PipelineState.WRITE_SECTION
        return PipelineState.COMPILE

    def _compile(self, run: PipelineRun, ctx: "_RunContext") -> PipelineState:
        o = ctx.outline
        run.full_document = compile_article(
            o.title, o.hook, run.accepted_sections, o.conclusion.summary, o.conclusion.call_to_action,
        )
        return PipelineState.POLISH

    def _polish(self, run: PipelineRun, ctx: "_RunContext") -> PipelineState:
        ctx.emit(run, "progress", "Polishing article")
        ctx.check_cancelled()

        ps = make_polish_prompt(run.full_document)
        run.completion_calls += 1
        polished = self.client.complete(ps.system, ps.user, temperature=ps.temperature)
        if not polished.strip():
            msg = "Polish pass returned no text; keeping the compiled article"
            logger.warning(msg)
            run.warnings.append(msg)
            return PipelineState.CLEANUP

        before, after = count_words(run.full_document), count_words(polished)
        if before and after > before * (1 + POLISH_GROWTH_TOLERANCE):
            # not enforced, only reported
            logger.warning("Polish pass grew the article from %d to %d words", before, after)
        run.full_document = polished
        return PipelineState.CLEANUP

    def _cleanup(self, run: PipelineRun, ctx: "_RunContext") -> PipelineState:
        doc = ensure_external_source_links(run.full_document, ctx.sources)
        run.full_document = strip_em_dash(doc)

        for issue in verify_internal_links(run.full_document, ctx.allowed_links) + compliance_check(run.full_document):
            logger.warning("Cleanup check: %s", issue)
            run.warnings.append(issue)
        return PipelineState.GENERATE_ASSETS

    def _generate_assets(self, run: PipelineRun, ctx: "_RunContext") -> PipelineState:
        if self.image_generator is None:
            return PipelineState.DONE

        ctx.emit(run, "progress", "Generating cover image")
        ctx.check_cancelled()
        try:
            ps = make_cover_prompt(ctx.outline.title, ctx.outline.conclusion.summary)
            run.completion_calls += 1
            prompt = self.client.complete(ps.system, ps.user, temperature=ps.temperature)
            result = self.image_generator.generate(prompt)
            if result.success and result.image_base64:
                run.cover_image = f"data:image/png;base64,{result.image_base64}"
            else:
                logger.warning("Cover image not generated: %s", result.error)
        except Exception:
            logger.exception("Failed to generate cover image")
        return PipelineState.DONE


class _RunContext:
    """Per-run inputs and callbacks; read-only once the run starts."""

    def __init__(
        self,
        outline: Outline,
        sources: List[SourceRef],
        allowed_links: List[AllowedInternalLink],
        custom_instructions: Optional[str],
        article_type: str,
        tone: str,
        cancel_event: Optional[threading.Event],
        on_event: Optional[EventCallback],
    ):
        self.outline = outline
        self.sources = sources
        self.allowed_links = allowed_links
        self.custom_instructions = custom_instructions
        self.article_type = article_type
        self.tone = tone
        self.cancel_event = cancel_event
        self.on_event = on_event

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PipelineCancelled("Writer run cancelled")

    def emit(self, run: PipelineRun, kind: str, message: str, section_index: Optional[int] = None, progress: Optional[int] = None) -> None:
        if self.on_event is None:
            return
        if progress is None:
            # sections take the first 80%, post-processing the rest
            total = max(len(self.outline.sections), 1)
            progress = min(80, round(run.current_section_index / total * 80))
            if run.state in (PipelineState.POLISH, PipelineState.CLEANUP):
                progress = 85
            elif run.state is PipelineState.GENERATE_ASSETS:
                progress = 95
        self.on_event(PipelineEvent(
            kind=kind,
            message=message,
            state=run.state,
            section_index=section_index,
            progress=progress,
        ))
