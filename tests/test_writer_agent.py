import re
import threading
import unittest

from article_pipeline.models import (
    Conclusion,
    ImageResult,
    Outline,
    OutlineSection,
    PipelineState,
    SourceRef,
)
from article_pipeline.writer_agent import PipelineCancelled, WriterPipeline, compile_article


class ScriptedClient:
    """Answers section prompts with N words; N comes from ``lengths`` or the prompt's target."""

    def __init__(self, lengths=None, polish=None, cover="A bright editorial cover"):
        self.lengths = list(lengths or [])
        self.polish = polish
        self.cover = cover
        self.calls = []

    def complete(self, system, user, temperature=0.3):
        self.calls.append((system, user))
        if system.startswith("You are an expert content writer"):
            target = int(re.search(r"TARGET WORD COUNT: (\d+) words", user).group(1))
            n = self.lengths.pop(0) if self.lengths else target
            return " ".join(["word"] * n)
        if system.startswith("You are a copy editor"):
            return user if self.polish is None else self.polish
        if system.startswith("You are an AI art director"):
            return self.cover
        raise AssertionError(f"unexpected prompt: {system[:40]}")

    def section_calls(self):
        return [u for s, u in self.calls if s.startswith("You are an expert content writer")]


class FakeImages:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.result


def make_outline(*targets):
    return Outline(
        title="Testing Pipelines",
        hook="Why tests matter.",
        sections=[OutlineSection(heading=f"Part {i + 1}", word_target=t) for i, t in enumerate(targets)],
        conclusion=Conclusion(summary="Wrap up.", call_to_action="Try it."),
    )


class CompileTests(unittest.TestCase):
    def test_compile_template(self) -> None:
        doc = compile_article("T", "Hook", ["S1", "S2"], "Sum", "CTA")
        self.assertEqual(doc, "# T\n\nHook\n\nS1\n\nS2\n\n## Conclusion\n\nSum\n\nCTA")


class WriterPipelineTests(unittest.TestCase):
    def test_exact_targets_accept_every_section_first_try(self) -> None:
        client = ScriptedClient()
        result = WriterPipeline(client).run(make_outline(100, 200, 150))

        self.assertEqual([s.word_count for s in result.sections], [100, 200, 150])
        self.assertTrue(all(s.attempt == 0 and not s.warning for s in result.sections))
        self.assertEqual(result.completion_calls, 4)  # 3 sections + polish
        self.assertEqual(len(client.calls), 4)
        self.assertEqual(result.warnings, [])
        self.assertTrue(result.full_document.startswith("# Testing Pipelines\n\nWhy tests matter.\n\n"))
        self.assertTrue(result.full_document.endswith("## Conclusion\n\nWrap up.\n\nTry it."))

    def test_sections_are_compiled_in_outline_order(self) -> None:
        client = ScriptedClient(lengths=[100, 200])
        result = WriterPipeline(client).run(make_outline(100, 200))
        self.assertEqual([s.index for s in result.sections], [0, 1])
        first = result.full_document.index("word")
        self.assertLess(first, result.full_document.index("## Conclusion"))

    def test_persistent_overrun_is_accepted_with_warning_after_two_retries(self) -> None:
        client = ScriptedClient(lengths=[150, 150, 150])
        result = WriterPipeline(client).run(make_outline(100))

        self.assertEqual(len(client.section_calls()), 3)
        section = result.sections[0]
        self.assertEqual(section.attempt, 2)
        self.assertTrue(section.warning)
        self.assertEqual(section.word_count, 150)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("accepted after 2 retries", result.warnings[0])
        self.assertEqual(result.completion_calls, 4)

    def test_retry_counter_resets_for_next_section(self) -> None:
        client = ScriptedClient(lengths=[150, 150, 150, 100])
        result = WriterPipeline(client).run(make_outline(100, 100))

        self.assertEqual(len(client.section_calls()), 4)
        self.assertEqual(result.sections[1].attempt, 0)
        self.assertFalse(result.sections[1].warning)

    def test_rejected_draft_is_not_used_as_context(self) -> None:
        client = ScriptedClient(lengths=[40, 100])
        result = WriterPipeline(client).run(make_outline(100))

        retry_prompt = client.section_calls()[1]
        self.assertIn("[First section - no previous context]", retry_prompt)
        self.assertEqual(result.sections[0].attempt, 1)
        self.assertEqual(result.sections[0].word_count, 100)

    def test_previous_section_is_passed_as_context(self) -> None:
        client = ScriptedClient(lengths=[90, 100])
        WriterPipeline(client).run(make_outline(90, 100))
        self.assertIn(" ".join(["word"] * 90), client.section_calls()[1])

    def test_em_dashes_never_survive_cleanup(self) -> None:
        client = ScriptedClient(polish="# T\n\nFast — and &mdash; cheap&#8212;really.")
        result = WriterPipeline(client).run(make_outline(100))

        self.assertNotIn("—", result.full_document)
        self.assertNotIn("&mdash;", result.full_document)
        self.assertNotIn("&#8212;", result.full_document)
        self.assertIn("Fast, and, cheap, really.", result.full_document)

    def test_blank_polish_keeps_compiled_document(self) -> None:
        client = ScriptedClient(polish="   ")
        result = WriterPipeline(client).run(make_outline(100))
        self.assertTrue(result.full_document.startswith("# Testing Pipelines"))
        self.assertTrue(any("Polish" in w for w in result.warnings))

    def test_sources_are_appended_when_missing(self) -> None:
        sources = [
            SourceRef(url="https://a.example.com/one", title="One"),
            SourceRef(url="https://b.example.com/two", title="Two"),
        ]
        result = WriterPipeline(ScriptedClient()).run(make_outline(100), sources=sources)
        self.assertIn("## Sources", result.full_document)
        self.assertIn("[One](https://a.example.com/one)", result.full_document)
        self.assertIn("[Two](https://b.example.com/two)", result.full_document)

    def test_cover_image_is_data_uri(self) -> None:
        images = FakeImages(result=ImageResult(success=True, image_base64="QUJD"))
        client = ScriptedClient()
        result = WriterPipeline(client, image_generator=images).run(make_outline(100))

        self.assertEqual(result.cover_image, "data:image/png;base64,QUJD")
        self.assertEqual(images.prompts, ["A bright editorial cover"])
        self.assertEqual(result.completion_calls, 3)

    def test_cover_failure_is_not_fatal(self) -> None:
        for images in (
            FakeImages(result=ImageResult(success=False, error="quota")),
            FakeImages(error=RuntimeError("boom")),
        ):
            result = WriterPipeline(ScriptedClient(), image_generator=images).run(make_outline(100))
            self.assertIsNone(result.cover_image)
            self.assertTrue(result.full_document)

    def test_cancel_before_start_makes_no_calls(self) -> None:
        client = ScriptedClient()
        cancel = threading.Event()
        cancel.set()
        with self.assertRaises(PipelineCancelled):
            WriterPipeline(client).run(make_outline(100), cancel_event=cancel)
        self.assertEqual(client.calls, [])

    def test_cancel_between_sections(self) -> None:
        client = ScriptedClient()
        cancel = threading.Event()

        def on_event(ev):
            if ev.kind == "section_accepted":
                cancel.set()

        with self.assertRaises(PipelineCancelled):
            WriterPipeline(client).run(make_outline(100, 100), cancel_event=cancel, on_event=on_event)
        self.assertEqual(len(client.calls), 1)

    def test_events_report_progress_and_completion(self) -> None:
        events = []
        WriterPipeline(ScriptedClient(lengths=[150, 100])).run(make_outline(100), on_event=events.append)

        kinds = [e.kind for e in events]
        self.assertIn("retry", kinds)
        self.assertIn("section_accepted", kinds)
        self.assertEqual(events[-1].kind, "complete")
        self.assertEqual(events[-1].progress, 100)
        self.assertEqual(events[-1].state, PipelineState.DONE)

    def test_empty_outline_still_compiles(self) -> None:
        client = ScriptedClient()
        result = WriterPipeline(client).run(make_outline())
        self.assertEqual(result.sections, [])
        self.assertIn("## Conclusion", result.full_document)
        self.assertEqual(result.completion_calls, 1)

    def test_reading_time_matches_word_count(self) -> None:
        result = WriterPipeline(ScriptedClient()).run(make_outline(300, 300))
        self.assertGreater(result.word_count, 600)
        self.assertEqual(result.reading_time, 4)


if __name__ == "__main__":
    unittest.main()
