import unittest

from article_pipeline.models import (
    AllowedInternalLink,
    CandidateArticle,
    OutlineSection,
    SourceRef,
    TopicCandidate,
)
from article_pipeline.prompt_factory import (
    OutlinePromptParams,
    SectionPromptParams,
    make_cover_prompt,
    make_editor_prompt,
    make_outline_prompt,
    make_polish_prompt,
    make_section_prompt,
    make_topics_prompt,
    make_verify_prompt,
)


def section(target=100):
    return OutlineSection(heading="Choosing a Runner", key_points=["speed", "plugins"], word_target=target)


class SectionPromptTests(unittest.TestCase):
    def test_word_budget_matches_validator_band(self) -> None:
        ps = make_section_prompt(SectionPromptParams(section=section(100), article_title="Testing"))
        self.assertIn("TARGET WORD COUNT: 100 words", ps.user)
        self.assertIn("VALID RANGE: 90-110 words", ps.user)
        self.assertIn("## Choosing a Runner", ps.user)
        self.assertIn("speed, plugins", ps.user)
        self.assertTrue(ps.system.startswith("You are an expert content writer"))
        self.assertEqual(ps.temperature, 0.7)

    def test_first_section_has_no_previous_context(self) -> None:
        ps = make_section_prompt(SectionPromptParams(section=section()))
        self.assertIn("[First section - no previous context]", ps.user)
        self.assertIn("No internal links are available", ps.user)
        self.assertIn("No sources provided", ps.user)

    def test_only_last_two_sections_are_context(self) -> None:
        ps = make_section_prompt(SectionPromptParams(
            section=section(),
            previous_sections=["PREV-ONE", "PREV-TWO", "PREV-THREE"],
        ))
        self.assertNotIn("PREV-ONE", ps.user)
        self.assertIn("PREV-TWO", ps.user)
        self.assertIn("PREV-THREE", ps.user)

    def test_links_sources_and_custom_instructions(self) -> None:
        ps = make_section_prompt(SectionPromptParams(
            section=section(),
            allowed_links=[AllowedInternalLink(anchor_text="pytest guide", url="/blog/pytest", title="Pytest")],
            sources=[SourceRef(url="https://docs.pytest.org", title="pytest docs")],
            custom_instructions="Mention fixtures.",
        ))
        self.assertIn('Anchor: "pytest guide" -> URL: /blog/pytest', ps.user)
        self.assertIn("URL: https://docs.pytest.org", ps.user)
        self.assertIn("Custom Instructions (MUST follow):\nMention fixtures.", ps.user)


class OtherPromptTests(unittest.TestCase):
    def test_polish_sends_document_verbatim(self) -> None:
        ps = make_polish_prompt("# Doc\n\nBody")
        self.assertEqual(ps.user, "# Doc\n\nBody")
        self.assertIn("DO NOT increase the word count", ps.system)
        self.assertEqual(ps.temperature, 0.3)

    def test_cover_prompt(self) -> None:
        ps = make_cover_prompt("Title", "Summary")
        self.assertTrue(ps.system.startswith("You are an AI art director"))
        self.assertEqual(ps.user, "Title: Title\n\nSummary: Summary")

    def test_outline_prompt_lists_related_ids(self) -> None:
        ps = make_outline_prompt(OutlinePromptParams(
            topic=TopicCandidate(title="Flaky tests", summary="Why they happen"),
            target_length="short",
            related_articles=[CandidateArticle(id="a1", title="Retry logic", slug="retry-logic")],
        ))
        self.assertIn("- Retry logic (id: a1, slug: retry-logic)", ps.system)
        self.assertIn("~500 words", ps.system)
        self.assertIn('"wordTarget": 200', ps.user)
        self.assertIn("Topic: Flaky tests", ps.user)

    def test_topics_prompt_lists_existing(self) -> None:
        ps = make_topics_prompt("software", ["ci"], [], ["Old article"])
        self.assertIn("- Old article", ps.user)
        self.assertIn("Keywords: ci", ps.user)

    def test_editor_and_verify_prompts(self) -> None:
        ed = make_editor_prompt("Body", "news", "neutral")
        self.assertIn("Article Type: news", ed.system)
        self.assertTrue(ed.user.endswith("Article to edit:\nBody"))
        self.assertTrue(make_verify_prompt("Body").user.endswith("\nBody"))


if __name__ == "__main__":
    unittest.main()
