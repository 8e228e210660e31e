import json
import unittest

from article_pipeline.outline_parser import (
    OutlineParseError,
    extract_topics_manually,
    parse_json_payload,
    parse_outline,
    parse_topics,
    strip_code_fences,
)


OUTLINE_JSON = {
    "title": "Testing in Python",
    "hook": "Bugs are expensive.",
    "sections": [
        {
            "heading": "Why test",
            "keyPoints": ["cost", "confidence"],
            "wordTarget": 150,
            "suggestedLinks": [
                {"articleId": "a1", "anchorText": "unit tests"},
                {"articleId": "a2"},
                "junk",
            ],
        },
        {"heading": "Tools"},
    ],
    "conclusion": {"summary": "Test early.", "callToAction": "Write one today."},
    "seoKeywords": ["python testing"],
}


class FenceTests(unittest.TestCase):
    def test_strip_code_fences(self) -> None:
        self.assertEqual(strip_code_fences('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fences("```\n[1]\n```"), "[1]")
        self.assertEqual(strip_code_fences('{"a": 1}'), '{"a": 1}')

    def test_payload_inside_chatter(self) -> None:
        self.assertEqual(parse_json_payload('Sure! Here it is: {"a": 1} Enjoy.'), {"a": 1})
        self.assertEqual(parse_json_payload("Topics: [1, 2]"), [1, 2])
        self.assertIsNone(parse_json_payload("no json at all"))


class ParseOutlineTests(unittest.TestCase):
    def test_fenced_json(self) -> None:
        parsed = parse_outline("```json\n" + json.dumps(OUTLINE_JSON) + "\n```")
        self.assertFalse(parsed.degraded)
        outline = parsed.outline
        self.assertEqual(outline.title, "Testing in Python")
        self.assertEqual([s.word_target for s in outline.sections], [150, 200])
        self.assertEqual(outline.sections[0].key_points, ["cost", "confidence"])
        self.assertEqual([lk.article_id for lk in outline.sections[0].suggested_links], ["a1"])
        self.assertEqual(outline.sections[1].suggested_links, [])
        self.assertEqual(outline.conclusion.call_to_action, "Write one today.")
        self.assertEqual(outline.seo_keywords, ["python testing"])

    def test_non_positive_target_falls_back_to_default(self) -> None:
        data = {"title": "T", "sections": [{"heading": "A", "wordTarget": 0}, {"heading": "B", "wordTarget": "abc"}]}
        parsed = parse_outline(json.dumps(data))
        self.assertEqual([s.word_target for s in parsed.outline.sections], [200, 200])

    def test_string_conclusion(self) -> None:
        data = {"title": "T", "sections": [{"heading": "A", "wordTarget": 100}], "conclusion": "All done."}
        self.assertEqual(parse_outline(json.dumps(data)).outline.conclusion.summary, "All done.")

    def test_markdown_fallback_is_degraded(self) -> None:
        md = "# My Title\n\nAn opening line.\n\n## One\n- first point\n- second point\n\n## Two\n"
        parsed = parse_outline(md)
        self.assertTrue(parsed.degraded)
        self.assertEqual(parsed.outline.title, "My Title")
        self.assertEqual(parsed.outline.hook, "An opening line.")
        self.assertEqual([s.heading for s in parsed.outline.sections], ["One", "Two"])
        self.assertEqual(parsed.outline.sections[0].key_points, ["first point", "second point"])

    def test_unusable_response_raises(self) -> None:
        with self.assertRaises(OutlineParseError):
            parse_outline("I'm sorry, I can't help with that.")


class ParseTopicsTests(unittest.TestCase):
    def test_json_array(self) -> None:
        topics = parse_topics('[{"title": "A", "summary": "s", "relevanceScore": 0.8}, {"summary": "no title"}]')
        self.assertEqual([t.title for t in topics], ["A"])
        self.assertAlmostEqual(topics[0].relevance_score, 0.8)

    def test_wrapped_object(self) -> None:
        topics = parse_topics('```json\n{"topics": [{"title": "B", "angle": "contrarian"}]}\n```')
        self.assertEqual(topics[0].angle, "contrarian")

    def test_list_fallback(self) -> None:
        content = "Here are some ideas:\n1. **Faster CI**: cut build times\n2) Flaky tests\n- Mocking pitfalls"
        topics = parse_topics(content)
        self.assertEqual([t.title for t in topics], ["Faster CI", "Flaky tests", "Mocking pitfalls"])
        self.assertEqual(topics[0].summary, "cut build times")
        self.assertEqual(extract_topics_manually(""), [])


if __name__ == "__main__":
    unittest.main()
