import unittest

from article_pipeline.text_utils import (
    count_words,
    generate_excerpt,
    generate_slug,
    markdown_to_html,
    reading_time,
    recommended_paragraphing,
    strip_em_dash,
)


class CountWordsTests(unittest.TestCase):
    def test_markdown_markers_and_links(self) -> None:
        # Title, This, is, bold, and, a, link
        self.assertEqual(count_words("# Title\n\nThis is **bold** and a [link](http://x.com)."), 7)
        # Title, This, is, bold, and, a, link
        self.assertEqual(count_words("# Title\n\nThis is **bold** and [a link](http://x.com)."), 7)

    def test_link_counts_only_its_label(self) -> None:
        self.assertEqual(count_words("[two words](https://example.com/a-very-long-url)"), 2)

    def test_code_fences_are_ignored(self) -> None:
        self.assertEqual(count_words("Before\n```python\nx = 1\nprint(x)\n```\nAfter"), 2)

    def test_empty_and_whitespace(self) -> None:
        self.assertEqual(count_words(""), 0)
        self.assertEqual(count_words("   \n\t "), 0)
        self.assertEqual(count_words(None), 0)


class ParagraphingTests(unittest.TestCase):
    def test_bands(self) -> None:
        cases = {
            150: (2, 75),
            250: (3, 83),
            300: (4, 75),
            400: (5, 80),
            451: (6, 75),
            900: (10, 90),
        }
        for target, (count, per) in cases.items():
            plan = recommended_paragraphing(target)
            self.assertEqual((plan.count, plan.words_per_paragraph), (count, per), target)


class EmDashTests(unittest.TestCase):
    def test_raw_and_entities(self) -> None:
        self.assertEqual(strip_em_dash("word — word"), "word, word")
        self.assertEqual(strip_em_dash("a&mdash;b"), "a, b")
        self.assertEqual(strip_em_dash("a&#8212;b&#x2014;c"), "a, b, c")
        self.assertEqual(strip_em_dash("a&MDASH;b"), "a, b")

    def test_stripping_twice_changes_nothing(self) -> None:
        for text in ["a —— b", "— leading", "x&mdash;&#8212;y", "One.\n\n—\n\nTwo."]:
            once = strip_em_dash(text)
            self.assertEqual(strip_em_dash(once), once, text)
            self.assertNotIn("—", once)

    def test_text_without_dashes_is_unchanged(self) -> None:
        text = "Hyphen-ated and en – dash stay."
        self.assertEqual(strip_em_dash(text), text)


class SlugExcerptTests(unittest.TestCase):
    def test_slug(self) -> None:
        self.assertEqual(generate_slug("Hello, World! 2024"), "hello-world-2024")
        self.assertEqual(generate_slug("  --Already--Slugged--  "), "already-slugged")
        self.assertEqual(generate_slug(""), "")

    def test_slug_is_capped(self) -> None:
        slug = generate_slug("word " * 60)
        self.assertLessEqual(len(slug), 100)
        self.assertFalse(slug.endswith("-"))

    def test_short_excerpt_is_plain_text(self) -> None:
        self.assertEqual(generate_excerpt("Read **this** [guide](/blog/x)."), "Read this guide.")

    def test_long_excerpt_cuts_on_word_boundary(self) -> None:
        excerpt = generate_excerpt("word " * 50)
        self.assertTrue(excerpt.endswith("..."))
        self.assertLessEqual(len(excerpt), 163)
        self.assertTrue(all(w == "word" for w in excerpt[:-3].split()))


class ReadingTimeTests(unittest.TestCase):
    def test_rounds_up(self) -> None:
        self.assertEqual(reading_time(0), 0)
        self.assertEqual(reading_time(200), 1)
        self.assertEqual(reading_time(201), 2)
        self.assertEqual(reading_time("word " * 200), 1)


class MarkdownToHtmlTests(unittest.TestCase):
    def test_headings_and_links(self) -> None:
        html = markdown_to_html("# T\n\nHi [x](/blog/y)")
        self.assertIn("<h1>T</h1>", html)
        self.assertIn('<a href="/blog/y">x</a>', html)


if __name__ == "__main__":
    unittest.main()
