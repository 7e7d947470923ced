"""Tests for near-duplicate removal."""

from feedbackradar.core.dedup import dedupe, is_near_duplicate, normalize_text
from feedbackradar.core.models import RawItem, SourceKind


def _item(text, author="user"):
    return RawItem(text=text, author=author, timestamp="2024-01-01T00:00:00Z",
                   url="https://example.com", source=SourceKind.REDDIT)


class TestNormalize:
    """Test text normalization."""

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_text("  Hello   WORLD\n\tagain ") == "hello world again"

    def test_handles_empty(self):
        assert normalize_text("") == ""
        assert normalize_text(None) == ""


class TestNearDuplicate:
    """Test the symmetric duplicate checks."""

    def test_exact_match(self):
        assert is_near_duplicate("same text here", "same text here")

    def test_containment_both_directions(self):
        long_text = "i switched from jira and never looked back, it is so fast"
        quoted = "it is so fast"
        assert is_near_duplicate(long_text, quoted)
        assert is_near_duplicate(quoted, long_text)

    def test_prefix_requires_both_long(self):
        prefix = "a" * 100
        assert is_near_duplicate(prefix + " tail one", prefix + " tail two")
        assert not is_near_duplicate("b" * 99 + "x", "b" * 99 + "y")


class TestDedupe:
    """Test dedupe() over item lists."""

    def test_distinct_long_sentences_survive(self):
        items = [
            _item("The command palette makes everything feel instant."),
            _item("Pricing went up twice this year and our team noticed."),
            _item("Offline mode still loses edits when the laptop sleeps."),
        ]
        assert dedupe(items) == items

    def test_shared_prefix_collapses(self):
        prefix = "x" * 100
        first = _item(prefix + "y" * 50)
        second = _item(prefix + "z" * 50)
        assert len(first.text) == 150
        assert dedupe([first, second]) == [first]

    def test_short_texts_dropped(self):
        items = [_item("too short"), _item("This one is long enough to keep around.")]
        result = dedupe(items)
        assert len(result) == 1
        assert result[0].text.startswith("This one")

    def test_keeps_first_occurrence_and_order(self):
        a = _item("First distinct comment about the tool.", author="a")
        b = _item("Second distinct comment about something else.", author="b")
        a_again = _item("  FIRST distinct   comment about the tool. ", author="c")
        result = dedupe([a, b, a_again])
        assert result == [a, b]

    def test_idempotent(self):
        prefix = "p" * 100
        items = [
            _item("Alpha comment with enough characters."),
            _item("alpha comment with enough characters."),
            _item(prefix + " one"),
            _item(prefix + " two"),
            _item("short"),
            _item("A totally separate observation about sync."),
        ]
        once = dedupe(items)
        assert dedupe(once) == once

    def test_empty_input(self):
        assert dedupe([]) == []
