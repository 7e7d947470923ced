"""Tests for mention classification."""

import threading

from feedbackradar.core.errors import LLMServiceError
from feedbackradar.core.models import AspectTag, RawItem, Sentiment, SourceKind
from feedbackradar.core.schemas import MentionClassification
from feedbackradar.services.classifier import MentionClassifier
from feedbackradar.services.llm import ConversationContext, FallbackLLMService


def _raw(text, author="user"):
    return RawItem(text=text, author=author, timestamp="2024-01-01T00:00:00Z",
                   url=f"https://example.com/{author}", source=SourceKind.DEVTO)


class StubLLM:
    """Labels by keyword; raises for texts containing 'FAIL'."""

    available = True

    def __init__(self):
        self.contexts_created = 0
        self.contexts_seen = []
        self.calls = 0
        self._lock = threading.Lock()

    def create_context(self, instructions):
        self.contexts_created += 1
        return ConversationContext(thread_id=f"t{self.contexts_created}", instructions=instructions)

    def complete(self, prompt, *, schema=None, context=None, **kwargs):
        with self._lock:
            self.calls += 1
            self.contexts_seen.append(context)
        if "FAIL" in prompt:
            raise LLMServiceError("model timed out")
        sentiment = "positive" if "love" in prompt else "negative"
        return MentionClassification.model_validate({
            "sentiment": sentiment,
            "sentimentScore": 90 if sentiment == "positive" else 15,
            "aspects": ["Usability"],
            "relevant": "offtopic" not in prompt,
        })


class TestMentionClassifier:
    """Test batching, failure isolation and ordering."""

    def setup_method(self):
        self.llm = StubLLM()
        self.classifier = MentionClassifier(llm=self.llm, batch_size=2)

    def test_empty_input_makes_no_calls(self):
        assert self.classifier.classify("Linear", []) == []
        assert self.llm.calls == 0
        assert self.llm.contexts_created == 0

    def test_failures_dropped_and_order_kept(self):
        items = [
            _raw("I love the shortcuts", "a"),
            _raw("FAIL this one", "b"),
            _raw("Boards are slow", "c"),
            _raw("I love the triage inbox", "d"),
            _raw("offtopic love letter", "e"),
        ]
        result = self.classifier.classify("Linear", items)

        assert [r.author for r in result] == ["a", "c", "d", "e"]
        assert result[0].sentiment == Sentiment.POSITIVE
        assert result[0].sentiment_score == 90
        assert result[1].sentiment == Sentiment.NEGATIVE
        assert result[0].aspects == frozenset({AspectTag.USABILITY})
        assert result[3].relevant is False
        assert self.llm.calls == 5

    def test_one_context_shared_across_batches(self):
        items = [_raw(f"I love feature {i}", str(i)) for i in range(5)]
        self.classifier.classify("Linear", items)
        assert self.llm.contexts_created == 1
        assert len({c.thread_id for c in self.llm.contexts_seen}) == 1

    def test_classified_item_keeps_raw_fields(self):
        raw = _raw("I love it", "zoe")
        result = self.classifier.classify("Linear", [raw])[0]
        assert (result.text, result.author, result.url, result.source) == (raw.text, raw.author, raw.url, raw.source)


class TestOfflineClassification:
    """Test the VADER path used without a model service."""

    def setup_method(self):
        self.classifier = MentionClassifier(llm=FallbackLLMService())

    def test_offline_labels(self):
        result = self.classifier.classify("Linear", [
            _raw("I love this app, it is great and so easy to use", "a"),
            _raw("This app is terrible and the pricing is awful", "b"),
        ])
        assert self.classifier.offline
        assert result[0].sentiment == Sentiment.POSITIVE
        assert result[0].sentiment_score > 50
        assert AspectTag.USABILITY in result[0].aspects
        assert result[1].sentiment == Sentiment.NEGATIVE
        assert AspectTag.PRICE in result[1].aspects
        assert all(r.relevant for r in result)
