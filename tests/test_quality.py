"""Tests for the synthesis quality rubric and response schemas."""

import pytest

from feedbackradar.core.models import AspectTag, Sentiment
from feedbackradar.core.quality import is_generic_title, score_output_quality
from feedbackradar.core.schemas import MentionClassification, SynthesisResponse


def _response(strengths, issues, summary="Users like the speed but dislike the pricing changes.", score=60):
    return SynthesisResponse.model_validate({
        "summary": summary,
        "overallScore": score,
        "strengths": [{"title": t, "description": "d", "mentionIndices": idx} for t, idx in strengths],
        "issues": [{"title": t, "description": "d", "mentionIndices": idx} for t, idx in issues],
    })


class TestQualityScore:
    """Test score_output_quality()."""

    def test_good_response(self):
        response = _response(
            strengths=[("Fast keyboard navigation", [0, 1]), ("Clean issue views", [2, 3])],
            issues=[("Rising seat prices", [4, 5]), ("Weak offline support", [6, 7])],
        )
        quality = score_output_quality(response, item_count=10)
        assert quality.mention_coverage == pytest.approx(0.8)
        assert quality.title_specificity == 1
        assert quality.index_validity == 1
        assert quality.structure == 1
        assert quality.overall == pytest.approx(0.94)
        assert quality.passes(0.6)
        assert quality.reasons == []

    def test_generic_titles_and_missing_issue(self):
        response = _response(
            strengths=[("User Feedback", [0]), ("Positive Feedback", [1])],
            issues=[("Areas for Improvement", [2])],
        )
        quality = score_output_quality(response, item_count=7)
        assert quality.title_specificity == 0
        assert quality.structure == 0.75
        assert quality.overall == pytest.approx(0.3 * 3 / 7 + 0.2 + 0.2 * 0.75)
        assert not quality.passes(0.6)
        assert any("generic" in r for r in quality.reasons)
        assert any("issue" in r for r in quality.reasons)

    def test_out_of_bounds_indices(self):
        response = _response(
            strengths=[("Fast sync engine", [0, 99]), ("Great shortcuts", [1])],
            issues=[("Pricey for teams", [-1]), ("Sparse reporting", [2])],
        )
        quality = score_output_quality(response, item_count=3)
        assert quality.index_validity == pytest.approx(3 / 5)
        assert quality.mention_coverage == 1
        assert any("out-of-bounds" in r for r in quality.reasons)

    def test_structure_checks_summary_and_score(self):
        response = _response(
            strengths=[("A specific strength", [0]), ("Another strength", [1])],
            issues=[("A specific issue", [2]), ("Another issue", [3])],
            summary="Too short",
            score=None,
        )
        quality = score_output_quality(response, item_count=4)
        assert quality.structure == 0.5

    def test_generic_title_blocklist(self):
        assert is_generic_title("  User Feedback ")
        assert not is_generic_title("Slow mobile app")


class TestSchemas:
    """Test model response validation."""

    def test_classification_normalises_labels(self):
        labels = MentionClassification.model_validate({
            "sentiment": "Positive",
            "sentimentScore": 82,
            "aspects": ["price", "Speed", "USABILITY", "Price"],
            "relevant": True,
        })
        assert labels.sentiment == Sentiment.POSITIVE
        assert labels.aspects == [AspectTag.PRICE, AspectTag.USABILITY]

    def test_classification_rejects_out_of_range_score(self):
        with pytest.raises(ValueError):
            MentionClassification.model_validate({
                "sentiment": "negative", "sentimentScore": 140, "aspects": [], "relevant": True,
            })
