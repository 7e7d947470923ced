"""Deterministic scoring of classified items.

All functions here are pure: no model calls, no I/O, no shared state.
Only items marked relevant contribute to any score.
"""

import logging
import math
from collections import Counter
from typing import Iterable, List, Sequence

from .constants import ScoringConstants
from .models import (
    AspectScoreResult,
    AspectTag,
    ClassifiedItem,
    ConfidenceIndicator,
    IssueRadarItem,
    ScoringResult,
    Sentiment,
    Trend,
)

logger = logging.getLogger(__name__)


def _round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def relevant_items(items: Iterable[ClassifiedItem]) -> List[ClassifiedItem]:
    return [item for item in items if item.relevant]


def _items_for_aspect(items: Sequence[ClassifiedItem], aspect: AspectTag) -> List[ClassifiedItem]:
    return [item for item in items if aspect in item.aspects]


def _sentiment_score(items: Sequence[ClassifiedItem]) -> int:
    """50 + ((pos - neg) / n) * 50, clamped to [0, 100]; 50 for no items."""
    if not items:
        return ScoringConstants.NEUTRAL_SCORE
    pos = sum(1 for i in items if i.sentiment == Sentiment.POSITIVE)
    neg = sum(1 for i in items if i.sentiment == Sentiment.NEGATIVE)
    score = 50 + ((pos - neg) / len(items)) * 50
    return int(_round_half_up(max(0.0, min(100.0, score))))


def compute_overall_score(items: Sequence[ClassifiedItem]) -> int:
    """Overall sentiment score of the relevant items."""
    return _sentiment_score(relevant_items(items))


def compute_aspect_scores(items: Sequence[ClassifiedItem]) -> List[AspectScoreResult]:
    """Per-aspect scores in enumeration order; untouched aspects default to 50."""
    relevant = relevant_items(items)
    results = []
    for aspect in AspectTag:
        tagged = _items_for_aspect(relevant, aspect)
        results.append(AspectScoreResult(
            aspect=aspect,
            score=_sentiment_score(tagged),
            mention_count=len(tagged),
            trend=Trend.STABLE,
        ))
    return results


def compute_issue_radar(
    items: Sequence[ClassifiedItem],
    aspect_scores: Sequence[AspectScoreResult],
) -> List[IssueRadarItem]:
    """
    Rank aspects by (mentions / total) * (100 - aspect score).

    Frequent and negative aspects rise to the top. Ties keep the
    enumeration order of AspectTag.
    """
    relevant = relevant_items(items)
    total = len(relevant)
    if total == 0:
        return []

    by_aspect = {a.aspect: a.score for a in aspect_scores}
    radar = []
    for aspect in AspectTag:
        mentions = len(_items_for_aspect(relevant, aspect))
        aspect_score = by_aspect.get(aspect, ScoringConstants.NEUTRAL_SCORE)
        score = (mentions / total) * (100 - aspect_score)
        radar.append(IssueRadarItem(
            aspect=aspect,
            score=_round_half_up(max(0.0, score), 2),
            mention_count=mentions,
            sentiment_score=aspect_score,
        ))

    # sorted() is stable, so equal scores stay in enumeration order
    return sorted(radar, key=lambda r: -r.score)


def compute_confidence(items: Sequence[ClassifiedItem]) -> ConfidenceIndicator:
    """Coverage x agreement x source diversity."""
    relevant = relevant_items(items)
    total = len(relevant)
    if total == 0:
        return ConfidenceIndicator(overall=0.0, coverage=0.0, agreement=0.0, source_diversity=0.0)

    aspects = list(AspectTag)
    covered = 0
    agreements = []
    for aspect in aspects:
        tagged = _items_for_aspect(relevant, aspect)
        if len(tagged) > ScoringConstants.COVERAGE_MIN_MENTIONS:
            covered += 1
        if not tagged:
            # No data for this aspect is not also held against agreement
            agreements.append(1.0)
            continue
        buckets = Counter(i.sentiment for i in tagged)
        agreements.append(max(buckets.values()) / len(tagged))

    coverage = covered / len(aspects)
    agreement = sum(agreements) / len(agreements)
    source_diversity = min(1.0, len({i.author for i in relevant}) / total)

    return ConfidenceIndicator(
        overall=coverage * agreement * source_diversity,
        coverage=coverage,
        agreement=agreement,
        source_diversity=source_diversity,
    )


def compute_all_scores(items: Sequence[ClassifiedItem]) -> ScoringResult:
    """Compute overall score, aspect scores, issue radar and confidence."""
    overall = compute_overall_score(items)
    aspects = compute_aspect_scores(items)
    radar = compute_issue_radar(items, aspects)
    confidence = compute_confidence(items)
    logger.debug(
        f"Scored {len(relevant_items(items))} relevant items: overall={overall}, "
        f"confidence={confidence.overall:.2f}"
    )
    return ScoringResult(
        overall_score=overall,
        aspects=aspects,
        issue_radar=radar,
        confidence=confidence,
    )
