"""Offline sentiment analysis used when no language model is configured."""

import logging
from typing import Tuple

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from .constants import ClassifierConstants
from .models import Sentiment

logger = logging.getLogger(__name__)


def compound_to_score(compound: float) -> int:
    """Convert VADER compound score (-1..1) to a 0-100 sentiment score."""
    score = 50.0 + 50.0 * float(compound)
    return int(round(max(0.0, min(100.0, score))))


class VADERSentimentAnalyzer:
    """VADER sentiment analyzer."""

    def __init__(self):
        self.analyzer = SentimentIntensityAnalyzer()

    def analyze(self, text: str) -> Tuple[Sentiment, int]:
        """Return (sentiment label, 0-100 intensity) for a text."""
        compound = self.analyzer.polarity_scores(text or "")["compound"]

        if compound >= ClassifierConstants.POSITIVE_COMPOUND:
            label = Sentiment.POSITIVE
        elif compound <= ClassifierConstants.NEGATIVE_COMPOUND:
            label = Sentiment.NEGATIVE
        else:
            label = Sentiment.NEUTRAL

        return label, compound_to_score(compound)
