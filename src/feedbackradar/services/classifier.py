"""Per-mention classification: sentiment, intensity, aspects and a relevance re-check."""

import logging
from concurrent.futures import ThreadPoolExecutor
from textwrap import dedent
from typing import List, Optional

from ..core.aspect import aspect_hint, detect_aspects
from ..core.config import settings
from ..core.constants import ClassifierConstants
from ..core.errors import ClassificationItemFailure
from ..core.models import AspectTag, ClassifiedItem, RawItem
from ..core.schemas import MentionClassification
from ..core.sentiment import VADERSentimentAnalyzer
from .llm import ConversationContext, LLMServiceFactory

logger = logging.getLogger(__name__)

CLASSIFIER_INSTRUCTIONS = dedent(f"""
You are a product feedback classifier. For each user mention about a product, determine:

1. Sentiment: positive, neutral, or negative
2. Sentiment score: 0-100 (0 = extremely negative, 50 = neutral, 100 = extremely positive)
3. Relevant aspects: which of [{", ".join(a.value for a in AspectTag)}] the mention discusses
4. Relevance: whether the mention is genuinely about the product

Be precise. A mention can discuss zero or multiple aspects. Only mark aspects that are clearly
discussed, not merely implied.

Return ONLY JSON with keys: "sentiment", "sentimentScore", "aspects", "relevant".
""").strip() + "\n\n" + aspect_hint()


def build_classification_prompt(product_name: str, text: str) -> str:
    return f'Classify this user mention about "{product_name}":\n\n"{text[:ClassifierConstants.MAX_TEXT_FOR_PROMPT]}"'


class MentionClassifier:
    """
    Labels raw mentions with the language-model service.

    Items are sent in fixed-size batches; calls inside a batch run concurrently
    and share one conversation context for the whole run. A failed call drops
    that item only. Without a model service, VADER and aspect keywords are used.
    """

    def __init__(self, llm=None, batch_size: Optional[int] = None, sentiment_analyzer=None):
        self.llm = llm if llm is not None else LLMServiceFactory.create()
        self.batch_size = max(1, batch_size or settings.classify_batch_size)
        self._sentiment_analyzer = sentiment_analyzer

    @property
    def offline(self) -> bool:
        return not getattr(self.llm, "available", False)

    @property
    def sentiment_analyzer(self) -> VADERSentimentAnalyzer:
        if self._sentiment_analyzer is None:
            self._sentiment_analyzer = VADERSentimentAnalyzer()
        return self._sentiment_analyzer

    def classify(self, product_name: str, items: List[RawItem]) -> List[ClassifiedItem]:
        """Classify items, preserving input order among the ones that succeed."""
        if not items:
            return []

        if self.offline:
            logger.info(f"Classifying {len(items)} mentions offline (VADER)")
            return [self.classify_offline(item) for item in items]

        context = self.llm.create_context(CLASSIFIER_INSTRUCTIONS)
        classified: List[ClassifiedItem] = []
        for start in range(0, len(items), self.batch_size):
            batch = items[start:start + self.batch_size]
            classified.extend(self._classify_batch(product_name, batch, context))

        dropped = len(items) - len(classified)
        logger.info(f"Classified {len(classified)}/{len(items)} mentions ({dropped} failed)")
        return classified

    def _classify_batch(self, product_name: str, batch: List[RawItem],
                        context: ConversationContext) -> List[ClassifiedItem]:
        results = []
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [executor.submit(self.classify_one, product_name, item, context) for item in batch]
            for future in futures:
                try:
                    results.append(future.result())
                except ClassificationItemFailure as e:
                    logger.warning(f"Failed to classify mention {e.item_url}: {e}")
        return results

    def classify_one(self, product_name: str, item: RawItem,
                     context: Optional[ConversationContext] = None) -> ClassifiedItem:
        try:
            labels = self.llm.complete(
                build_classification_prompt(product_name, item.text),
                schema=MentionClassification,
                temperature=ClassifierConstants.TEMPERATURE,
                context=context,
                max_tokens=ClassifierConstants.MAX_TOKENS,
            )
        except Exception as e:
            raise ClassificationItemFailure(str(e), item_url=item.url) from e

        return ClassifiedItem.from_raw(
            item,
            sentiment=labels.sentiment,
            sentiment_score=labels.sentiment_score,
            aspects=labels.aspects,
            relevant=labels.relevant,
        )

    def classify_offline(self, item: RawItem) -> ClassifiedItem:
        sentiment, score = self.sentiment_analyzer.analyze(item.text)
        return ClassifiedItem.from_raw(
            item,
            sentiment=sentiment,
            sentiment_score=score,
            aspects=detect_aspects(item.text),
            relevant=True,
        )
