"""Narrative synthesis: summary, strengths and issues grounded in classified mentions."""

import json
import logging
from textwrap import dedent
from typing import List, Optional

from ..core.config import settings
from ..core.constants import SynthesisConstants
from ..core.errors import SynthesisQualityBelowThreshold
from ..core.models import (
    ClassifiedItem,
    Insight,
    Quote,
    ScoringResult,
    Sentiment,
    SynthesisResult,
    ordered_aspects,
)
from ..core.quality import QualityScore, score_output_quality
from ..core.schemas import InsightDraft, SynthesisResponse
from ..core.scoring import relevant_items
from .llm import LLMServiceFactory

logger = logging.getLogger(__name__)

SYNTHESIZER_INSTRUCTIONS = dedent("""
You summarize product feedback data into executive reports. You receive pre-classified mention data
with sentiment labels and aspect tags. Your job is to:

1. Identify 2-4 distinct positive themes (strengths)
2. Identify 2-4 distinct negative themes (issues)
3. Write a concise 2-3 sentence executive summary

Reference specific mention indices that support each theme. Do not re-analyze sentiment; use the
provided classifications. Each theme title should be specific and descriptive (not generic like
"User Feedback").
""").strip()

RESPONSE_FORMAT = dedent("""
Return ONLY a JSON object with this exact structure:
{
  "summary": "2-3 sentence executive summary of overall user sentiment",
  "overallScore": <number 0-100, where 100 is extremely positive>,
  "strengths": [{"title": "Short specific title (3-5 words)", "description": "One sentence", "mentionIndices": [<indices>]}],
  "issues": [{"title": "Short specific title (3-5 words)", "description": "One sentence", "mentionIndices": [<indices>]}]
}
""").strip()


def build_synthesis_prompt(product_name: str, items: List[ClassifiedItem], scores: ScoringResult,
                           quality_issues: Optional[List[str]] = None) -> str:
    """Index-tagged view of every mention plus the computed scores."""
    mention_summaries = [
        {
            "index": i,
            "text": item.text[:SynthesisConstants.MAX_TEXT_IN_PROMPT],
            "sentiment": item.sentiment.value,
            "aspects": [a.value for a in ordered_aspects(item.aspects)],
        }
        for i, item in enumerate(items)
    ]
    aspect_line = ", ".join(f"{a.aspect.value}: {a.score}/100 ({a.mention_count} mentions)" for a in scores.aspects)

    retry_instructions = ""
    if quality_issues:
        issue_lines = "\n".join(f"- {reason}" for reason in quality_issues)
        retry_instructions = dedent(f"""
IMPORTANT: A previous analysis attempt had quality issues:
{issue_lines}

Fix these issues in this attempt:
- Use SPECIFIC, descriptive titles (not "User Feedback" or "Areas for Improvement")
- Reference more mention indices to improve coverage
- Only use mention indices between 0 and {len(items) - 1}
- Ensure at least 2 strengths and 2 issues are identified
""")

    return (
        f'Analyze {len(items)} classified mentions about "{product_name}".\n\n'
        f"Overall score: {scores.overall_score}/100\n"
        f"Aspect scores: {aspect_line}\n\n"
        f"Classified mentions:\n{json.dumps(mention_summaries, indent=2)}\n"
        f"{retry_instructions}\n"
        f"Identify 2-4 strengths (positive themes) and 2-4 issues (negative themes). "
        f"Reference mention indices that support each theme.\n\n{RESPONSE_FORMAT}"
    )


class ReportSynthesizer:
    """
    Produces the narrative part of a report with a quality-scored retry loop.

    Every attempt is scored with ``score_output_quality``. Below the threshold
    the model is re-prompted at a higher temperature with the deficiencies
    listed, and the best-scoring attempt is kept. Quotes are always copies of
    the referenced input items.
    """

    def __init__(self, llm=None, max_retries: Optional[int] = None, quality_threshold: Optional[float] = None,
                 temperature: Optional[float] = None, retry_temperature: Optional[float] = None,
                 max_quotes: Optional[int] = None):
        self.llm = llm if llm is not None else LLMServiceFactory.create()
        self.max_retries = settings.synthesis_max_retries if max_retries is None else max_retries
        self.quality_threshold = (
            settings.synthesis_quality_threshold if quality_threshold is None else quality_threshold
        )
        self.temperature = settings.synthesis_temperature if temperature is None else temperature
        self.retry_temperature = (
            settings.synthesis_retry_temperature if retry_temperature is None else retry_temperature
        )
        self.max_quotes = settings.max_quote_count if max_quotes is None else max_quotes

    @property
    def offline(self) -> bool:
        return not getattr(self.llm, "available", False)

    def synthesize(self, product_name: str, items: List[ClassifiedItem], scores: ScoringResult) -> SynthesisResult:
        items = relevant_items(items)
        if not items:
            return SynthesisResult(summary=f'No user feedback found for "{product_name}".')

        if self.offline:
            return self.basic_synthesis(product_name, items, scores)

        best_response: Optional[SynthesisResponse] = None
        best_quality: Optional[QualityScore] = None
        attempts = 0

        for attempt in range(self.max_retries + 1):
            is_retry = attempt > 0
            prompt = build_synthesis_prompt(
                product_name, items, scores,
                quality_issues=best_quality.reasons if is_retry and best_quality else None,
            )
            attempts += 1
            try:
                response = self.llm.complete(
                    prompt,
                    system=SYNTHESIZER_INSTRUCTIONS,
                    schema=SynthesisResponse,
                    temperature=self.retry_temperature if is_retry else self.temperature,
                    max_tokens=SynthesisConstants.MAX_TOKENS,
                )
            except Exception as e:
                logger.warning(f"Synthesis attempt {attempt + 1} failed: {e}")
                continue

            quality = score_output_quality(response, len(items))
            logger.info(
                f"Synthesis attempt {attempt + 1}: quality={quality.overall:.2f} "
                f"[coverage={quality.mention_coverage:.2f}, specificity={quality.title_specificity:.2f}, "
                f"validity={quality.index_validity:.2f}, structure={quality.structure:.2f}]"
            )
            if best_quality is None or quality.overall > best_quality.overall:
                best_response, best_quality = response, quality

            try:
                self._check_quality(quality)
                break
            except SynthesisQualityBelowThreshold as e:
                if attempt < self.max_retries:
                    logger.info(f"Reprompting: {e}")

        if best_response is None:
            logger.warning("All synthesis attempts failed, using basic insights")
            result = self.basic_synthesis(product_name, items, scores)
            result.attempts = attempts
            return result

        return SynthesisResult(
            summary=best_response.summary,
            strengths=[self._map_insight(d, items) for d in best_response.strengths],
            issues=[self._map_insight(d, items) for d in best_response.issues],
            quality=best_quality.overall,
            attempts=attempts,
        )

    def _check_quality(self, quality: QualityScore) -> None:
        if not quality.passes(self.quality_threshold):
            raise SynthesisQualityBelowThreshold(quality.overall, quality.reasons)

    def _map_insight(self, draft: InsightDraft, items: List[ClassifiedItem]) -> Insight:
        """Resolve mention indices to quotes; out-of-range indices are ignored."""
        valid = []
        for index in draft.mention_indices:
            if 0 <= index < len(items) and index not in valid:
                valid.append(index)
        return Insight(
            title=draft.title,
            description=draft.description,
            frequency=len(valid),
            quotes=[Quote.from_item(items[i]) for i in valid[:self.max_quotes]],
        )

    def basic_synthesis(self, product_name: str, items: List[ClassifiedItem],
                        scores: Optional[ScoringResult] = None) -> SynthesisResult:
        """Model-free report: the most substantial positive and negative mentions."""
        positives = [i for i in items if i.sentiment == Sentiment.POSITIVE]
        negatives = [i for i in items if i.sentiment == Sentiment.NEGATIVE]
        neutral = len(items) - len(positives) - len(negatives)

        summary = (
            f'Analyzed {len(items)} mentions of "{product_name}": '
            f"{len(positives)} positive, {len(negatives)} negative, {neutral} neutral."
        )
        if scores is not None:
            summary += f" Overall score {scores.overall_score}/100."

        def _highlight(title: str, description: str, group: List[ClassifiedItem]) -> List[Insight]:
            if not group:
                return []
            longest = sorted(group, key=lambda i: len(i.text), reverse=True)[:self.max_quotes]
            return [Insight(
                title=title,
                description=description,
                frequency=len(group),
                quotes=[Quote.from_item(i) for i in longest],
            )]

        return SynthesisResult(
            summary=summary,
            strengths=_highlight("User Feedback Highlights", "What users liked most.", positives),
            issues=_highlight("Areas for Improvement", "What users found lacking.", negatives),
        )
