"""Output-quality rubric for synthesized reports.

Pure functions over a structured synthesis response, so the retry
decision can be tested without calling the model.
"""

from dataclasses import dataclass, field
from typing import List

from .constants import SynthesisConstants
from .schemas import SynthesisResponse


@dataclass
class QualityScore:
    overall: float
    mention_coverage: float
    title_specificity: float
    index_validity: float
    structure: float
    reasons: List[str] = field(default_factory=list)

    def passes(self, threshold: float = SynthesisConstants.QUALITY_THRESHOLD) -> bool:
        return self.overall >= threshold


def is_generic_title(title: str) -> bool:
    return (title or "").strip().lower() in SynthesisConstants.GENERIC_TITLES


def score_output_quality(response: SynthesisResponse, item_count: int) -> QualityScore:
    """
    Score a synthesis response on four dimensions and combine them.

    - mention coverage: share of the input items referenced by any insight
    - title specificity: share of insight titles not on the generic blocklist
    - index validity: share of referenced indices that are in bounds
    - structure: >=2 strengths, >=2 issues, summary >=20 chars, score in [0, 100]
      (0.25 per satisfied check)
    """
    reasons: List[str] = []
    insights = list(response.strengths) + list(response.issues)

    referenced = set()
    for insight in insights:
        referenced.update(insight.mention_indices)

    valid = {i for i in referenced if 0 <= i < item_count}
    mention_coverage = len(valid) / item_count if item_count > 0 else 0.0
    if mention_coverage < SynthesisConstants.TARGET_COVERAGE:
        reasons.append(f"Low mention coverage: only {len(valid)}/{item_count} mentions referenced")

    titles = [i.title for i in insights]
    generic = sum(1 for t in titles if is_generic_title(t))
    title_specificity = 1 - generic / len(titles) if titles else 0.0
    if generic:
        reasons.append(f"{generic} generic insight title(s) detected")

    out_of_bounds = len(referenced) - len(valid)
    index_validity = 1 - out_of_bounds / len(referenced) if referenced else 1.0
    if out_of_bounds:
        reasons.append(f"{out_of_bounds} out-of-bounds mention index(es)")

    checks = 0
    if len(response.strengths) >= SynthesisConstants.MIN_INSIGHTS:
        checks += 1
    else:
        reasons.append(f"Only {len(response.strengths)} strength(s) identified")
    if len(response.issues) >= SynthesisConstants.MIN_INSIGHTS:
        checks += 1
    else:
        reasons.append(f"Only {len(response.issues)} issue(s) identified")
    if len((response.summary or "").strip()) >= SynthesisConstants.MIN_SUMMARY_LENGTH:
        checks += 1
    else:
        reasons.append("Summary too short or missing")
    score = response.overall_score
    if score is not None and 0 <= score <= 100:
        checks += 1
    else:
        reasons.append(f"Score missing or out of range: {score}")
    structure = checks / 4

    overall = (
        mention_coverage * SynthesisConstants.WEIGHT_COVERAGE
        + title_specificity * SynthesisConstants.WEIGHT_SPECIFICITY
        + index_validity * SynthesisConstants.WEIGHT_VALIDITY
        + structure * SynthesisConstants.WEIGHT_STRUCTURE
    )

    return QualityScore(
        overall=overall,
        mention_coverage=mention_coverage,
        title_specificity=title_specificity,
        index_validity=index_validity,
        structure=structure,
        reasons=reasons,
    )
