"""Response shapes the language-model service must return."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import AspectTag, Sentiment

_ASPECT_VALUES = {a.value.lower(): a for a in AspectTag}


class MentionClassification(BaseModel):
    """Labels for a single mention."""
    model_config = ConfigDict(populate_by_name=True)

    sentiment: Sentiment
    sentiment_score: float = Field(
        alias="sentimentScore", ge=0, le=100,
        description="0 = extremely negative, 50 = neutral, 100 = extremely positive",
    )
    aspects: List[AspectTag] = Field(
        default_factory=list,
        description="Which product aspects this mention discusses. Can be empty or multiple.",
    )
    relevant: bool = Field(
        description="Whether this mention is genuinely about the product, not just mentioning the name in passing.",
    )

    @field_validator("sentiment", mode="before")
    @classmethod
    def _lower_sentiment(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("aspects", mode="before")
    @classmethod
    def _known_aspects(cls, value):
        if not isinstance(value, list):
            return value
        # Names outside the closed set are dropped rather than failing the item
        out = []
        for name in value:
            tag = _ASPECT_VALUES.get(str(name).strip().lower())
            if tag is not None and tag not in out:
                out.append(tag)
        return out


class InsightDraft(BaseModel):
    """A strength or issue as proposed by the model, before quotes are attached."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(description="Short specific title, 3-5 words.")
    description: str = Field("", description="One sentence description.")
    mention_indices: List[int] = Field(
        default_factory=list, alias="mentionIndices",
        description="Indices of mentions that support this theme.",
    )


class SynthesisResponse(BaseModel):
    """Narrative report as proposed by the model."""
    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field("", description="2-3 sentence executive summary of overall user sentiment.")
    overall_score: Optional[float] = Field(
        None, alias="overallScore",
        description="Model's own reading of overall sentiment, 0-100.",
    )
    strengths: List[InsightDraft] = Field(default_factory=list)
    issues: List[InsightDraft] = Field(default_factory=list)
