"""Data models for Feedback Radar."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class SourceKind(Enum):
    REDDIT = "reddit"
    HACKERNEWS = "hackernews"
    STACKOVERFLOW = "stackoverflow"
    DEVTO = "devto"


class Sentiment(Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class AspectTag(Enum):
    """Closed set of product-quality dimensions used for sub-scoring."""
    PRICE = "Price"
    QUALITY = "Quality"
    DURABILITY = "Durability"
    USABILITY = "Usability"


class Trend(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class PipelineStage(Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


def ordered_aspects(aspects) -> List[AspectTag]:
    """Return aspects in enumeration order."""
    return [a for a in AspectTag if a in aspects]


@dataclass(frozen=True)
class RawItem:
    """A single mention fetched from a content source."""
    text: str
    author: str
    timestamp: str  # ISO-8601
    url: str
    source: SourceKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "author": self.author,
            "date": self.timestamp,
            "url": self.url,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class ClassifiedItem:
    """A RawItem plus the labels assigned by the classifier."""
    text: str
    author: str
    timestamp: str
    url: str
    source: SourceKind
    sentiment: Sentiment
    sentiment_score: int
    aspects: FrozenSet[AspectTag] = frozenset()
    relevant: bool = True

    @classmethod
    def from_raw(
        cls,
        raw: RawItem,
        sentiment: Sentiment,
        sentiment_score: int,
        aspects,
        relevant: bool,
    ) -> "ClassifiedItem":
        return cls(
            text=raw.text,
            author=raw.author,
            timestamp=raw.timestamp,
            url=raw.url,
            source=raw.source,
            sentiment=sentiment,
            sentiment_score=max(0, min(100, int(round(sentiment_score)))),
            aspects=frozenset(aspects),
            relevant=relevant,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "author": self.author,
            "date": self.timestamp,
            "url": self.url,
            "source": self.source.value,
            "sentiment": self.sentiment.value,
            "sentimentScore": self.sentiment_score,
            "aspects": [a.value for a in ordered_aspects(self.aspects)],
            "relevant": self.relevant,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassifiedItem":
        return cls(
            text=data["text"],
            author=data.get("author", ""),
            timestamp=data.get("date", ""),
            url=data.get("url", ""),
            source=SourceKind(data.get("source", SourceKind.REDDIT.value)),
            sentiment=Sentiment(data["sentiment"]),
            sentiment_score=int(data.get("sentimentScore", 50)),
            aspects=frozenset(AspectTag(a) for a in data.get("aspects", [])),
            relevant=bool(data.get("relevant", True)),
        )


@dataclass
class AspectScoreResult:
    """Score for one aspect, recomputed every run."""
    aspect: AspectTag
    score: int
    mention_count: int
    trend: Trend = Trend.STABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.aspect.value,
            "score": self.score,
            "mentions": self.mention_count,
            "trend": self.trend.value,
        }


@dataclass
class IssueRadarItem:
    """Aspect ranked by frequency times negativity."""
    aspect: AspectTag
    score: float
    mention_count: int
    sentiment_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aspect": self.aspect.value,
            "score": self.score,
            "mentionCount": self.mention_count,
            "sentimentScore": self.sentiment_score,
        }


@dataclass
class ConfidenceIndicator:
    """How trustworthy the aggregate score is; every field in [0, 1]."""
    overall: float
    coverage: float
    agreement: float
    source_diversity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": round(self.overall, 2),
            "coverage": round(self.coverage, 2),
            "agreement": round(self.agreement, 2),
            "sourceDiversity": round(self.source_diversity, 2),
        }


@dataclass
class ScoringResult:
    """Everything the scorer derives from one set of classified items."""
    overall_score: int
    aspects: List[AspectScoreResult]
    issue_radar: List[IssueRadarItem]
    confidence: ConfidenceIndicator


@dataclass(frozen=True)
class Quote:
    """Evidence copied verbatim from a classified item."""
    text: str
    author: str
    date: str
    url: str
    source: SourceKind

    @classmethod
    def from_item(cls, item: ClassifiedItem) -> "Quote":
        return cls(
            text=item.text,
            author=item.author,
            date=item.timestamp,
            url=item.url,
            source=item.source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "author": self.author,
            "date": self.date,
            "url": self.url,
            "source": self.source.value,
        }


@dataclass
class Insight:
    """A strength or issue theme with supporting quotes."""
    title: str
    description: str
    frequency: int
    quotes: List[Quote] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "frequency": self.frequency,
            "quotes": [q.to_dict() for q in self.quotes],
        }


@dataclass
class SynthesisResult:
    """Narrative produced by the synthesizer."""
    summary: str
    strengths: List[Insight] = field(default_factory=list)
    issues: List[Insight] = field(default_factory=list)
    quality: Optional[float] = None  # None when no model attempt was scored
    attempts: int = 0


@dataclass
class Report:
    """Final per-run product report handed to the persistence sink."""
    product_name: str
    overall_score: int
    total_mentions: int
    summary: str
    strengths: List[Insight]
    issues: List[Insight]
    aspects: List[AspectScoreResult]
    issue_radar: List[IssueRadarItem]
    confidence: ConfidenceIndicator
    sources_analyzed: int = 0
    generated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productName": self.product_name,
            "overallScore": self.overall_score,
            "totalMentions": self.total_mentions,
            "sourcesAnalyzed": self.sources_analyzed,
            "generatedAt": self.generated_at,
            "summary": self.summary,
            "strengths": [i.to_dict() for i in self.strengths],
            "issues": [i.to_dict() for i in self.issues],
            "aspects": [a.to_dict() for a in self.aspects],
            "issueRadar": [r.to_dict() for r in self.issue_radar],
            "confidence": self.confidence.to_dict(),
        }
