"""
Exception classes for Feedback Radar.

Hierarchy:
    Exception
    +-- FeedbackRadarError
        +-- SourceError
        |   +-- TransientSourceError      (429, 5xx, network failures; retried)
        |   +-- PermanentSourceError      (other non-2xx; never retried)
        +-- LLMServiceError               (failed or malformed model response)
        +-- ClassificationItemFailure     (one item could not be labelled; swallowed)
        +-- SynthesisQualityBelowThreshold (drives the re-prompt loop; internal)
        +-- EmptyResultError              (nothing relevant survived filtering; terminal)
        +-- PipelineStageError            (unexpected exception inside a stage; terminal)
"""

from typing import List, Optional


class FeedbackRadarError(Exception):
    """Base exception for all Feedback Radar errors."""

    pass


class SourceError(FeedbackRadarError):
    """Raised when a content source request fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
        source: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable
        self.source = source


class TransientSourceError(SourceError):
    """Retryable source failure (rate limit, server error, network)."""

    def __init__(self, message: str, status_code: Optional[int] = None, source: str = ""):
        super().__init__(message, status_code=status_code, retryable=True, source=source)


class PermanentSourceError(SourceError):
    """Non-retryable source failure (client error)."""

    def __init__(self, message: str, status_code: Optional[int] = None, source: str = ""):
        super().__init__(message, status_code=status_code, retryable=False, source=source)


class LLMServiceError(FeedbackRadarError):
    """Raised when the language-model service fails or returns an unusable shape."""

    pass


class ClassificationItemFailure(FeedbackRadarError):
    """Raised when a single item cannot be classified."""

    def __init__(self, message: str, item_url: str = ""):
        super().__init__(message)
        self.item_url = item_url


class SynthesisQualityBelowThreshold(FeedbackRadarError):
    """Raised internally when a synthesis attempt scores below the quality threshold."""

    def __init__(self, quality: float, reasons: List[str]):
        super().__init__(f"Synthesis quality {quality:.2f} below threshold: {'; '.join(reasons)}")
        self.quality = quality
        self.reasons = reasons


class EmptyResultError(FeedbackRadarError):
    """Raised when no relevant content survives fetching, filtering and deduplication."""

    pass


class PipelineStageError(FeedbackRadarError):
    """Wraps an unexpected exception raised inside a pipeline stage."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
