"""Feedback Radar - product feedback aggregation and scoring across developer communities."""

__version__ = "1.0.0"
__author__ = "Feedback Radar Team"

from .core.models import *
from .core.config import settings
from .services.llm import LLMServiceFactory
from .pipeline import AnalysisPipeline

__all__ = [
    "settings",
    "LLMServiceFactory",
    "AnalysisPipeline",
]
