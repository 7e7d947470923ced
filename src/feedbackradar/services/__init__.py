"""Services for Feedback Radar."""

from .llm import LLMServiceFactory
from .source_manager import SourceManager

__all__ = [
    "LLMServiceFactory",
    "SourceManager",
]
