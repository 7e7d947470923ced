"""Core modules for Feedback Radar."""

from .models import *
from .config import settings
from .scoring import compute_all_scores

__all__ = [
    "settings",
    "RawItem",
    "ClassifiedItem",
    "Report",
    "compute_all_scores",
]
