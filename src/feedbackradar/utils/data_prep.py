"""Data preparation for export."""

import datetime
import json
from typing import Any, Dict, List

from .. import __version__
from ..core.models import ClassifiedItem, Report, ScoringResult


def prepare_export(report: Report) -> Dict[str, Any]:
    """Report as a JSON-ready dict with export metadata."""
    data = report.to_dict()
    data["metadata"] = {
        "export_timestamp": None,  # Will be set by export_to_json
        "version": __version__,
    }
    return data


def prepare_scores_export(scores: ScoringResult) -> Dict[str, Any]:
    return {
        "overallScore": scores.overall_score,
        "aspects": [a.to_dict() for a in scores.aspects],
        "issueRadar": [r.to_dict() for r in scores.issue_radar],
        "confidence": scores.confidence.to_dict(),
    }


def export_to_json(data: Dict[str, Any], filename: str) -> None:
    """Export data to JSON file."""
    if "metadata" in data:
        data["metadata"]["export_timestamp"] = datetime.datetime.now().isoformat()

    with open(filename, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_classified_items(filename: str) -> List[ClassifiedItem]:
    """Read classified items from a JSON list, or from an object with an ``items`` list."""
    with open(filename, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items", [])
    return [ClassifiedItem.from_dict(entry) for entry in data]
