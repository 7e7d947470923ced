"""Aspect taxonomy: definitions for model prompts and keyword hints for offline tagging."""

import re
from typing import Dict, List, Set

from .models import AspectTag

ASPECT_KEYWORDS: Dict[AspectTag, List[str]] = {
    AspectTag.PRICE: [
        "price", "pricing", "cost", "value for money", "subscription", "free tier",
        "expensive", "cheap", "affordable", "paid", "plan", "billing",
    ],
    AspectTag.QUALITY: [
        "quality", "reliable", "reliability", "polish", "bug", "buggy", "stable",
        "stability", "crash", "broken", "solid", "well made",
    ],
    AspectTag.DURABILITY: [
        "durable", "durability", "longevity", "lasting", "long-term", "long term",
        "breaks", "breaking", "wear", "lifespan", "years",
    ],
    AspectTag.USABILITY: [
        "easy", "intuitive", "usability", "ux", "ui", "learning curve", "confusing",
        "workflow", "navigation", "user-friendly", "simple", "clunky",
    ],
}

ASPECT_DEFINITIONS: Dict[AspectTag, str] = {
    AspectTag.PRICE: "cost, pricing, value for money, subscription, free tier, expensive, cheap",
    AspectTag.QUALITY: "build quality, reliability, polish, bugs, stability, craftsmanship",
    AspectTag.DURABILITY: "longevity, lasting, breaking, wear, lifespan, long-term use",
    AspectTag.USABILITY: "ease of use, UX, UI, learning curve, intuitive, workflow, navigation",
}

_KEYWORD_PATTERNS: Dict[AspectTag, re.Pattern] = {
    aspect: re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b", re.IGNORECASE)
    for aspect, keywords in ASPECT_KEYWORDS.items()
}


def detect_aspects(text: str) -> Set[AspectTag]:
    """Aspects whose keywords appear in the text."""
    return {aspect for aspect, pattern in _KEYWORD_PATTERNS.items() if pattern.search(text or "")}


def aspect_hint() -> str:
    """Aspect definitions block embedded in classification instructions."""
    lines = [f"- {aspect.value}: {ASPECT_DEFINITIONS[aspect]}" for aspect in AspectTag]
    return "Aspect definitions:\n" + "\n".join(lines)
