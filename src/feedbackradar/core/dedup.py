"""Lexical near-duplicate removal."""

import logging
import re
from typing import List, Sequence, TypeVar

from .constants import DedupConstants

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WS = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, collapse whitespace, trim."""
    return _WS.sub(" ", (text or "").lower()).strip()


def is_near_duplicate(a: str, b: str) -> bool:
    """Symmetric test over two normalized strings."""
    if a == b:
        return True
    # Containment catches quoted reposts
    if a in b or b in a:
        return True
    n = DedupConstants.PREFIX_LENGTH
    if len(a) >= n and len(b) >= n and a[:n] == b[:n]:
        return True
    return False


def dedupe(items: Sequence[T]) -> List[T]:
    """
    Remove near-identical items, keeping the first occurrence.

    Items must expose a ``text`` attribute. Texts shorter than
    ``DedupConstants.MIN_NORMALIZED_LENGTH`` after normalization are dropped.
    Each candidate is compared against every previously kept text, so the
    cost is quadratic in the number of survivors; a run holds a few hundred
    items at most.
    """
    seen: List[str] = []
    kept: List[T] = []

    for item in items:
        normalized = normalize_text(getattr(item, "text", ""))
        if len(normalized) < DedupConstants.MIN_NORMALIZED_LENGTH:
            continue
        if any(is_near_duplicate(normalized, s) for s in seen):
            continue
        seen.append(normalized)
        kept.append(item)

    logger.info(f"Dedupe: {len(items)} total -> {len(kept)} unique (dropped {len(items) - len(kept)})")
    return kept
