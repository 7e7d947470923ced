"""Relevance filtering: does a piece of text plausibly discuss the product?"""

import re
from typing import List

from .constants import FilterConstants

WORD_RE = re.compile(r"\w+")


def _matches_word_boundary(text: str, term: str) -> bool:
    if not term:
        return False
    return re.search(rf"\b{re.escape(term)}\b", text, re.IGNORECASE) is not None


def _name_variants(name: str) -> List[str]:
    """Possessive, plural, hyphenated and concatenated spellings of a name."""
    return [
        name + "'s",
        name + "s",
        re.sub(r"\s+", "-", name),
        re.sub(r"\s+", "", name),
    ]


def _within_one_edit(word: str, name: str) -> bool:
    """Positional substitutions plus length difference, at most one in total."""
    if len(word) < len(name) - 1 or len(word) > len(name) + 1:
        return False
    diff = sum(1 for a, b in zip(word, name) if a != b)
    diff += abs(len(word) - len(name))
    return diff <= FilterConstants.FUZZY_MAX_DIFF


def is_strong_match(text: str, product_name: str) -> bool:
    """True when the full product name appears at a word boundary."""
    return _matches_word_boundary(text.lower(), product_name.lower().strip())


def fuzzy_match_product(text: str, product_name: str) -> bool:
    """Tolerant name match: exact, per-token, suffix variants, or one edit away."""
    lower = text.lower()
    name = product_name.lower().strip()
    if not name:
        return False

    if _matches_word_boundary(lower, name):
        return True

    words = name.split()
    if len(words) > 1 and all(_matches_word_boundary(lower, w) for w in words):
        return True

    if any(_matches_word_boundary(lower, variant) for variant in _name_variants(name)):
        return True

    # Short names produce too many accidental near-misses
    if len(name) >= FilterConstants.FUZZY_MIN_NAME_LENGTH:
        for word in WORD_RE.findall(lower):
            if _within_one_edit(word, name):
                return True

    return False


def count_keywords(text: str) -> int:
    """Number of distinct domain keywords present in the text."""
    lower = text.lower()
    return sum(1 for kw in FilterConstants.SOFTWARE_KEYWORDS if kw in lower)


def is_relevant(text: str, product_name: str) -> bool:
    """
    Decide whether text plausibly discusses the product.

    A bare name mention without software context is usually incidental
    (a person's name, an unrelated word), so keyword evidence is required:
    one keyword for a word-boundary match, two for a fuzzy-only match.
    """
    if not fuzzy_match_product(text, product_name):
        return False

    keywords = count_keywords(text)
    if is_strong_match(text, product_name):
        return keywords >= FilterConstants.MIN_KEYWORDS_STRONG_MATCH
    return keywords >= FilterConstants.MIN_KEYWORDS_FUZZY_MATCH
