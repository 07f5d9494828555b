"""Keyword extraction used by the keyword retrieval tier."""

import re
from typing import List


STOP_WORDS = frozenset({
    "this", "that", "with", "from", "they", "have", "will", "been", "were",
    "said", "each", "which", "their", "time", "would", "there", "could", "other",
})

MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text: str) -> List[str]:
    """Lowercase ``text``, replace punctuation with spaces and split on whitespace."""
    return _PUNCTUATION.sub(" ", text.lower()).split()


def extract_keywords(text: str, max_keywords: int = MAX_KEYWORDS) -> List[str]:
    """
    Extract informative terms from a query, in their original order.

    Drops words shorter than four characters and common stop words, then
    keeps the first ``max_keywords`` survivors. Re-extracting from the
    joined output returns the same list.
    """
    words = [
        word for word in tokenize(text or "")
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    ]
    return words[:max_keywords]
