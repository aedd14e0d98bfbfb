import re
from typing import List, Set

STOPWORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "has", "he", "in", "is", "it", "its", "of", "on", "or", "that",
    "the", "to", "was", "were", "with",
}

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_MULTISPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """ Lowercase, punctuation to spaces, collapsed whitespace. Used for learned-rule matching. """
    lowered = text.lower()
    lowered = _NON_ALNUM_RE.sub(" ", lowered)
    return _MULTISPACE_RE.sub(" ", lowered).strip()


def normalize_duplicate_key(text: str) -> str:
    return text.lower().strip()


def normalize_field_text(value: str) -> str:
    return _MULTISPACE_RE.sub(" ", value.lower()).strip()


def tokenize(text: str) -> List[str]:
    return [
        token
        for token in normalize_text(text).split(" ")
        if len(token) > 2 and token not in STOPWORDS
    ]


def token_set(text: str) -> Set[str]:
    return set(tokenize(text))


def jaccard_similarity(a: str, b: str) -> float:
    a_tokens = token_set(a)
    b_tokens = token_set(b)
    if not a_tokens or not b_tokens:
        return 0.0

    intersection = len(a_tokens & b_tokens)
    union = len(a_tokens | b_tokens)
    return intersection / union if union else 0.0
