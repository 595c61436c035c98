"""
Text Normalization - Shared matching primitives for rule tables.

Queries and table phrases go through the same normalization so that
"Exonération", "exoneration" and "EXONÉRATION" all compare equal:
case-folded, diacritics stripped, typographic apostrophes unified and
whitespace collapsed.
"""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

from fiscalrag.config.errors import SearchError

__all__ = [
    "contains_phrase",
    "contains_term",
    "normalize_article_id",
    "normalize_text",
]

_APOSTROPHES = str.maketrans(
    {
        "’": "'",
        "‘": "'",
        "ʼ": "'",
        "´": "'",
        "`": "'",
    }
)

_ARTICLE_PREFIX = re.compile(r"^\s*(?:article|art)\s*\.?\s*", re.IGNORECASE)


def normalize_text(text: str) -> str:
    """Case-fold, strip diacritics, unify apostrophes and collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", text.casefold())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.translate(_APOSTROPHES).split())


def contains_phrase(text: str, phrase: str) -> bool:
    """Substring match on already-normalized text (stems such as 'etrang' match)."""
    return bool(phrase) and phrase in text


@lru_cache(maxsize=4096)
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![0-9a-z]){re.escape(term)}(?![0-9a-z])")


def contains_term(text: str, term: str) -> bool:
    """Word-boundary match on already-normalized text ('its' does not match 'droits')."""
    if not term:
        return False
    return _term_pattern(term).search(text) is not None


def normalize_article_id(raw: str) -> str:
    """
    Canonical article id spelling.

    Accepts "92A", "Art. 92A", "art.92A" or "Article 92A" and returns "Art. 92A".

    Raises:
        SearchError: If no article number remains after stripping the prefix
    """
    number = " ".join(_ARTICLE_PREFIX.sub("", raw).split())
    if not number:
        raise SearchError(f"Invalid article id: {raw!r}", {"article_id": raw})
    return f"Art. {number}"
