"""
Passage Utilities - Evidence excerpts and answer clean-up.

Features:
- Numeric question detection (rates, amounts, durations, thresholds)
- Key passage extraction from article bodies
- Markdown and emoji stripping for plain-text answers
"""

from __future__ import annotations

import re

__all__ = [
    "extract_key_passages",
    "is_numeric_question",
    "strip_markdown_and_emojis",
    "truncate_excerpt",
]

NUMERIC_QUESTION_PATTERNS = [
    re.compile(r"combien", re.IGNORECASE),
    re.compile(r"quel(?:le)?s?\s+(?:est|sont|délai|durée|taux|montant|seuil)", re.IGNORECASE),
    re.compile(r"au bout de", re.IGNORECASE),
    re.compile(r"délai|delai|durée|duree|période|periode", re.IGNORECASE),
    re.compile(r"taux|pourcentage|%", re.IGNORECASE),
    re.compile(r"montant|seuil|plafond", re.IGNORECASE),
    re.compile(r"\d+\s*(?:mois|ans?|jours?)", re.IGNORECASE),
    re.compile(r"barème|bareme|tranche", re.IGNORECASE),
]

KEY_PASSAGE_PATTERNS = [
    re.compile(r"\d+\s*%"),
    re.compile(r"\d+[\s.]*\d*\s*(?:FCFA|francs)", re.IGNORECASE),
    re.compile(r"vingt|trente|quarante|cinquante|soixante", re.IGNORECASE),
    re.compile(r"\d+\s*(?:mois|ans?|jours?|heures?)", re.IGNORECASE),
    re.compile(r"délai|durée|période|absence", re.IGNORECASE),
    re.compile(r"taux|barème|seuil|plafond|minimum", re.IGNORECASE),
    re.compile(r"exonér|affranchi|exempté", re.IGNORECASE),
    re.compile(r"retenue|acompte|versement", re.IGNORECASE),
]

MAX_KEY_PASSAGES = 5
MIN_PASSAGE_LENGTH = 10

# Placeholders keep "1. 5" style decimals and "Art. 12" references in one sentence
_DECIMAL = "\x00DECIMAL\x00"
_DOT = "\x00DOT\x00"

_EMOJI = re.compile(
    "["
    "\U0001F300-\U0001F9FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\U0001F600-\U0001F64F"
    "\U0001F680-\U0001F6FF"
    "\u2B05-\u2B07"
    "\uFE0F"
    "]"
)


def is_numeric_question(query: str) -> bool:
    """True when the question asks for a rate, amount, duration or threshold."""
    return any(p.search(query) for p in NUMERIC_QUESTION_PATTERNS)


def extract_key_passages(text: str, limit: int = MAX_KEY_PASSAGES) -> list[str]:
    """
    Pick the sentences of an article body that carry figures.

    Args:
        text: Full article body
        limit: Maximum number of passages

    Returns:
        Sentences mentioning rates, amounts, durations, exemptions or withholdings
    """
    protected = re.sub(r"(\d)\.\s+(\d)", rf"\1{_DECIMAL}\2", text)
    protected = re.sub(r"Art\.\s+", f"Art{_DOT} ", protected)

    sentences = []
    for chunk in re.split(r"[.;]\s+", protected):
        sentence = chunk.replace(_DECIMAL, ".").replace(_DOT, ".").strip()
        if len(sentence) > MIN_PASSAGE_LENGTH:
            sentences.append(sentence)

    passages = [s for s in sentences if any(p.search(s) for p in KEY_PASSAGE_PATTERNS)]
    return passages[:limit]


def truncate_excerpt(text: str, max_chars: int = 1000) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def strip_markdown_and_emojis(text: str) -> str:
    """Remove bold, italics, headers, rules, backticks and emoji from model output."""
    text = re.sub(r"\*\*([^*]+)\*\*", r"\1", text)
    text = re.sub(r"__([^_]+)__", r"\1", text)
    text = re.sub(r"\*([^*]+)\*", r"\1", text)
    text = re.sub(r"_([^_]+)_", r"\1", text)
    text = re.sub(r"^#{1,6}\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r"---+", "", text)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = _EMOJI.sub("", text)
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
