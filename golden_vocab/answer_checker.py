"""Free-text answer normalization and comparison."""
from __future__ import annotations

import unicodedata


def _keep(ch: str) -> bool:
    # Combining marks stay so decomposed diacritics survive.
    return ch.isalnum() or ch.isspace() or unicodedata.category(ch).startswith("M")


def normalize(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace.

    Letters in any script keep their diacritics; nothing is transliterated.
    """
    text = unicodedata.normalize("NFC", text).lower()
    text = "".join(ch for ch in text if _keep(ch))
    return " ".join(text.split())


def check_answer(user_answer: str, correct_answer: str) -> bool:
    return normalize(user_answer) == normalize(correct_answer)
