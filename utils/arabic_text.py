# utils/arabic_text.py

"""Case and Arabic-variant folding for multilingual keyword matching."""
import re
from typing import Iterable

_DIACRITICS = re.compile(r'[\u064B-\u065F\u0670\u0640]')  # harakat + tatweel

def fold_text(text: str) -> str:
    """
    Fold text for keyword containment checks.
    Lower-cases Latin script, strips Arabic diacritics and tatweel,
    and unifies Alif variants (أ/إ/آ → ا). French accents are kept.
    """
    if not text:
        return ""

    text = _DIACRITICS.sub('', text)
    text = text.replace('أ', 'ا').replace('إ', 'ا').replace('آ', 'ا')
    return text.lower()

def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """True when any keyword is a substring of text, after folding both sides."""
    folded = fold_text(text)
    return any(fold_text(keyword) in folded for keyword in keywords)

def find_column(header_row: Iterable[str], keywords: Iterable[str]) -> int:
    """Index of the first header cell containing any keyword, or -1."""
    keywords = list(keywords)
    for index, cell in enumerate(header_row):
        if contains_any(cell.strip(), keywords):
            return index
    return -1
