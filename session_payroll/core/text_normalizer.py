"""
Text Normalization Module

Canonicalizes client names and calendar event titles so they can be compared
regardless of case, accents, punctuation or trailing annotations.

Examples:
    "ΒΑΣΙΛΙΚΗ ΣΤΑΙΚΟΥΡΑ"              -> "βασιλικη σταικουρα"
    "Βασιλική Σταικούρα - Μετρητά"    -> "βασιλικη σταικουρα μετρητα"
    "José García (online)"            -> "jose garcia online"
"""
import re
import unicodedata
from typing import Optional

from session_payroll.config import MATCH_MAX_WORDS

# Apostrophes are dropped so "O'Brien" and "OBrien" compare equal
APOSTROPHES = re.compile(r"['’‘`ʼ]")

# Everything that is not a letter, digit or whitespace (underscore included)
PUNCTUATION = re.compile(r"[^\w\s]|_")

WHITESPACE = re.compile(r'\s+')


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: Optional[str]) -> str:
    """
    Normalize text for accent- and case-insensitive comparison.

    Args:
        text: Raw string (event title, client name, keyword)

    Returns:
        Lower-cased string without diacritics or punctuation, with single
        spaces between words. Empty input gives an empty string.
    """
    if not text:
        return ''

    result = _strip_accents(text.casefold()).casefold()
    result = APOSTROPHES.sub('', result)
    result = PUNCTUATION.sub(' ', result)
    return WHITESPACE.sub(' ', result).strip()


def normalize_for_matching(text: Optional[str], max_words: int = MATCH_MAX_WORDS) -> str:
    """
    Normalize and keep only the first N words.

    Drops trailing qualifiers such as payment method notes:
    "Μαρία Παπαδοπούλου Online" -> "μαρια παπαδοπουλου"
    """
    words = normalize(text).split(' ')
    return ' '.join(words[:max(max_words, 0)]).strip()


def names_match(name1: str, name2: str, max_words: int = MATCH_MAX_WORDS) -> bool:
    """Check if two names are the same person ignoring case, accents and extra words"""
    return normalize_for_matching(name1, max_words) == normalize_for_matching(name2, max_words)


def starts_with(name: str, prefix: str) -> bool:
    """Prefix search used by client lookups"""
    return normalize(name).startswith(normalize(prefix))


def extract_first_words(name: Optional[str], max_words: int = MATCH_MAX_WORDS) -> str:
    """First N words of a name with the original casing (for display)"""
    if not name:
        return ''
    return ' '.join(name.split()[:max_words])
