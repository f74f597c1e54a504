"""
Utility functions for common operations.

Provides helper functions for:
- Description normalization and word-overlap similarity
- Transaction ID generation
- Currency formatting
"""
from __future__ import annotations
import re
import uuid
from typing import Union

from core.logger import get_logger

log = get_logger("core/utils")

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_description(description: str | None) -> str:
    """
    Normalize a free-text transaction label into a matching key.

    Lowercases, strips everything that is not a letter, digit or whitespace,
    and collapses runs of whitespace.

    Examples:
        >>> normalize_description("  SWIGGY*Order #42 ")
        "swiggyorder 42"
    """
    text = (description or "").lower()
    text = _NON_ALNUM.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def word_overlap_ratio(desc1: str, desc2: str) -> float:
    """
    Share of words (longer than 2 chars) two normalized descriptions have in common.

    The ratio is |common words| / max(|words1|, |words2|); 0.0 when either
    side has no qualifying words.
    """
    words1 = [w for w in desc1.split() if len(w) > 2]
    words2 = [w for w in desc2.split() if len(w) > 2]

    if not words1 or not words2:
        return 0.0

    common = [w for w in words1 if w in words2]
    return len(common) / max(len(words1), len(words2))


def descriptions_match(desc1: str, desc2: str, threshold: float = 0.5) -> bool:
    """
    Fuzzy comparison of two normalized descriptions.

    Identical strings and substring containment (either direction) always
    match; otherwise the word-overlap ratio must reach ``threshold``.
    """
    if desc1 == desc2:
        return True
    if desc1 in desc2 or desc2 in desc1:
        return True
    return word_overlap_ratio(desc1, desc2) >= threshold


def make_id() -> str:
    """Generate a new unique transaction ID."""
    return str(uuid.uuid4())


def format_currency(amount: Union[int, float], currency: str | None = None) -> str:
    """
    Format an amount with the appropriate currency symbol or code.

    Defaults to INR, the currency of the bank SMS this backend ingests.

    Examples:
        >>> format_currency(1234.5)
        "₹1,234.50"
        >>> format_currency(1234.5, "USD")
        "$1,234.50"
    """
    CURRENCY_SYMBOLS = {
        "INR": "₹",
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
    }

    currency_code = (currency or "INR").upper().strip()
    symbol = CURRENCY_SYMBOLS.get(currency_code, currency_code)
    return f"{symbol}{amount:,.2f}"
