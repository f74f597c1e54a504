"""
Transaction categorization.

Asks the text oracle first and falls back to ordered keyword rules whenever
the oracle is unconfigured, fails, or answers with an unusable label.
"""
from __future__ import annotations
import re
from typing import Any, Dict, Optional, Sequence, Tuple

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from llm.oracle import TextOracle, UnconfiguredTextOracle
from models.oracle import CategorizationPayload, OracleSuccess

log = get_logger("analysis/categorizer")

# Card issuers / card-bill words that turn a "trf to" into a bill payment
CARD_BILL_WORDS = ("card", "amex", "american express", "cred", "credit")


def _keyword_pattern(keywords: Sequence[str]) -> re.Pattern:
    # Short keywords need word boundaries ("atm" in "treatment", "ola" in "cola")
    parts = []
    for kw in keywords:
        escaped = re.escape(kw)
        parts.append(rf"\b{escaped}\b" if len(kw) <= 4 else escaped)
    return re.compile("|".join(parts), re.IGNORECASE)


# Ordered rules; first match wins
CATEGORY_RULES: Tuple[Tuple[str, re.Pattern], ...] = (
    ("Cash", _keyword_pattern(["atm", "withdrawn at", "cash withdrawal", "withdrawal"])),
    ("Bills", _keyword_pattern([
        "american express", "amex", "cred club", "credit card", "card payment",
        "bill payment", "card bill",
    ])),
    ("Food", _keyword_pattern([
        "swiggy", "zomato", "restaurant", "food", "cafe", "pizza", "burger",
        "dominos", "kfc", "mcdonald",
    ])),
    ("Transport", _keyword_pattern(["uber", "ola", "rapido", "taxi", "metro", "ride", "petrol", "fuel", "bus"])),
    ("Rent", _keyword_pattern(["rent", "landlord", "house rent"])),
    ("Bills", _keyword_pattern([
        "electricity", "wifi", "broadband", "mobile bill", "internet", "water bill",
        "gas bill", "recharge", "phone bill",
    ])),
    ("Shopping", _keyword_pattern(["amazon", "flipkart", "myntra", "ajio", "meesho", "nykaa", "shopping", "mall"])),
    ("Entertainment", _keyword_pattern(["netflix", "spotify", "movie", "cinema", "theatre", "hotstar", "bookmyshow"])),
    ("Healthcare", _keyword_pattern(["hospital", "doctor", "medicine", "pharmacy", "medical", "clinic"])),
    ("Groceries", _keyword_pattern(["grocery", "groceries", "supermarket", "bigbasket", "blinkit", "vegetables", "fruits"])),
)

_TRF_TO = re.compile(r"\btrf\s+to\b", re.IGNORECASE)
_CARD_BILL = re.compile("|".join(rf"\b{re.escape(w)}\b" for w in CARD_BILL_WORDS), re.IGNORECASE)


def _is_card_bill_transfer(description: str, raw_text: Optional[str]) -> bool:
    for text in (description, raw_text):
        if text and _TRF_TO.search(text) and _CARD_BILL.search(text):
            return True
    return False


def normalize_category(label: str) -> str:
    """One capitalization for every label: first letter upper, rest lower."""
    return label.strip().capitalize()


def categorize_by_rules(description: str, raw_text: Optional[str] = None) -> str:
    """
    Deterministic keyword categorization.

    Args:
        description: Transaction description (merchant for parsed SMS)
        raw_text: Optional full SMS text; only consulted for a "trf to" card-bill payment

    Returns:
        Category label; "Other" when no rule matches
    """
    description = description or ""

    for category, pattern in CATEGORY_RULES:
        if category == "Bills" and _is_card_bill_transfer(description, raw_text):
            return "Bills"
        if pattern.search(description):
            return category
    return "Other"


class Categorizer:
    """
    Oracle-first categorizer with keyword fallback.

    Args:
        oracle: Text oracle; defaults to the unconfigured stand-in
        cfg: Application config
    """

    def __init__(self, oracle: Optional[TextOracle] = None, cfg: Optional[AppConfig] = None):
        self.oracle = oracle or UnconfiguredTextOracle()
        self.cfg = cfg or default_config

    def categorize(self, description: str, context: Optional[Dict[str, Any]] = None) -> str:
        """
        Assign a category label to a transaction description.

        Args:
            description: Free-text description or merchant
            context: Optional ``amount``, ``channel`` and ``rawText``

        Returns:
            Normalized category label (never empty)
        """
        context = context or {}
        payload = {"description": description, **{k: v for k, v in context.items() if v is not None}}

        result = self.oracle.invoke("categorization-agent", payload)
        if isinstance(result, OracleSuccess) and isinstance(result.payload, CategorizationPayload):
            label = result.payload.category
            if label:
                category = normalize_category(label)
                log.debug(f"Oracle categorized {description!r} as {category}")
                return category
            log.warning(f"Oracle returned an empty category for {description!r}; using rules")

        category = categorize_by_rules(description, context.get("rawText"))
        log.debug(f"Rule-based category for {description!r}: {category}")
        return category
