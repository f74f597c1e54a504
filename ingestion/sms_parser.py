"""
Bank SMS parser.

Turns Indian bank / UPI notification text into a ParsedTransaction, or
returns None when the message is not a transaction (OTP, balance alert,
promotion, or no usable amount). Parsing is regex based and never raises on
malformed text.
"""
from __future__ import annotations
import re
from datetime import datetime
from typing import Optional

from core.logger import get_logger
from models.transaction import Channel, Direction, ParseMeta, ParsedTransaction

log = get_logger("ingestion/sms_parser")

# --- Transactional-message filter ---------------------------------------

STRONG_OTP_INDICATORS = (
    "one-time password",
    "one time password",
    "safekey",
    "valid for",
    "do not disclose",
    "do not share",
    "please do not share",
    "verification code",
    "authentication code",
    "transaction code",
    "secret otp",
    "otp valid for",
    "otp for txn",
)

WEAK_NON_TRANSACTION_KEYWORDS = (
    "otp",
    "balance enquiry",
    "avl bal:",
    "available balance",
    "mini statement",
    "promotional",
    "offer",
    "alert",
)

OTP_VOCABULARY = ("otp", "password", "code", "secret")

# "574652 is your OTP", "is 010908", "for 123456"
OTP_CODE_PATTERN = re.compile(
    r"\b\d{4,8}\s+(?:is\s+)?(?:secret\s+)?otp\b|\b(?:is|for)\s+\d{4,8}\b",
    re.IGNORECASE,
)
HAS_AMOUNT_PATTERN = re.compile(r"\b(?:rs\.?|inr)\s*[0-9,]*[0-9]", re.IGNORECASE)
HAS_ACTION_PATTERN = re.compile(
    r"(debited|credited|spent|paid|received|withdrawn|purchase|trf\s+to)",
    re.IGNORECASE,
)

# --- Field extraction ---------------------------------------------------

AMOUNT_PATTERNS = (
    re.compile(r"\b(?:rs\.?|inr)\s*([0-9,]+\.?\d*)", re.IGNORECASE),
    re.compile(r"(?:debited|credited|spent|paid|received)\s+(?:rs\.?|inr)?\s*([0-9,]+\.?\d*)", re.IGNORECASE),
    re.compile(r"(?:amount|amt)[:.\s]+(?:rs\.?|inr)?\s*([0-9,]+\.?\d*)", re.IGNORECASE),
)

MERCHANT_PATTERNS = (
    # Card bill payments: "trf to American Express"
    re.compile(r"trf\s+to\s+([A-Z][A-Z0-9\s]+?)(?:\s+Refno|\s+on|\s+dated|\.|$)", re.IGNORECASE),
    # ATM withdrawals: "withdrawn at ICI ATM"
    re.compile(r"withdrawn\s+at\s+([A-Z][A-Z0-9\s]+?)(?:\s+ATM|\s+from|\s+on|\.|$)", re.IGNORECASE),
    # Upper-case payee after a preposition: "at AMAZON on"
    re.compile(r"(?:at|to|for)\s+([A-Z][A-Z0-9\s]+?)(?:\s+on|\s+dated|\.|$)"),
    re.compile(r"upi/\d+/([A-Z@]+)", re.IGNORECASE),
    re.compile(r"paid to\s+([A-Z][A-Z0-9\s]+)", re.IGNORECASE),
    re.compile(r"merchant\s+([A-Z][A-Z0-9\s]+)", re.IGNORECASE),
)

MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
DATE_DD_MMM_YY = re.compile(r"\b(\d{1,2})-([A-Za-z]{3})-(\d{4}|\d{2})(?!\d)")
DATE_DD_MM_YYYY = re.compile(r"\b(\d{1,2})[-/](\d{1,2})[-/](\d{4})(?!\d)")

CREDIT_KEYWORDS = ("credited", "received", "refund", "cashback")
DEBIT_KEYWORDS = ("debited", "spent", "paid", "withdrawn", "purchase")

# Ordered: first matching channel wins
CHANNEL_PATTERNS: tuple[tuple[Channel, re.Pattern], ...] = (
    ("UPI", re.compile(r"upi|paytm|gpay|phonepe|\bcred\b", re.IGNORECASE)),
    ("CARD", re.compile(r"card|\bpos\b", re.IGNORECASE)),
    ("ATM", re.compile(r"\batm\b", re.IGNORECASE)),
    ("NETBANKING", re.compile(r"netbanking|neft|imps", re.IGNORECASE)),
)

# "cred" must stand alone so that "credited" does not read as the CRED app
KNOWN_BANKS: tuple[tuple[str, re.Pattern], ...] = tuple(
    (name.upper(), re.compile(pattern, re.IGNORECASE))
    for name, pattern in (
        ("hdfc", r"hdfc"),
        ("icici", r"icici"),
        ("sbi", r"sbi"),
        ("axis", r"axis"),
        ("kotak", r"kotak"),
        ("idfc", r"idfc"),
        ("paytm", r"paytm"),
        ("phonepe", r"phonepe"),
        ("cred", r"\bcred\b"),
    )
)


def is_transaction_sms(sms_text: str) -> bool:
    """Return True only for messages that report money actually moving."""
    lower_text = sms_text.lower()

    # Strong OTP indicators win regardless of anything else
    if any(indicator in lower_text for indicator in STRONG_OTP_INDICATORS):
        return False

    has_debit_or_credit = "debited" in lower_text or "credited" in lower_text
    for keyword in WEAK_NON_TRANSACTION_KEYWORDS:
        if keyword in lower_text and not has_debit_or_credit:
            return False

    if OTP_CODE_PATTERN.search(sms_text) and any(word in lower_text for word in OTP_VOCABULARY):
        return False

    return bool(HAS_AMOUNT_PATTERN.search(sms_text) and HAS_ACTION_PATTERN.search(sms_text))


def extract_amount(sms_text: str) -> Optional[float]:
    """First positive amount found by the prioritized patterns, commas stripped."""
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(sms_text)
        if not match:
            continue
        raw = match.group(1).replace(",", "").rstrip(".")
        try:
            amount = float(raw)
        except ValueError:
            continue
        if amount > 0:
            return amount
    return None


def extract_merchant(sms_text: str) -> str:
    for pattern in MERCHANT_PATTERNS:
        match = pattern.search(sms_text)
        if match and match.group(1).strip():
            return match.group(1).strip()

    # Fallback: some context from the middle of the message
    words = [w for w in sms_text.split() if len(w) > 3]
    if len(words) > 3:
        return " ".join(words[3:6])

    return "Transaction"


def extract_date(sms_text: str, now: Optional[datetime] = None) -> datetime:
    """
    Transaction date from the message, at midnight.

    Handles DD-MMM-YY (two-digit years are 20YY) and DD/MM/YYYY or
    DD-MM-YYYY. Falls back to ``now`` (processing time) when neither is
    present or the date is not a real calendar day.
    """
    match = DATE_DD_MMM_YY.search(sms_text)
    if match:
        day, month, year = match.groups()
        month_key = month.lower()
        if month_key in MONTHS:
            full_year = int(year) if len(year) == 4 else 2000 + int(year)
            try:
                return datetime(full_year, MONTHS.index(month_key) + 1, int(day))
            except ValueError:
                log.debug(f"Ignoring impossible date: {match.group(0)}")

    match = DATE_DD_MM_YYYY.search(sms_text)
    if match:
        day, month, year = match.groups()
        try:
            return datetime(int(year), int(month), int(day))
        except ValueError:
            log.debug(f"Ignoring impossible date: {match.group(0)}")

    return now or datetime.now()


def determine_direction(sms_text: str) -> Direction:
    lower_text = sms_text.lower()
    if any(keyword in lower_text for keyword in CREDIT_KEYWORDS):
        return "CREDIT"
    if any(keyword in lower_text for keyword in DEBIT_KEYWORDS):
        return "DEBIT"
    # Most bank alerts tracked here are expenses
    return "DEBIT"


def detect_channel(sms_text: str) -> Channel:
    for channel, pattern in CHANNEL_PATTERNS:
        if pattern.search(sms_text):
            return channel
    return "OTHER"


def detect_bank(sms_text: str, sender: Optional[str] = None) -> Optional[str]:
    haystack = f"{sms_text} {sender or ''}"
    for bank, pattern in KNOWN_BANKS:
        if pattern.search(haystack):
            return bank
    return None


def parse_sms(
    sms_text: str,
    sender: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[ParsedTransaction]:
    """
    Parse one SMS into a ParsedTransaction.

    Args:
        sms_text: Raw message body
        sender: Optional sender ID (e.g. "VM-HDFCBK"), used for bank detection
        now: Processing time; used as the date fallback and parse timestamp

    Returns:
        ParsedTransaction, or None if the message is not a transaction
    """
    if not isinstance(sms_text, str) or not sms_text.strip():
        return None

    if not is_transaction_sms(sms_text):
        log.debug(f"Rejected non-transaction SMS: {sms_text[:60]!r}")
        return None

    amount = extract_amount(sms_text)
    if amount is None:
        log.debug(f"No positive amount in SMS: {sms_text[:60]!r}")
        return None

    processed_at = now or datetime.now()
    parsed = ParsedTransaction(
        rawText=sms_text,
        amount=amount,
        merchant=extract_merchant(sms_text),
        date=extract_date(sms_text, now=processed_at),
        direction=determine_direction(sms_text),
        channel=detect_channel(sms_text),
        bank=detect_bank(sms_text, sender),
        meta=ParseMeta(sender=sender, parsedAt=processed_at),
    )

    log.info(
        f"Parsed SMS: amount={parsed.amount} merchant={parsed.merchant!r} "
        f"direction={parsed.direction} channel={parsed.channel} bank={parsed.bank}"
    )
    return parsed
