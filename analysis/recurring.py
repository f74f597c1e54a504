"""
Recurring transaction detection.

Groups a user's recent transactions by normalized description, category and
source, then scores each group on amount stability and interval regularity.
"""
from __future__ import annotations
import math
from collections import defaultdict
from datetime import datetime, timedelta
from statistics import mean, pstdev
from typing import Dict, List, Optional, Sequence, Tuple

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from core.storage import TransactionStore
from core.utils import normalize_description
from models.transaction import CONFIDENCE_RANK, Confidence, Frequency, RecurringPattern, Transaction

log = get_logger("analysis/recurring")

# (frequency, min mean interval, max mean interval, days to next occurrence)
FREQUENCY_BANDS: Tuple[Tuple[Frequency, float, float, int], ...] = (
    ("MONTHLY", 28, 32, 30),
    ("BIWEEKLY", 13, 15, 14),
    ("WEEKLY", 6, 8, 7),
    ("DAILY", 0.8, 1.2, 1),
)

MATCH_AMOUNT_TOLERANCE = 0.2


def classify_frequency(avg_interval_days: float) -> Frequency:
    for frequency, low, high, _ in FREQUENCY_BANDS:
        if low <= avg_interval_days <= high:
            return frequency
    return "UNKNOWN"


def next_expected_date(last_date: datetime, frequency: Frequency) -> Optional[datetime]:
    for band, _, _, step in FREQUENCY_BANDS:
        if band == frequency:
            return last_date + timedelta(days=step)
    return None


def score_confidence(occurrences: int, amount_cv: float, interval_std: float, frequency: Frequency) -> Confidence:
    """
    HIGH: 3+ occurrences, CV < 0.1, interval std < 3 days, known frequency.
    MEDIUM: 2+ occurrences, CV < 0.2, interval std < 5 days, known frequency.
    Anything else is LOW.
    """
    if frequency == "UNKNOWN":
        return "LOW"
    if occurrences >= 3 and amount_cv < 0.1 and interval_std < 3:
        return "HIGH"
    if occurrences >= 2 and amount_cv < 0.2 and interval_std < 5:
        return "MEDIUM"
    return "LOW"


def analyze_group(transactions: Sequence[Transaction]) -> Optional[RecurringPattern]:
    """Build a pattern from one description/category/source group; None below two rows."""
    if len(transactions) < 2:
        return None

    ordered = sorted(transactions, key=lambda tx: tx.date)
    amounts = [tx.amount for tx in ordered]
    avg_amount = mean(amounts)
    amount_cv = pstdev(amounts) / avg_amount if avg_amount > 0 else math.inf

    intervals = [
        (later.date - earlier.date).total_seconds() / 86400
        for earlier, later in zip(ordered, ordered[1:])
    ]
    avg_interval = mean(intervals)
    interval_std = pstdev(intervals)

    frequency = classify_frequency(avg_interval)
    confidence = score_confidence(len(ordered), amount_cv, interval_std, frequency)
    first = ordered[0]

    return RecurringPattern(
        description=first.description,
        normalizedDescription=normalize_description(first.description),
        category=first.category,
        source=first.source,
        averageAmount=round(avg_amount, 2),
        amountCoefficient=amount_cv,
        averageIntervalDays=avg_interval,
        intervalStdDevDays=interval_std,
        frequency=frequency,
        confidence=confidence,
        occurrences=ordered,
        totalOccurrences=len(ordered),
        nextExpectedDate=next_expected_date(ordered[-1].date, frequency),
    )


class RecurringDetector:
    def __init__(self, store: TransactionStore, cfg: Optional[AppConfig] = None):
        self.store = store
        self.cfg = cfg or default_config

    def detect(
        self,
        user_id: str,
        lookback_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[RecurringPattern]:
        """
        Find recurring patterns in the user's last ``lookback_days``.

        Returns:
            HIGH and MEDIUM patterns, HIGH first; LOW groups are dropped

        Raises:
            ValueError: If ``lookback_days`` is not positive
        """
        lookback_days = lookback_days if lookback_days is not None else self.cfg.recurring_lookback_days
        if lookback_days <= 0:
            raise ValueError(f"lookback_days must be positive, got {lookback_days}")

        now = now or datetime.now()
        rows = self.store.query(user_id, now - timedelta(days=lookback_days), None, order_by="date")

        groups: Dict[Tuple[str, str, str], List[Transaction]] = defaultdict(list)
        for tx in rows:
            groups[(normalize_description(tx.description), tx.category, tx.source)].append(tx)

        patterns = []
        for group in groups.values():
            pattern = analyze_group(group)
            if pattern is not None and pattern.confidence != "LOW":
                patterns.append(pattern)

        patterns.sort(key=lambda p: CONFIDENCE_RANK[p.confidence], reverse=True)
        log.info(
            f"Recurring detection for user={user_id}: {len(rows)} transaction(s), "
            f"{len(groups)} group(s), {len(patterns)} pattern(s)"
        )
        return patterns

    @staticmethod
    def match_pattern(transaction: Transaction, patterns: Sequence[RecurringPattern]) -> Optional[RecurringPattern]:
        """
        First pattern the transaction belongs to.

        A match needs normalized-description containment (either way), an
        amount strictly within 20% of the pattern average and the same category.
        """
        description = normalize_description(transaction.description)
        for pattern in patterns:
            if not (description in pattern.normalizedDescription or pattern.normalizedDescription in description):
                continue
            if pattern.averageAmount <= 0:
                continue
            if abs(transaction.amount - pattern.averageAmount) / pattern.averageAmount >= MATCH_AMOUNT_TOLERANCE:
                continue
            if transaction.category != pattern.category:
                continue
            return pattern
        return None
