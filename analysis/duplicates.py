"""
Duplicate transaction detection.

Advisory only: results are logged and returned to the caller, never used to
block a write. Two entry points:
- check(): does this candidate look like something already stored?
- find_duplicate_groups(): clusters of likely duplicates over recent history
"""
from __future__ import annotations
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from core.storage import TransactionStore
from core.utils import descriptions_match, format_currency, normalize_description
from models.transaction import DuplicateCheckResult, DuplicateGroup, Transaction, TransactionCreate

log = get_logger("analysis/duplicates")

AMOUNT_TOLERANCE = 0.01
MAX_CANDIDATES = 10
SIMILAR_THRESHOLD = 0.5
VERY_SIMILAR_THRESHOLD = 0.8
EXACT_WINDOW = timedelta(hours=1)
GROUP_KEY_DESCRIPTION_CHARS = 20
GROUP_MAX_SPAN_DAYS = 7.0


def amounts_match(candidate_amount: float, stored_amount: float) -> bool:
    """Within 1% of the candidate amount; a zero or negative candidate never matches."""
    if candidate_amount <= 0:
        return False
    return abs(stored_amount - candidate_amount) / candidate_amount < AMOUNT_TOLERANCE


class DuplicateDetector:
    def __init__(self, store: TransactionStore, cfg: Optional[AppConfig] = None):
        self.store = store
        self.cfg = cfg or default_config

    def check(
        self,
        candidate: TransactionCreate,
        user_id: Optional[str] = None,
        window_hours: Optional[int] = None,
    ) -> DuplicateCheckResult:
        """
        Compare a not-yet-stored transaction with the user's recent history.

        Args:
            candidate: Transaction about to be created
            user_id: Owner (defaults to ``candidate.userId``)
            window_hours: Look-back window ending at ``candidate.date``

        Returns:
            DuplicateCheckResult with HIGH/MEDIUM (duplicate) or LOW (not)

        Raises:
            ValueError: If ``window_hours`` is not positive
        """
        user_id = user_id or candidate.userId
        window_hours = window_hours if window_hours is not None else self.cfg.duplicate_window_hours
        if window_hours <= 0:
            raise ValueError(f"window_hours must be positive, got {window_hours}")

        window_start = candidate.date - timedelta(hours=window_hours)
        rows = self.store.query(
            user_id,
            window_start,
            candidate.date,
            source=candidate.source,
            order_by="date",
            descending=True,
        )
        candidates = [tx for tx in rows if amounts_match(candidate.amount, tx.amount)][:MAX_CANDIDATES]

        normalized = normalize_description(candidate.description)
        similar: List[Transaction] = []
        exact = False
        for tx in candidates:
            other = normalize_description(tx.description)
            if not descriptions_match(normalized, other, SIMILAR_THRESHOLD):
                continue
            similar.append(tx)
            if abs(candidate.date - tx.date) <= EXACT_WINDOW and descriptions_match(
                normalized, other, VERY_SIMILAR_THRESHOLD
            ):
                exact = True

        amount_str = format_currency(candidate.amount)
        if not similar:
            return DuplicateCheckResult(
                isDuplicate=False,
                confidence="LOW",
                similarTransactions=[],
                reason=f"No transaction of {amount_str} with a similar description within {window_hours} hours",
            )

        if exact:
            return DuplicateCheckResult(
                isDuplicate=True,
                confidence="HIGH",
                similarTransactions=similar,
                reason=(
                    f"Exact duplicate found: same amount ({amount_str}), similar description "
                    f"and same source within 1 hour"
                ),
            )

        return DuplicateCheckResult(
            isDuplicate=True,
            confidence="MEDIUM",
            similarTransactions=similar,
            reason=(
                f"Potential duplicate: same amount ({amount_str}) and similar description "
                f"within {window_hours} hours"
            ),
        )

    def find_duplicate_groups(
        self,
        user_id: str,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[DuplicateGroup]:
        """
        Cluster the last ``days`` of a user's transactions into likely duplicates.

        Transactions share a group when amount, source and the first 20
        characters of the normalized description are equal. Groups of two or
        more spanning at most 7 days are reported: HIGH within one day,
        MEDIUM otherwise.
        """
        days = days if days is not None else self.cfg.duplicate_group_days
        if days <= 0:
            raise ValueError(f"days must be positive, got {days}")

        now = now or datetime.now()
        rows = self.store.query(user_id, now - timedelta(days=days), None, order_by="date", descending=True)

        groups: Dict[Tuple[float, str, str], List[Transaction]] = defaultdict(list)
        for tx in rows:
            key = (tx.amount, tx.source, normalize_description(tx.description)[:GROUP_KEY_DESCRIPTION_CHARS])
            groups[key].append(tx)

        result: List[DuplicateGroup] = []
        for group in groups.values():
            if len(group) < 2:
                continue
            ordered = sorted(group, key=lambda tx: tx.date)
            span_days = (ordered[-1].date - ordered[0].date).total_seconds() / 86400
            if span_days > GROUP_MAX_SPAN_DAYS:
                continue
            result.append(DuplicateGroup(
                transactions=ordered,
                confidence="HIGH" if span_days <= 1 else "MEDIUM",
                reason=(
                    f"{len(ordered)} transactions with same amount ({format_currency(ordered[0].amount)}) "
                    f"and similar description within {span_days:.1f} days"
                ),
            ))

        log.info(f"Found {len(result)} duplicate group(s) for user={user_id} over {days} days")
        return result
