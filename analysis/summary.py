"""
Spending summaries and insight generation.

Summaries are computed with pandas from an in-memory list of transactions;
insights come from the text oracle, with rule-based fallbacks.
"""
from __future__ import annotations
from typing import List, Literal, Optional, Sequence

import pandas as pd

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from llm.oracle import TextOracle, UnconfiguredTextOracle
from models.oracle import InsightsPayload, OracleSuccess
from models.transaction import SpendingSummary, Transaction

log = get_logger("analysis/summary")

Period = Literal["week", "month"]

WEEKLY_TOP_N = 3
MONTHLY_TOP_N = 10
WEEKLY_INSIGHT_CAP = 5
DEFAULT_INSIGHT_CAP = 4
FALLBACK_INSIGHT_CAP = 4
DIVERSE_CATEGORY_COUNT = 5


def _to_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"category": tx.category, "amount": tx.amount} for tx in transactions],
        columns=["category", "amount"],
    )


def summarize(transactions: Sequence[Transaction], top_n: int = WEEKLY_TOP_N) -> SpendingSummary:
    """
    Total, per-category totals and the ``top_n`` largest transactions.

    Ties in amount keep the input order.

    Raises:
        ValueError: If ``top_n`` is negative
    """
    if top_n < 0:
        raise ValueError(f"top_n must be non-negative, got {top_n}")
    if not transactions:
        return SpendingSummary(total=0.0, byCategory={}, topTransactions=[])

    df = _to_frame(transactions)
    by_category = df.groupby("category", sort=False)["amount"].sum()

    order = df["amount"].sort_values(ascending=False, kind="mergesort").index[:top_n]
    top = [transactions[i] for i in order]

    return SpendingSummary(
        total=float(df["amount"].sum()),
        byCategory={str(k): float(v) for k, v in by_category.items()},
        topTransactions=top,
    )


def fallback_insights(summary: SpendingSummary, period: Period = "week", high_spending_threshold: float = 20000.0) -> List[str]:
    """Rule-based insights used when the oracle cannot answer; at most four."""
    insights: List[str] = []
    period_label = f"this {period}"

    if summary.total > 0 and summary.byCategory:
        top_category, top_amount = max(summary.byCategory.items(), key=lambda kv: kv[1])
        share = top_amount / summary.total
        if share > 0.5:
            insights.append(f"Your highest spending category is {top_category} at {share * 100:.1f}% of total.")
        else:
            insights.append(f"Your highest spending category is {top_category} ({share * 100:.1f}% of total).")

    if summary.total > high_spending_threshold:
        insights.append(
            f"Your total spend is quite high {period_label} at ₹{summary.total:.2f}, "
            f"consider reducing discretionary expenses."
        )
    elif summary.total > 0:
        insights.append(f"Your total spending {period_label} is ₹{summary.total:.2f}.")

    if summary.topTransactions:
        biggest = summary.topTransactions[0]
        insights.append(f"Your biggest transaction was ₹{biggest.amount:.2f} in {biggest.category}.")

    category_count = len(summary.byCategory)
    if category_count >= DIVERSE_CATEGORY_COUNT:
        insights.append(f"You spent across {category_count} different categories {period_label}.")

    return insights[:FALLBACK_INSIGHT_CAP]


class SummaryAggregator:
    def __init__(self, oracle: Optional[TextOracle] = None, cfg: Optional[AppConfig] = None):
        self.oracle = oracle or UnconfiguredTextOracle()
        self.cfg = cfg or default_config

    def summarize(self, transactions: Sequence[Transaction], top_n: int = WEEKLY_TOP_N) -> SpendingSummary:
        summary = summarize(transactions, top_n)
        log.debug(f"Summarized {len(transactions)} transaction(s): total={summary.total:.2f}")
        return summary

    def insights(self, summary: SpendingSummary, cap: int = DEFAULT_INSIGHT_CAP, period: Period = "week") -> List[str]:
        """
        Short insight strings for a summary.

        The oracle answer is used when it is a non-empty list of non-empty
        strings, truncated to ``cap``; otherwise the rule-based fallback.
        """
        if cap <= 0:
            raise ValueError(f"cap must be positive, got {cap}")

        payload = summary.model_dump(mode="json")
        result = self.oracle.invoke("insights-agent", payload)
        if isinstance(result, OracleSuccess) and isinstance(result.payload, InsightsPayload):
            items = result.payload.insights
            if items and all(isinstance(item, str) and item for item in items):
                return items[:cap]
            log.warning("Oracle insights were empty or contained blank entries; using rules")

        return fallback_insights(summary, period, self.cfg.high_spending_threshold)[:cap]
