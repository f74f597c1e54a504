"""
Spending trend analytics.

Category trends (first vs. second half of the period), per-category
averages, peak weekdays and hours, and a monthly series for one category.
All aggregation is done on a pandas DataFrame built from store rows.
"""
from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional, Sequence, Union

import pandas as pd

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from core.storage import TransactionStore
from models.analytics import CategoryTrend, PeakSpending, PeriodRange, SpendingTrends, TimeBasedTrend
from models.transaction import Transaction

log = get_logger("analysis/trends")

PeriodMonths = Union[int, Literal["all"]]

ALL_TIME_START = datetime(2020, 1, 1)
STABLE_BAND_PCT = 5.0
NEW_CATEGORY_PCT = 100.0


def to_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {"date": tx.date, "createdAt": tx.createdAt, "category": tx.category, "amount": tx.amount}
            for tx in transactions
        ],
        columns=["date", "createdAt", "category", "amount"],
    )
    df["date"] = pd.to_datetime(df["date"])
    df["createdAt"] = pd.to_datetime(df["createdAt"])
    df["amount"] = df["amount"].astype(float)
    return df


def period_start(months: PeriodMonths, now: datetime) -> datetime:
    """Midnight ``months`` calendar months before ``now``; 2020-01-01 for "all"."""
    if months == "all":
        return ALL_TIME_START
    if not isinstance(months, int) or months <= 0:
        raise ValueError(f"period must be a positive number of months or 'all', got {months!r}")
    start = pd.Timestamp(now) - pd.DateOffset(months=months)
    return start.normalize().to_pydatetime()


def category_trends(df: pd.DataFrame, start: datetime, end: datetime) -> List[CategoryTrend]:
    """
    Per-category totals with a trend from the first to the second half of [start, end].

    A change beyond +/-5% is increasing/decreasing; a category with nothing
    in the first half but spend in the second counts as new (+100%).
    """
    if df.empty:
        return []

    mid = start + (end - start) / 2
    trends: List[CategoryTrend] = []

    for category, group in df.groupby("category", sort=False):
        total = float(group["amount"].sum())
        first_half = float(group.loc[group["date"] < mid, "amount"].sum())
        second_half = float(group.loc[group["date"] >= mid, "amount"].sum())

        change = 0.0
        trend = "stable"
        if first_half > 0:
            change = (second_half - first_half) / first_half * 100
            if change > STABLE_BAND_PCT:
                trend = "increasing"
            elif change < -STABLE_BAND_PCT:
                trend = "decreasing"
        elif second_half > 0:
            change = NEW_CATEGORY_PCT
            trend = "increasing"

        trends.append(CategoryTrend(
            category=str(category),
            total=total,
            average=total / len(group),
            transactionCount=int(len(group)),
            trend=trend,
            percentageChange=round(change, 2),
        ))

    trends.sort(key=lambda t: t.total, reverse=True)
    return trends


def average_per_category(df: pd.DataFrame) -> dict:
    if df.empty:
        return {}
    means = df.groupby("category", sort=False)["amount"].mean()
    return {str(k): round(float(v), 2) for k, v in means.items()}


def _peaks(df: pd.DataFrame, key: pd.Series) -> pd.DataFrame:
    grouped = df.groupby(key, sort=False)["amount"].agg(["sum", "count"])
    return grouped.sort_values("sum", ascending=False, kind="mergesort")


def peak_spending_days(df: pd.DataFrame) -> List[PeakSpending]:
    if df.empty:
        return []
    grouped = _peaks(df, df["date"].dt.day_name().rename("day"))
    return [
        PeakSpending(
            dayOfWeek=str(day),
            total=round(float(row["sum"]), 2),
            transactionCount=int(row["count"]),
            averageTransaction=round(float(row["sum"]) / int(row["count"]), 2),
        )
        for day, row in grouped.iterrows()
    ]


def peak_spending_hours(df: pd.DataFrame) -> List[PeakSpending]:
    """Hour buckets use ingestion time; transaction dates carry no time of day."""
    if df.empty:
        return []
    grouped = _peaks(df, df["createdAt"].dt.hour.rename("hour"))
    return [
        PeakSpending(
            hourOfDay=int(hour),
            total=round(float(row["sum"]), 2),
            transactionCount=int(row["count"]),
            averageTransaction=round(float(row["sum"]) / int(row["count"]), 2),
        )
        for hour, row in grouped.iterrows()
    ]


def monthly_series(df: pd.DataFrame, category: str) -> List[TimeBasedTrend]:
    if df.empty:
        return []
    months = df["date"].dt.strftime("%Y-%m").rename("month")
    grouped = df.groupby(months)["amount"].agg(["sum", "count"]).sort_index()
    return [
        TimeBasedTrend(
            period=str(month),
            total=float(row["sum"]),
            transactionCount=int(row["count"]),
            categories={category: float(row["sum"])},
        )
        for month, row in grouped.iterrows()
    ]


class TrendAnalyzer:
    def __init__(self, store: TransactionStore, cfg: Optional[AppConfig] = None):
        self.store = store
        self.cfg = cfg or default_config

    def spending_trends(
        self,
        user_id: str,
        months: PeriodMonths = 3,
        category: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SpendingTrends:
        """
        Spending analytics for the last ``months`` months (or all time).

        Args:
            user_id: Owner
            months: 1, 3, 6, 12 or any positive month count, or "all"
            category: Optional category filter
            now: End of the period (defaults to the current time)
        """
        end = now or datetime.now()
        start = period_start(months, end)
        rows = self.store.query(user_id, start, end, category=category, order_by="date")
        df = to_frame(rows)

        log.info(f"Spending trends for user={user_id}: {len(rows)} transaction(s) from {start.date()} to {end.date()}")
        return SpendingTrends(
            categoryTrends=category_trends(df, start, end),
            averageSpendingPerCategory=average_per_category(df),
            peakSpendingDays=peak_spending_days(df),
            peakSpendingHours=peak_spending_hours(df),
            totalSpending=float(df["amount"].sum()) if not df.empty else 0.0,
            totalTransactions=len(rows),
            period=PeriodRange(start=start.date(), end=end.date()),
        )

    def category_time_trends(
        self,
        user_id: str,
        category: str,
        months: PeriodMonths = 3,
        now: Optional[datetime] = None,
    ) -> List[TimeBasedTrend]:
        """Month-by-month totals for one category, oldest month first."""
        end = now or datetime.now()
        start = period_start(months, end)
        rows = self.store.query(user_id, start, end, category=category, order_by="date")
        return monthly_series(to_frame(rows), category)
