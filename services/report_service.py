"""Weekly / monthly summary reports and pattern reports."""
from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import List, Optional

from core.config import AppConfig, config as default_config
from core.logger import get_logger
from core.storage import TransactionStore
from analysis.duplicates import DuplicateDetector
from analysis.recurring import RecurringDetector
from analysis.summary import (
    DEFAULT_INSIGHT_CAP,
    MONTHLY_TOP_N,
    WEEKLY_INSIGHT_CAP,
    WEEKLY_TOP_N,
    SummaryAggregator,
)
from analysis.trends import PeriodMonths, TrendAnalyzer
from llm.oracle import TextOracle
from models.analytics import SpendingTrends, TimeBasedTrend
from models.transaction import DuplicateGroup, RecurringPattern, SummaryReport

log = get_logger("services/report_service")


def _midnight(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the next month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class ReportService:
    def __init__(
        self,
        store: TransactionStore,
        oracle: Optional[TextOracle] = None,
        cfg: Optional[AppConfig] = None,
    ):
        self.cfg = cfg or default_config
        self.store = store
        self.aggregator = SummaryAggregator(oracle, self.cfg)
        self.recurring_detector = RecurringDetector(store, self.cfg)
        self.duplicate_detector = DuplicateDetector(store, self.cfg)
        self.trend_analyzer = TrendAnalyzer(store, self.cfg)

    def weekly(self, user_id: str, week_start: date) -> SummaryReport:
        """Summary of [week_start, week_start + 7 days): top 3, up to 5 insights."""
        end = week_start + timedelta(days=7)
        rows = self.store.query(
            user_id, _midnight(week_start), _midnight(end),
            order_by="amount", descending=True, inclusive_end=False,
        )
        summary = self.aggregator.summarize(rows, WEEKLY_TOP_N)
        insights = self.aggregator.insights(summary, WEEKLY_INSIGHT_CAP, "week")
        log.info(f"Weekly report for user={user_id} starting {week_start}: {len(rows)} transaction(s)")
        return SummaryReport(periodStart=week_start, periodEnd=end, summary=summary, insights=insights)

    def monthly(self, user_id: str, year: int, month: int) -> SummaryReport:
        """Summary of one calendar month: top 10, up to 4 insights."""
        start, end = month_bounds(year, month)
        rows = self.store.query(
            user_id, _midnight(start), _midnight(end),
            order_by="amount", descending=True, inclusive_end=False,
        )
        summary = self.aggregator.summarize(rows, MONTHLY_TOP_N)
        insights = self.aggregator.insights(summary, DEFAULT_INSIGHT_CAP, "month")
        log.info(f"Monthly report for user={user_id} {year}-{month:02d}: {len(rows)} transaction(s)")
        return SummaryReport(periodStart=start, periodEnd=end, summary=summary, insights=insights)

    def recurring(self, user_id: str, lookback_days: Optional[int] = None, now: Optional[datetime] = None) -> List[RecurringPattern]:
        return self.recurring_detector.detect(user_id, lookback_days, now=now)

    def duplicates(self, user_id: str, days: Optional[int] = None, now: Optional[datetime] = None) -> List[DuplicateGroup]:
        return self.duplicate_detector.find_duplicate_groups(user_id, days, now=now)

    def trends(
        self,
        user_id: str,
        months: PeriodMonths = 3,
        category: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SpendingTrends:
        return self.trend_analyzer.spending_trends(user_id, months, category, now=now)

    def category_trends(
        self,
        user_id: str,
        category: str,
        months: PeriodMonths = 3,
        now: Optional[datetime] = None,
    ) -> List[TimeBasedTrend]:
        return self.trend_analyzer.category_time_trends(user_id, category, months, now=now)
