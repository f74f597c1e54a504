"""Spending-trend analytics models."""
from __future__ import annotations
from datetime import date
from typing import Dict, List, Literal

from pydantic import BaseModel, Field

TrendDirection = Literal["increasing", "decreasing", "stable"]


class CategoryTrend(BaseModel):
    category: str
    total: float
    average: float
    transactionCount: int
    trend: TrendDirection
    percentageChange: float = Field(..., description="Second half vs. first half of the period, in percent")


class PeakSpending(BaseModel):
    """Spend bucketed by weekday or by hour of day."""
    dayOfWeek: str = ""
    hourOfDay: int = 0
    total: float
    transactionCount: int
    averageTransaction: float


class TimeBasedTrend(BaseModel):
    period: str = Field(..., description="Calendar month, YYYY-MM")
    total: float
    transactionCount: int
    categories: Dict[str, float] = Field(default_factory=dict)


class PeriodRange(BaseModel):
    start: date
    end: date


class SpendingTrends(BaseModel):
    categoryTrends: List[CategoryTrend] = Field(default_factory=list)
    averageSpendingPerCategory: Dict[str, float] = Field(default_factory=dict)
    peakSpendingDays: List[PeakSpending] = Field(default_factory=list)
    peakSpendingHours: List[PeakSpending] = Field(default_factory=list)
    totalSpending: float = 0.0
    totalTransactions: int = 0
    period: PeriodRange
