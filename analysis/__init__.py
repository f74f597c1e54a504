"""Transaction pattern analysis."""
from .categorizer import Categorizer, categorize_by_rules
from .duplicates import DuplicateDetector
from .recurring import RecurringDetector
from .summary import SummaryAggregator, summarize
from .trends import TrendAnalyzer

__all__ = [
    "Categorizer",
    "categorize_by_rules",
    "DuplicateDetector",
    "RecurringDetector",
    "SummaryAggregator",
    "summarize",
    "TrendAnalyzer",
]
