#!/usr/bin/env python3
"""
Test script for recurring transaction detection.

Usage:
    python scripts/test_recurring_detection.py
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from analysis.recurring import RecurringDetector, analyze_group, classify_frequency, score_confidence
from core.storage import InMemoryTransactionStore
from fakes import make_config, make_transaction

NOW = datetime(2024, 12, 31, 12, 0)


def _monthly_rent():
    dates = [datetime(2024, 9, 1)]
    for gap in (30, 31, 29):
        dates.append(dates[-1] + timedelta(days=gap))
    return [make_transaction(15000.0, "House Rent", "Rent", "HDFC NETBANKING", date=d) for d in dates]


def test_monthly_high_confidence():
    print("\n=== Test 1: monthly rent, HIGH ===")
    rows = _monthly_rent()
    detector = RecurringDetector(InMemoryTransactionStore(rows), make_config())
    patterns = detector.detect("user-1", lookback_days=150, now=NOW)

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.frequency == "MONTHLY"
    assert pattern.confidence == "HIGH"
    assert pattern.totalOccurrences == 4
    assert pattern.averageAmount == 15000.0
    assert pattern.nextExpectedDate == rows[-1].date + timedelta(days=30)
    assert pattern.normalizedDescription == "house rent"
    print(f"✅ PASS: next expected {pattern.nextExpectedDate.date()}")


def test_two_occurrences_with_high_variance_excluded():
    print("\n=== Test 2: two rows, amount variance > 20% ===")
    rows = [
        make_transaction(400.0, "Gym", "Other", date=datetime(2024, 11, 1)),
        make_transaction(650.0, "Gym", "Other", date=datetime(2024, 12, 1)),
    ]
    detector = RecurringDetector(InMemoryTransactionStore(rows), make_config())
    assert detector.detect("user-1", now=NOW) == []
    print("✅ PASS: unstable pair dropped")


def test_two_occurrences_stable_is_medium():
    print("\n=== Test 3: two stable weekly rows ===")
    rows = [
        make_transaction(199.0, "Spotify", "Entertainment", date=datetime(2024, 12, 10)),
        make_transaction(199.0, "Spotify", "Entertainment", date=datetime(2024, 12, 17)),
    ]
    detector = RecurringDetector(InMemoryTransactionStore(rows), make_config())
    patterns = detector.detect("user-1", now=NOW)
    assert len(patterns) == 1
    assert patterns[0].frequency == "WEEKLY"
    assert patterns[0].confidence == "MEDIUM"
    assert patterns[0].nextExpectedDate == datetime(2024, 12, 24)
    print("✅ PASS: two-row group reaches MEDIUM only")


def test_grouping_and_ordering():
    print("\n=== Test 4: groups split by category/source, HIGH first ===")
    weekly = [
        make_transaction(120.0, "Milk delivery", "Groceries", date=datetime(2024, 12, 1) + timedelta(days=7 * i))
        for i in range(2)
    ]
    rows = weekly + _monthly_rent() + [
        # Same description, other source: its own group of one
        make_transaction(15000.0, "House Rent", "Rent", "UPI", date=datetime(2024, 12, 15)),
        # Other user
        make_transaction(120.0, "Milk delivery", "Groceries", date=datetime(2024, 12, 22), user_id="user-2"),
    ]
    detector = RecurringDetector(InMemoryTransactionStore(rows), make_config())
    patterns = detector.detect("user-1", lookback_days=150, now=NOW)

    assert [p.confidence for p in patterns] == ["HIGH", "MEDIUM"]
    assert patterns[0].normalizedDescription == "house rent"
    assert patterns[0].source == "HDFC NETBANKING"
    assert patterns[1].totalOccurrences == 2
    print("✅ PASS: grouping key and confidence ordering")


def test_lookback_window():
    print("\n=== Test 5: lookback window ===")
    detector = RecurringDetector(InMemoryTransactionStore(_monthly_rent()), make_config())
    # Only the Nov 1 and Nov 30 payments fall in a 61-day window
    patterns = detector.detect("user-1", lookback_days=61, now=NOW)
    assert len(patterns) == 1
    assert patterns[0].totalOccurrences == 2
    assert patterns[0].confidence == "MEDIUM"
    print("✅ PASS: older rows ignored")


def test_classification_helpers():
    print("\n=== Test 6: frequency bands and confidence ===")
    assert classify_frequency(30.0) == "MONTHLY"
    assert classify_frequency(14.0) == "BIWEEKLY"
    assert classify_frequency(7.0) == "WEEKLY"
    assert classify_frequency(1.0) == "DAILY"
    assert classify_frequency(10.0) == "UNKNOWN"
    assert score_confidence(5, 0.0, 0.0, "UNKNOWN") == "LOW"
    assert score_confidence(3, 0.05, 2.0, "MONTHLY") == "HIGH"
    assert score_confidence(3, 0.15, 2.0, "MONTHLY") == "MEDIUM"
    assert score_confidence(3, 0.15, 6.0, "MONTHLY") == "LOW"
    assert analyze_group([make_transaction(10.0, "x")]) is None
    print("✅ PASS: helpers")


def test_match_pattern():
    print("\n=== Test 7: match_pattern ===")
    detector = RecurringDetector(InMemoryTransactionStore(_monthly_rent()), make_config())
    patterns = detector.detect("user-1", lookback_days=150, now=NOW)

    hit = make_transaction(16000.0, "house rent december", "Rent", date=datetime(2024, 12, 30))
    assert detector.match_pattern(hit, patterns) is patterns[0]

    too_expensive = make_transaction(19000.0, "House Rent", "Rent")
    wrong_category = make_transaction(15000.0, "House Rent", "Bills")
    unrelated = make_transaction(15000.0, "Laptop EMI", "Rent")
    for tx in (too_expensive, wrong_category, unrelated):
        assert detector.match_pattern(tx, patterns) is None
    print("✅ PASS: description, amount and category all required")


def test_match_amount_bound_is_exclusive():
    detector = RecurringDetector(InMemoryTransactionStore(_monthly_rent()), make_config())
    patterns = detector.detect("user-1", lookback_days=150, now=NOW)

    assert detector.match_pattern(make_transaction(17999.0, "House Rent", "Rent"), patterns) is patterns[0]
    assert detector.match_pattern(make_transaction(18000.0, "House Rent", "Rent"), patterns) is None
    assert detector.match_pattern(make_transaction(12000.0, "House Rent", "Rent"), patterns) is None
    print("✅ PASS: exactly 20% off the average does not match")


def test_detect_is_repeatable():
    store = InMemoryTransactionStore(_monthly_rent())
    detector = RecurringDetector(store, make_config())

    first = detector.detect("user-1", lookback_days=150, now=NOW)
    second = detector.detect("user-1", lookback_days=150, now=NOW)
    assert first == second
    assert len(store.query()) == 4
    print("✅ PASS: same input, same patterns, store untouched")


def run_all_tests():
    print("=" * 60)
    print("RECURRING DETECTION TESTS")
    print("=" * 60)
    test_monthly_high_confidence()
    test_two_occurrences_with_high_variance_excluded()
    test_two_occurrences_stable_is_medium()
    test_grouping_and_ordering()
    test_lookback_window()
    test_classification_helpers()
    test_match_pattern()
    test_match_amount_bound_is_exclusive()
    test_detect_is_repeatable()
    print("\n✅ ALL TESTS PASSED")


if __name__ == "__main__":
    try:
        run_all_tests()
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        sys.exit(1)
