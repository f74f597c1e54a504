#!/usr/bin/env python3
"""
Test script for duplicate transaction detection.

This script verifies:
1. HIGH confidence for a near-identical transaction within an hour
2. MEDIUM confidence for a similar transaction later in the window
3. LOW (not a duplicate) across sources, users, amounts and descriptions
4. Duplicate-group clustering over recent history

Usage:
    python scripts/test_duplicate_detection.py
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from analysis.duplicates import DuplicateDetector, amounts_match
from core.storage import InMemoryTransactionStore
from models.transaction import TransactionCreate
from fakes import make_config, make_transaction

T0 = datetime(2024, 12, 2, 12, 0)


def _candidate(amount=500.0, description="SWIGGY order", source="UPI", date=T0, user_id="user-1"):
    return TransactionCreate(
        userId=user_id, amount=amount, description=description, category="Food", source=source, date=date
    )


def test_high_confidence_within_hour():
    print("\n=== Test 1: HIGH within 1 hour ===")
    stored = make_transaction(500.0, "SWIGGY order", date=T0 - timedelta(minutes=30))
    detector = DuplicateDetector(InMemoryTransactionStore([stored]), make_config())

    result = detector.check(_candidate())

    assert result.isDuplicate
    assert result.confidence == "HIGH"
    assert [tx.id for tx in result.similarTransactions] == [stored.id]
    assert "₹500.00" in result.reason
    print(f"✅ PASS: {result.reason}")


def test_medium_confidence_twenty_hours_apart():
    print("\n=== Test 2: at most MEDIUM 20 hours apart ===")
    stored = make_transaction(500.0, "SWIGGY order", date=T0 - timedelta(hours=20))
    detector = DuplicateDetector(InMemoryTransactionStore([stored]), make_config())

    result = detector.check(_candidate())

    assert result.isDuplicate
    assert result.confidence == "MEDIUM"
    assert "24 hours" in result.reason
    print(f"✅ PASS: {result.reason}")


def test_partial_overlap_is_medium_even_when_close():
    print("\n=== Test 3: similar but not very similar ===")
    stored = make_transaction(500.0, "SWIGGY order bangalore food", date=T0 - timedelta(minutes=5))
    detector = DuplicateDetector(InMemoryTransactionStore([stored]), make_config())

    # 2 of 4 words shared: similar (0.5) but not very similar (0.8)
    result = detector.check(_candidate(description="swiggy order mumbai snacks"))
    assert result.confidence == "MEDIUM"
    print("✅ PASS: overlap 0.5 gives MEDIUM")


def test_substring_description_within_hour_is_high():
    print("\n=== Test 3b: substring description within 1 hour ===")
    stored = make_transaction(500.0, "SWIGGY", date=T0 - timedelta(minutes=10))
    detector = DuplicateDetector(InMemoryTransactionStore([stored]), make_config())

    # No 0.8 word overlap, but one description contains the other
    result = detector.check(_candidate(description="SWIGGY ORDER"))
    assert result.isDuplicate
    assert result.confidence == "HIGH"
    print("✅ PASS: containment counts as very similar")


def test_check_is_repeatable():
    stored = make_transaction(500.0, "SWIGGY order", date=T0 - timedelta(minutes=30))
    store = InMemoryTransactionStore([stored])
    detector = DuplicateDetector(store, make_config())

    first = detector.check(_candidate())
    second = detector.check(_candidate())
    assert first == second
    assert len(store.query()) == 1
    print("✅ PASS: check does not change the store or its answer")


def test_not_duplicates():
    print("\n=== Test 4: LOW cases ===")
    rows = [
        make_transaction(500.0, "SWIGGY order", source="HDFC CARD", date=T0 - timedelta(minutes=10)),
        make_transaction(500.0, "SWIGGY order", user_id="user-2", date=T0 - timedelta(minutes=10)),
        make_transaction(560.0, "SWIGGY order", date=T0 - timedelta(minutes=10)),
        make_transaction(500.0, "UBER trip", date=T0 - timedelta(minutes=10)),
        make_transaction(500.0, "SWIGGY order", date=T0 - timedelta(hours=30)),
        make_transaction(500.0, "SWIGGY order", date=T0 + timedelta(minutes=10)),
    ]
    detector = DuplicateDetector(InMemoryTransactionStore(rows), make_config())

    result = detector.check(_candidate())
    assert not result.isDuplicate
    assert result.confidence == "LOW"
    assert result.similarTransactions == []
    assert "₹500.00" in result.reason and "24 hours" in result.reason
    print("✅ PASS: source, user, amount, description and window all respected")


def test_amount_tolerance():
    print("\n=== Test 5: 1% relative amount tolerance ===")
    assert amounts_match(500.0, 500.0)
    assert amounts_match(500.0, 504.0)
    assert not amounts_match(500.0, 510.0)
    assert not amounts_match(500.0, 0.0)
    # Relative to the candidate amount, not the stored one
    assert amounts_match(100.0, 99.005)
    assert not amounts_match(99.005, 100.0)
    assert not amounts_match(0.0, 0.0)
    print("✅ PASS: amount tolerance")


def test_candidate_cap_and_order():
    print("\n=== Test 6: newest first, at most 10 ===")
    rows = [
        make_transaction(500.0, "SWIGGY order", date=T0 - timedelta(hours=h))
        for h in range(1, 15)
    ]
    detector = DuplicateDetector(InMemoryTransactionStore(rows), make_config())
    result = detector.check(_candidate())

    dates = [tx.date for tx in result.similarTransactions]
    assert len(dates) == 10
    assert dates == sorted(dates, reverse=True)
    assert dates[0] == T0 - timedelta(hours=1)
    print("✅ PASS: candidate list capped and ordered")


def test_invalid_window():
    print("\n=== Test 7: non-positive window ===")
    detector = DuplicateDetector(InMemoryTransactionStore(), make_config())
    try:
        detector.check(_candidate(), window_hours=0)
    except ValueError:
        print("✅ PASS: ValueError raised")
        return
    raise AssertionError("Expected ValueError for window_hours=0")


def test_duplicate_groups():
    print("\n=== Test 8: duplicate groups ===")
    now = datetime(2024, 12, 20, 12, 0)
    rows = [
        # Same day pair -> HIGH
        make_transaction(299.0, "Netflix subscription", "Entertainment", date=datetime(2024, 12, 10, 9, 0)),
        make_transaction(299.0, "Netflix subscription", "Entertainment", date=datetime(2024, 12, 10, 18, 0)),
        # Four days apart -> MEDIUM
        make_transaction(1200.0, "Electricity bill", "Bills", date=datetime(2024, 12, 1)),
        make_transaction(1200.0, "Electricity bill", "Bills", date=datetime(2024, 12, 5)),
        # Too far apart
        make_transaction(80.0, "Metro card", "Transport", date=datetime(2024, 11, 25)),
        make_transaction(80.0, "Metro card", "Transport", date=datetime(2024, 12, 15)),
        # Outside the 30-day window
        make_transaction(50.0, "Tea", date=datetime(2024, 11, 1)),
        make_transaction(50.0, "Tea", date=datetime(2024, 11, 1)),
    ]
    detector = DuplicateDetector(InMemoryTransactionStore(rows), make_config())
    groups = detector.find_duplicate_groups("user-1", days=30, now=now)

    by_description = {g.transactions[0].description: g for g in groups}
    assert set(by_description) == {"Netflix subscription", "Electricity bill"}
    assert by_description["Netflix subscription"].confidence == "HIGH"
    assert by_description["Electricity bill"].confidence == "MEDIUM"
    assert "4.0 days" in by_description["Electricity bill"].reason
    first, second = by_description["Electricity bill"].transactions
    assert first.date < second.date
    print(f"✅ PASS: {len(groups)} groups found")


def run_all_tests():
    print("=" * 60)
    print("DUPLICATE DETECTION TESTS")
    print("=" * 60)
    test_high_confidence_within_hour()
    test_medium_confidence_twenty_hours_apart()
    test_partial_overlap_is_medium_even_when_close()
    test_substring_description_within_hour_is_high()
    test_check_is_repeatable()
    test_not_duplicates()
    test_amount_tolerance()
    test_candidate_cap_and_order()
    test_invalid_window()
    test_duplicate_groups()
    print("\n" + "=" * 60)
    print("✅ ALL TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    try:
        run_all_tests()
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        sys.exit(1)
