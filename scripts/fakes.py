"""
Test doubles shared by the scripts/test_*.py suites.

Nothing here touches the network: the oracle is a stub, clocks are fixed,
and transactions are built in memory.
"""
from __future__ import annotations
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import AppConfig
from core.utils import make_id
from llm.oracle import TextOracle, parse_oracle_text
from models.oracle import OracleFailure, OracleResult
from models.transaction import Transaction


def make_config(**overrides) -> AppConfig:
    """Config with every external collaborator switched off."""
    settings = {
        "environment": "test",
        "gcp_project_id": None,
        "oracle_enabled": False,
        "elastic_cloud_endpoint": None,
        "elastic_api_key": None,
        "sms_webhook_enabled": True,
        "sms_webhook_key": "test-key",
    }
    settings.update(overrides)
    return AppConfig(**settings)


class StubOracle(TextOracle):
    """
    Oracle that answers from canned raw text per agent.

    ``responses`` maps agent name to the raw text the model would have
    returned; it goes through the real response normalization. A missing
    agent yields an "unavailable" failure.
    """

    def __init__(self, responses: Optional[Dict[str, str]] = None):
        self.responses = responses or {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def invoke(self, agent: str, payload: Dict[str, Any]) -> OracleResult:
        self.calls.append((agent, payload))
        if agent not in self.responses:
            return OracleFailure(agent=agent, reason="ConnectionError: unavailable")
        return parse_oracle_text(agent, self.responses[agent])


class FixedClock:
    """Monotonic clock replacement that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_transaction(
    amount: float,
    description: str,
    category: str = "Food",
    source: str = "UPI",
    date: Optional[datetime] = None,
    user_id: str = "user-1",
    created_at: Optional[datetime] = None,
) -> Transaction:
    date = date or datetime(2024, 12, 2)
    return Transaction(
        id=make_id(),
        userId=user_id,
        amount=amount,
        description=description,
        category=category,
        source=source,
        date=date,
        createdAt=created_at or date,
    )
