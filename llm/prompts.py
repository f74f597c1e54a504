"""Prompt templates for the text oracle agents."""
from __future__ import annotations
import json
from typing import Any, Dict

from core.utils import format_currency
from models.transaction import CATEGORIES

CATEGORIZATION_PROMPT = """Categorize this transaction into one of these categories: {categories}.

Transaction: {description}
{context}
Important rules:
- Credit card bill payments (like payments to American Express, CRED Club, or any credit card company) should be categorized as "Bills".
- ATM cash withdrawals (transactions with "withdrawn at ATM" or "cash withdrawal") should be categorized as "Cash".

Respond with ONLY the category name, nothing else."""

INSIGHTS_PROMPT = """You are a personal finance advisor. Generate 4-5 concise, actionable financial insights based on this spending summary:

Total Spending: {total}
Category Breakdown: {by_category}
Top Transactions:
{top_transactions}

Provide insights that are:
1. Specific and data-driven
2. Actionable (suggest what to do)
3. Contextual (consider Indian spending patterns)
4. Encouraging but honest

Respond with ONLY a JSON array of strings. Example: ["insight 1", "insight 2", "insight 3", "insight 4"]
Do not include any other text, just the JSON array."""


def build_categorization_prompt(payload: Dict[str, Any]) -> str:
    context_lines = []
    if payload.get("rawText"):
        context_lines.append(f"Full SMS: {payload['rawText']}")
    if payload.get("amount") is not None:
        context_lines.append(f"Amount: {format_currency(float(payload['amount']))}")
    if payload.get("channel"):
        context_lines.append(f"Payment Method: {payload['channel']}")

    return CATEGORIZATION_PROMPT.format(
        categories=", ".join(CATEGORIES),
        description=payload.get("description", ""),
        context="\n".join(context_lines) + ("\n" if context_lines else ""),
    )


def build_insights_prompt(payload: Dict[str, Any]) -> str:
    top = payload.get("topTransactions") or []
    top_lines = [
        f"- {format_currency(float(tx['amount']))} at {tx.get('description', '')} ({tx.get('category', '')})"
        for tx in top[:3]
    ]
    return INSIGHTS_PROMPT.format(
        total=format_currency(float(payload.get("total", 0.0))),
        by_category=json.dumps(payload.get("byCategory", {}), indent=2),
        top_transactions="\n".join(top_lines) if top_lines else "None",
    )


PROMPT_BUILDERS = {
    "categorization-agent": build_categorization_prompt,
    "insights-agent": build_insights_prompt,
}
