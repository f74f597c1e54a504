from __future__ import annotations
import argparse
import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Optional

# --- Ensure project root is in path ---
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

# --- Import core setup ---
from core.config import config
from core.logger import get_logger
from core.secrets import load_secrets_into_config
from core.storage import get_transaction_store
from elastic.client import health_check
from ingestion.sms_parser import parse_sms
from llm.oracle import build_text_oracle
from analysis.categorizer import Categorizer
from services.report_service import ReportService
from services.transaction_service import TransactionService

log = get_logger("main")


def verify_environment() -> None:
    """Check environment prerequisites and load runtime secrets."""
    log.info(f"Starting SpendWise in '{config.environment}' mode")

    required_dirs = [config.data_dir, config.logs_dir]
    for d in required_dirs:
        if not d.exists():
            log.warning(f"Creating missing directory: {d}")
            d.mkdir(parents=True, exist_ok=True)

    load_secrets_into_config(config)

    if config.elastic_configured:
        health = health_check(config)
        if not health["healthy"]:
            log.warning(f"⚠️  Elasticsearch cluster status: {health['status']}")
    else:
        log.warning("⚠️  ELASTIC_CLOUD_ENDPOINT / ELASTIC_API_KEY not set, using the in-memory store")
    if not config.oracle_configured:
        log.warning("⚠️  GCP_PROJECT_ID not set or oracle disabled, categorization and insights use rules")


def _print_json(value: Any) -> None:
    if isinstance(value, list):
        value = [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in value]
    elif hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    print(json.dumps(value, indent=2, ensure_ascii=False, default=str))


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def _parse_period(value: str):
    if value == "all":
        return value
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number of months or 'all', got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="spendwise", description="SpendWise transaction analysis")
    parser.add_argument("--user", default=config.sms_default_user_id, help="User ID (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse an SMS without storing it")
    p.add_argument("text")
    p.add_argument("--sender")

    p = sub.add_parser("ingest", help="Parse an SMS and store the transaction")
    p.add_argument("text")
    p.add_argument("--sender")

    p = sub.add_parser("weekly", help="Weekly summary report")
    p.add_argument("week_start", type=_parse_date)

    p = sub.add_parser("monthly", help="Monthly summary report")
    p.add_argument("year", type=int)
    p.add_argument("month", type=int)

    p = sub.add_parser("recurring", help="Detect recurring transactions")
    p.add_argument("--days", type=int, default=config.recurring_lookback_days)

    p = sub.add_parser("duplicates", help="Find groups of likely duplicates")
    p.add_argument("--days", type=int, default=config.duplicate_group_days)

    p = sub.add_parser("trends", help="Spending trends")
    p.add_argument("--period", type=_parse_period, default=3, help="Months (1, 3, 6, 12) or 'all'")
    p.add_argument("--category")
    p.add_argument("--by-month", action="store_true", help="Monthly series for --category")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    verify_environment()

    if args.command == "parse":
        parsed = parse_sms(args.text, args.sender, now=datetime.now())
        _print_json({"parsed": parsed.model_dump(mode="json") if parsed else None, "isValid": parsed is not None})
        return 0

    store = get_transaction_store(config)
    oracle = build_text_oracle(config)

    if args.command == "ingest":
        parsed = parse_sms(args.text, args.sender, now=datetime.now())
        if parsed is None:
            _print_json({"success": False, "reason": "Not a transaction SMS"})
            return 1
        service = TransactionService(store, Categorizer(oracle, config), cfg=config)
        transaction, duplicate_check = service.create_from_sms(parsed, args.user)
        _print_json({
            "success": True,
            "transaction": transaction.model_dump(mode="json"),
            "duplicateCheck": duplicate_check.model_dump(mode="json") if duplicate_check else None,
        })
        return 0

    reports = ReportService(store, oracle, config)
    if args.command == "weekly":
        _print_json(reports.weekly(args.user, args.week_start))
    elif args.command == "monthly":
        _print_json(reports.monthly(args.user, args.year, args.month))
    elif args.command == "recurring":
        _print_json(reports.recurring(args.user, args.days))
    elif args.command == "duplicates":
        _print_json(reports.duplicates(args.user, args.days))
    elif args.command == "trends":
        if args.by_month:
            if not args.category:
                log.error("--by-month requires --category")
                return 2
            _print_json(reports.category_trends(args.user, args.category, args.period))
        else:
            _print_json(reports.trends(args.user, args.period, args.category))
    return 0


if __name__ == "__main__":
    sys.exit(main())
