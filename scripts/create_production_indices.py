#!/usr/bin/env python3
"""
Create the SpendWise transactions index in Elastic Cloud.

Run once per environment before deploying so the first SMS write does not
race index creation.

Usage:
    python scripts/create_production_indices.py [--env production] [--recreate]
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
from loguru import logger


def create_indices(environment: str, recreate: bool = False) -> bool:
    # Environment overlay must be in place before AppConfig reads it
    load_dotenv(f".env.{environment}", override=True)

    from core.config import AppConfig
    from core.secrets import load_secrets_into_config
    from elastic.client import es
    from elastic.indexer import drop_transactions_index, ensure_transactions_index

    cfg = AppConfig(environment=environment)
    load_secrets_into_config(cfg)
    index = cfg.elastic_index_transactions

    logger.info(f"🔧 Preparing '{index}' on {cfg.elastic_cloud_endpoint} ({cfg.environment})")

    try:
        client = es(cfg)
    except Exception as e:
        logger.error(f"❌ Elastic Cloud unreachable: {e}")
        return False

    try:
        if recreate:
            drop_transactions_index(client, index)
        created = ensure_transactions_index(client, index)
        docs = client.count(index=index)["count"]
    except Exception as e:
        logger.error(f"❌ Index setup failed for '{index}': {e}")
        return False

    state = "created" if created else "already present"
    logger.info(f"✅ Index '{index}' {state}, {docs} document(s)")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--env", default="production", choices=["development", "staging", "production"])
    parser.add_argument("--recreate", action="store_true", help="Drop the index first (deletes all documents)")
    args = parser.parse_args()
    return 0 if create_indices(args.env, args.recreate) else 1


if __name__ == "__main__":
    sys.exit(main())
