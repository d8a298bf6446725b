#!/usr/bin/env python3
# scripts/purge_orders.py
"""
Delete every order and detail order in the configured database.

Usage:
    python scripts/purge_orders.py --yes
"""
import argparse
import os
import sys

import structlog

# Add the project root to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ris.core.logging_config import configure_json_logging  # noqa: E402
from ris.db.session import SessionLocal  # noqa: E402
from ris.services.order_service import OrderService  # noqa: E402

logger = structlog.get_logger("purge_orders")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete ALL orders and detail orders.")
    parser.add_argument("--yes", action="store_true", help="Confirm the purge. Without it nothing is deleted.")
    args = parser.parse_args(argv)

    configure_json_logging("ris-purge-orders", disable_existing_loggers=False)

    if not args.yes:
        logger.warning("PURGE_NOT_CONFIRMED", hint="re-run with --yes")
        return 2

    db = SessionLocal()
    try:
        result = OrderService(db).purge_all_orders()
    finally:
        db.close()

    logger.info("PURGE_COMPLETE", **result.data)
    return 0


if __name__ == "__main__":
    sys.exit(main())
