#!/usr/bin/env python3
"""
Reconcile deposits that never received a terminal callback.

Polls the provider for every non-terminal deposit older than the cutoff and
applies what it reports, exactly as the payment-status endpoint does.
Meant to run from cron.

Usage:
    python scripts/reconcile_pending.py
    python scripts/reconcile_pending.py --older-than 30
"""

import argparse
import asyncio
import logging
import sys

from app.config import settings
from app.database import async_session_maker, close_db
from app.gateways.pawapay import PawaPayGateway
from app.repositories.sqlalchemy_storage import SqlAlchemyStorage
from app.services.notification_service import notification_service
from app.services.reconciliation_service import ReconciliationEngine


async def run(older_than: int) -> int:
    engine = ReconciliationEngine(SqlAlchemyStorage(async_session_maker), PawaPayGateway(), notification_service)
    try:
        report = await engine.reconcile_stale_deposits(older_than_minutes=older_than)
    finally:
        await notification_service.close()
        await close_db()

    print(f"Checked:   {report.checked}")
    print(f"Applied:   {report.applied}")
    print(f"Unchanged: {report.unchanged}")
    print(f"Errors:    {report.errors}")
    return 1 if report.errors else 0


def main():
    parser = argparse.ArgumentParser(description="Reconcile stale mobile money deposits")
    parser.add_argument(
        "--older-than",
        type=int,
        default=settings.stale_deposit_minutes,
        help="Only deposits created at least this many minutes ago",
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(run(args.older_than)))


if __name__ == "__main__":
    main()
