#!/usr/bin/env python
"""Run a transaction sync for one Item from the command line.

Pages are committed as they arrive. Ctrl-C stops the run at the next page
boundary; pages already committed are kept and the next run resumes from
the stored cursor.

Usage:
    python -m scripts.sync_item <item_id>
    python -m scripts.sync_item <item_id> --reset-cursor
"""

import argparse
import logging
import sys
import threading
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from database import get_session_local
from integrations.plaid_client import PlaidClient
from logging_config import setup_logging
from models import PlaidItem
from services.sync_errors import SyncError
from services.transaction_sync_service import SyncSummary, TransactionSyncService

logger = logging.getLogger(__name__)


def reset_cursor(db, item_id: str) -> bool:
    """Clear an Item's stored cursor so the next sync starts from scratch."""
    item = db.get(PlaidItem, item_id)
    if item is None:
        return False
    item.transactions_cursor = None
    db.commit()
    return True


def run_sync(
    service: TransactionSyncService,
    db,
    item_id: str,
    cancel_event: threading.Event,
) -> SyncSummary:
    """Run the sync on a worker thread so Ctrl-C can request cancellation.

    Raises:
        SyncError: The run failed or was cancelled.
        Exception: Anything else the sync raised, re-raised unchanged.
    """
    outcome: dict = {}

    def _worker():
        try:
            outcome["summary"] = service.sync_item(db, item_id, cancel_event=cancel_event)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=_worker, name=f"sync-{item_id}")
    worker.start()
    try:
        while worker.is_alive():
            worker.join(timeout=0.5)
    except KeyboardInterrupt:
        print("\nCancelling after the current page...")
        cancel_event.set()
        worker.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["summary"]


def print_summary(summary: SyncSummary) -> None:
    print(f"Item {summary.item_id}: {summary.pages} page(s) committed, {summary.total_changes} change(s)")
    print(f"  added:    {summary.added_count}")
    print(f"  modified: {summary.modified_count}")
    print(f"  removed:  {summary.removed_count}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync Plaid transactions for one Item")
    parser.add_argument("item_id", help="Internal id of the Item to sync")
    parser.add_argument(
        "--reset-cursor",
        action="store_true",
        help="Clear the stored cursor first and re-sync the full history",
    )
    args = parser.parse_args(argv)

    setup_logging()

    client = PlaidClient()
    if not client.is_configured():
        print("Error: Plaid is not configured.")
        print("Run scripts/setup_plaid.py or check your .env file.")
        return 1

    db = get_session_local()()
    try:
        if args.reset_cursor:
            if not reset_cursor(db, args.item_id):
                print(f"Error: Item not found: {args.item_id}")
                return 1
            print("Cursor cleared.")

        service = TransactionSyncService(provider=client)
        try:
            summary = run_sync(service, db, args.item_id, threading.Event())
        except SyncError as e:
            print(f"Sync failed ({e.kind}): {e}")
            print(f"  pages committed: {e.pages_committed}")
            print(f"  retriable: {'yes' if e.retriable else 'no'}")
            return 1
        except Exception as e:
            logger.exception("Unexpected error syncing item %s", args.item_id)
            print(f"Sync failed (unexpected {type(e).__name__}): {e}")
            return 1

        print_summary(summary)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
