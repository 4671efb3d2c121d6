"""Cursor store - the per-Item ``/transactions/sync`` resume point."""

import logging

from sqlalchemy.orm import Session

from models import PlaidItem
from services.sync_errors import ItemUnavailable

logger = logging.getLogger(__name__)


class CursorStore:
    """Reads and stages the ``transactions_cursor`` column of an Item.

    ``set_cursor`` only stages the new value in the session. It becomes
    durable, and visible to other sessions, when the caller commits, which
    the sync engine does together with the page's ledger writes.
    """

    @staticmethod
    def _get_item(db: Session, item_id: str) -> PlaidItem:
        item = db.get(PlaidItem, item_id)
        if item is None:
            raise ItemUnavailable(f"Item not found: {item_id}", item_id=item_id)
        return item

    def get_cursor(self, db: Session, item_id: str) -> str | None:
        """Return the last committed cursor, or None to start from scratch."""
        return self._get_item(db, item_id).transactions_cursor or None

    def set_cursor(self, db: Session, item_id: str, cursor: str | None) -> None:
        """Stage ``cursor`` as the Item's resume point (uncommitted)."""
        item = self._get_item(db, item_id)
        item.transactions_cursor = cursor or None
        db.flush()
        logger.debug("Staged cursor for item %s", item_id)
