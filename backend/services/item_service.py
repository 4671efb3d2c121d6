"""Item service - linking, account discovery and unlinking of Plaid Items."""

import logging

from sqlalchemy.orm import Session

from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from models import Account, PlaidItem, User
from models.plaid_item import ITEM_STATUS_LINKED
from services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


class ItemService:
    """Service for the Item lifecycle around the transaction ledger.

    Methods flush but do not commit; the API layer owns the commit.
    """

    def __init__(self, client: PlaidClient, ledger: LedgerService | None = None):
        self._client = client
        self._ledger = ledger or LedgerService()

    def link_item(
        self,
        db: Session,
        user: User,
        public_token: str,
        institution_id: str | None = None,
        institution_name: str | None = None,
    ) -> tuple[PlaidItem, list[Account]]:
        """Exchange a Link public token and store the Item and its accounts.

        Re-linking the same institution for the same user updates the
        existing Item (new credential, status back to ``linked``) instead of
        creating a duplicate. The sync cursor is kept.

        Raises:
            ProviderError: The token exchange or account lookup failed.
        """
        result = self._client.exchange_public_token(public_token)
        plaid_item_id = result["item_id"]
        access_token = result["access_token"]

        item = (
            db.query(PlaidItem)
            .filter(PlaidItem.user_id == user.id, PlaidItem.plaid_item_id == plaid_item_id)
            .first()
        )
        if item:
            item.access_token = access_token
            item.status = ITEM_STATUS_LINKED
            item.sync_failure_count = 0
            item.last_sync_error = None
            if institution_id:
                item.institution_id = institution_id
            if institution_name:
                item.institution_name = institution_name
            logger.info("Updated item %s for user %s", item.id, user.id)
        else:
            item = PlaidItem(
                user_id=user.id,
                plaid_item_id=plaid_item_id,
                access_token=access_token,
                institution_id=institution_id,
                institution_name=institution_name,
                status=ITEM_STATUS_LINKED,
            )
            db.add(item)
            logger.info("Created item for user %s (%s)", user.id, institution_name or "unknown institution")
        db.flush()

        accounts = self.refresh_accounts(db, item)
        return item, accounts

    def refresh_accounts(self, db: Session, item: PlaidItem) -> list[Account]:
        """Run account discovery for an Item and upsert what Plaid reports."""
        remote_accounts = self._client.get_accounts(item.access_token)
        return self._ledger.upsert_accounts(db, item, remote_accounts)

    def unlink_item(self, db: Session, item: PlaidItem) -> None:
        """Revoke the Item with Plaid, then delete it locally.

        The local delete proceeds even if the remote revoke fails; the
        Item's accounts and transactions go with it.
        """
        try:
            self._client.remove_item(item.access_token)
        except ProviderError as e:
            logger.warning("Failed to remove Plaid item remotely (removing locally anyway): %s", e)

        item_id = item.id
        db.delete(item)
        db.flush()
        logger.info("Deleted item %s", item_id)
