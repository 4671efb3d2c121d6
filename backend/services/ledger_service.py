"""Ledger service - natural-key upserts and deletes for accounts and transactions."""

import logging

from sqlalchemy.orm import Session

from integrations.provider_protocol import ProviderAccount, ProviderTransaction
from models import Account, PlaidItem, Transaction
from models.utils import utcnow

logger = logging.getLogger(__name__)


class AccountOwnershipError(ValueError):
    """A Plaid account id is already attached to a different Item."""

    def __init__(self, plaid_account_id: str, owner_item_id: str):
        self.plaid_account_id = plaid_account_id
        self.owner_item_id = owner_item_id
        super().__init__(f"Account {plaid_account_id} already belongs to item {owner_item_id}")


class TransactionOwnershipError(ValueError):
    """A Plaid transaction id is already stored under a different Item."""

    def __init__(self, plaid_transaction_id: str, owner_item_id: str):
        self.plaid_transaction_id = plaid_transaction_id
        self.owner_item_id = owner_item_id
        super().__init__(f"Transaction {plaid_transaction_id} already belongs to item {owner_item_id}")


class LedgerService:
    """Reconciles provider records into the accounts and transactions tables.

    Every write flushes so a following read in the same session sees it.
    Committing is the caller's job: the sync engine commits once per page,
    the API layer commits for account discovery.
    """

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    @staticmethod
    def upsert_account(db: Session, item: PlaidItem, remote: ProviderAccount) -> Account:
        """Insert or update an account keyed by its Plaid account id.

        An account id is globally unique, so a row already attached to a
        different Item is an error rather than something to re-parent.
        """
        existing = (
            db.query(Account)
            .filter(Account.plaid_account_id == remote.id)
            .first()
        )
        if existing is not None and existing.item_id != item.id:
            raise AccountOwnershipError(remote.id, existing.item_id)

        account = existing
        if account is None:
            account = Account(item_id=item.id, plaid_account_id=remote.id)
            db.add(account)

        account.name = remote.name
        account.official_name = remote.official_name
        account.mask = remote.mask
        account.type = remote.type
        account.subtype = remote.subtype
        account.current_balance = remote.current_balance
        account.available_balance = remote.available_balance
        account.iso_currency_code = remote.iso_currency_code
        account.unofficial_currency_code = remote.unofficial_currency_code
        account.updated_at = utcnow()

        db.flush()
        return account

    def upsert_accounts(
        self, db: Session, item: PlaidItem, remote_accounts: list[ProviderAccount]
    ) -> list[Account]:
        """Upsert every account in ``remote_accounts`` for ``item``."""
        upserted = [self.upsert_account(db, item, remote) for remote in remote_accounts]
        if upserted:
            logger.info("Item %s: %d accounts upserted", item.id, len(upserted))
        return upserted

    @staticmethod
    def get_item_accounts(db: Session, item_id: str) -> dict[str, Account]:
        """Map Plaid account id to Account for every account under the Item."""
        accounts = db.query(Account).filter(Account.item_id == item_id).all()
        return {a.plaid_account_id: a for a in accounts}

    @staticmethod
    def find_item_account(db: Session, item_id: str, plaid_account_id: str) -> Account | None:
        return (
            db.query(Account)
            .filter(
                Account.item_id == item_id,
                Account.plaid_account_id == plaid_account_id,
            )
            .first()
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @staticmethod
    def _find_transaction(db: Session, plaid_transaction_id: str) -> tuple[Transaction, str] | None:
        """Look up a transaction by Plaid id together with its owning Item id."""
        return (
            db.query(Transaction, Account.item_id)
            .join(Account, Transaction.account_id == Account.id)
            .filter(Transaction.plaid_transaction_id == plaid_transaction_id)
            .first()
        )

    def upsert_transaction(self, db: Session, account: Account, record: ProviderTransaction) -> str:
        """Insert or update a transaction keyed by its Plaid transaction id.

        All mutable fields are overwritten with the provider's values and
        ``updated_at`` is touched, so replaying the same record is harmless.
        The account may change, but only between accounts of the same Item.

        Returns:
            The internal id of the stored row.

        Raises:
            TransactionOwnershipError: The id is stored under another Item.
        """
        found = self._find_transaction(db, record.transaction_id)
        txn = None
        if found is not None:
            txn, owner_item_id = found
            if owner_item_id != account.item_id:
                raise TransactionOwnershipError(record.transaction_id, owner_item_id)

        if txn is None:
            txn = Transaction(plaid_transaction_id=record.transaction_id)
            db.add(txn)
        elif not txn.pending and record.pending:
            # Plaid should only ever settle a pending transaction. Apply the
            # provider's view anyway and leave a trail for investigation.
            logger.warning(
                "Transaction %s moved from settled back to pending",
                record.transaction_id,
            )

        txn.account_id = account.id
        txn.transaction_type = record.transaction_type
        txn.name = record.name
        txn.amount = record.amount
        txn.iso_currency_code = record.iso_currency_code
        txn.unofficial_currency_code = record.unofficial_currency_code
        txn.date = record.date
        txn.pending = record.pending
        txn.category = record.category
        txn.account_owner = record.account_owner
        txn.updated_at = utcnow()

        db.flush()
        return txn.id

    def delete_transaction_by_plaid_id(
        self, db: Session, item_id: str, plaid_transaction_id: str
    ) -> bool:
        """Hard-delete one of ``item_id``'s transactions by Plaid id.

        A row stored under a different Item is left alone.

        Returns:
            True if a row was deleted, False if the Item has none (not an error).
        """
        found = self._find_transaction(db, plaid_transaction_id)
        if found is None:
            logger.debug("Removed transaction %s was not stored", plaid_transaction_id)
            return False
        txn, owner_item_id = found
        if owner_item_id != item_id:
            logger.warning(
                "Item %s reported removal of transaction %s owned by item %s; ignored",
                item_id, plaid_transaction_id, owner_item_id,
            )
            return False
        db.delete(txn)
        db.flush()
        return True
