"""Transaction sync service - cursor-based incremental sync of one Plaid Item."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from integrations.exceptions import ProviderError
from integrations.provider_protocol import TransactionsProvider, TransactionsSyncPage
from models import PlaidItem
from models.plaid_item import ITEM_STATUS_ERROR, ITEM_STATUS_LINKED, ITEM_STATUS_REVOKED
from models.utils import utcnow
from services.cursor_store import CursorStore
from services.ledger_service import AccountOwnershipError, LedgerService, TransactionOwnershipError
from services.sync_errors import (
    ItemUnavailable,
    ProviderUnavailable,
    StoreWriteFailed,
    SyncAlreadyInProgress,
    SyncCancelled,
    SyncError,
    UnknownAccount,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncSummary:
    """Aggregate result of a successful multi-page sync run."""

    item_id: str
    added_count: int = 0
    modified_count: int = 0
    removed_count: int = 0
    pages: int = 0
    next_cursor: str | None = None
    last_page: TransactionsSyncPage | None = None

    @property
    def total_changes(self) -> int:
        return self.added_count + self.modified_count + self.removed_count


@dataclass
class _PageCounts:
    added: int
    modified: int
    removed: int


class TransactionSyncService:
    """Synchronizes an Item's transactions from the provider into the ledger.

    Each page is reconciled and committed together with its continuation
    cursor, so the stored cursor never runs ahead of the stored ledger. A
    failed run leaves the cursor at the last committed page boundary and a
    retry re-applies the interrupted page idempotently.
    """

    # Class-level registry shared across all instances so two requests for
    # the same Item never interleave. Process-local: multi-worker deployments
    # need a database or Redis lock instead.
    _registry_lock = threading.Lock()
    _item_locks: dict[str, threading.Lock] = {}

    def __init__(
        self,
        provider: TransactionsProvider,
        ledger: Optional[LedgerService] = None,
        cursor_store: Optional[CursorStore] = None,
        max_consecutive_failures: Optional[int] = None,
    ):
        """Initialize with an explicitly constructed provider client.

        Args:
            provider: Client implementing the TransactionsProvider protocol.
            ledger: Ledger store; a default LedgerService if None.
            cursor_store: Cursor store; a default CursorStore if None.
            max_consecutive_failures: Failed runs in a row before the Item
                is marked ``error``. Defaults to the configured value.
        """
        self._provider = provider
        self._ledger = ledger or LedgerService()
        self._cursors = cursor_store or CursorStore()
        self._max_failures = (
            max_consecutive_failures
            if max_consecutive_failures is not None
            else settings.SYNC_MAX_CONSECUTIVE_FAILURES
        )

    # ------------------------------------------------------------------
    # Single-flight per item
    # ------------------------------------------------------------------

    @classmethod
    def _lock_for(cls, item_id: str) -> threading.Lock:
        with cls._registry_lock:
            lock = cls._item_locks.get(item_id)
            if lock is None:
                lock = threading.Lock()
                cls._item_locks[item_id] = lock
            return lock

    @classmethod
    def forget_item(cls, item_id: str) -> None:
        """Drop the registry entry for an Item that is gone, unless it is held."""
        with cls._registry_lock:
            lock = cls._item_locks.get(item_id)
            if lock is not None and not lock.locked():
                del cls._item_locks[item_id]

    @classmethod
    def is_sync_in_progress(cls, item_id: str) -> bool:
        """Check whether a sync run for ``item_id`` is currently active."""
        with cls._registry_lock:
            lock = cls._item_locks.get(item_id)
        return lock is not None and lock.locked()

    @classmethod
    @contextmanager
    def hold_item(cls, item_id: str):
        """Hold the Item's sync lock for the duration of the block.

        Raises:
            SyncAlreadyInProgress: The lock is already held.
        """
        lock = cls._lock_for(item_id)
        if not lock.acquire(blocking=False):
            raise SyncAlreadyInProgress(
                f"Transaction sync already in progress for item {item_id}",
                item_id=item_id,
            )
        try:
            yield
        finally:
            lock.release()

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def sync_item(
        self,
        db: Session,
        item_id: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncSummary:
        """Run a full incremental sync for one Item.

        Args:
            db: Database session. Committed once per reconciled page.
            item_id: Internal id of the Item to sync.
            cancel_event: Optional event; when set, the run stops at the next
                page boundary with SyncCancelled.

        Returns:
            SyncSummary with counts summed across all pages.

        Raises:
            SyncAlreadyInProgress: Another run for this Item is active.
            ItemUnavailable: Item missing, revoked, or without a credential.
            ProviderUnavailable: Provider call failed (retriable).
            UnknownAccount: A record references an account unknown to the Item.
            StoreWriteFailed: A ledger/cursor write failed (retriable).
            SyncCancelled: ``cancel_event`` was set between pages.
        """
        try:
            with self.hold_item(item_id):
                return self._run(db, item_id, cancel_event)
        except ItemUnavailable as e:
            if e.reason == ItemUnavailable.NOT_FOUND:
                self.forget_item(item_id)
            raise

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def _run(
        self,
        db: Session,
        item_id: str,
        cancel_event: Optional[threading.Event],
    ) -> SyncSummary:
        try:
            item = self._load_item(db, item_id)
        except StoreWriteFailed as e:
            self._record_failure(db, item_id, e)
            raise
        access_token = item.access_token
        summary = SyncSummary(item_id=item_id, next_cursor=item.transactions_cursor or None)

        logger.info(
            "Starting transaction sync for item %s (%s)",
            item_id,
            "resuming" if summary.next_cursor else "from start",
        )

        has_more = True
        try:
            while has_more:
                if cancel_event is not None and cancel_event.is_set():
                    raise SyncCancelled(
                        f"Transaction sync for item {item_id} cancelled",
                        item_id=item_id,
                        cursor=summary.next_cursor,
                        pages_committed=summary.pages,
                    )

                cursor = self._read_cursor(db, item_id, summary)
                page = self._fetch_page(access_token, cursor, item_id, summary)
                counts = self._apply_page(db, item, page, summary)

                summary.added_count += counts.added
                summary.modified_count += counts.modified
                summary.removed_count += counts.removed
                summary.pages += 1
                summary.next_cursor = page.next_cursor or None
                summary.last_page = page
                has_more = page.has_more

                if page.is_empty:
                    logger.debug(
                        "Item %s page %d committed with no changes, has_more=%s",
                        item_id, summary.pages, has_more,
                    )
                else:
                    logger.info(
                        "Item %s page %d committed: %d added, %d modified, %d removed, has_more=%s",
                        item_id, summary.pages, counts.added, counts.modified, counts.removed, has_more,
                    )
        except SyncError as e:
            self._record_failure(db, item_id, e)
            raise

        self._record_success(db, item_id)
        logger.info(
            "Transaction sync for item %s complete: %d changes (%d added, %d modified, %d removed) over %d pages",
            item_id, summary.total_changes, summary.added_count, summary.modified_count,
            summary.removed_count, summary.pages,
        )
        return summary

    def _load_item(self, db: Session, item_id: str) -> PlaidItem:
        try:
            item = db.get(PlaidItem, item_id)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreWriteFailed(
                f"Failed to load item {item_id}: {e}",
                item_id=item_id,
            ) from e
        if item is None:
            raise ItemUnavailable(f"Item not found: {item_id}", item_id=item_id)
        if item.status == ITEM_STATUS_REVOKED:
            raise ItemUnavailable(
                f"Item {item_id} has been revoked",
                item_id=item_id,
                reason=ItemUnavailable.REVOKED,
                cursor=item.transactions_cursor,
            )
        if not item.access_token:
            raise ItemUnavailable(
                f"Item {item_id} has no access credential",
                item_id=item_id,
                reason=ItemUnavailable.NO_CREDENTIAL,
                cursor=item.transactions_cursor,
            )
        return item

    def _read_cursor(self, db: Session, item_id: str, summary: SyncSummary) -> str | None:
        try:
            return self._cursors.get_cursor(db, item_id)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreWriteFailed(
                f"Failed to read cursor for item {item_id}: {e}",
                item_id=item_id,
                cursor=summary.next_cursor,
                pages_committed=summary.pages,
            ) from e

    def _fetch_page(
        self,
        access_token: str,
        cursor: str | None,
        item_id: str,
        summary: SyncSummary,
    ) -> TransactionsSyncPage:
        try:
            return self._provider.sync_transactions(access_token, cursor)
        except ProviderError as e:
            raise ProviderUnavailable(
                f"{e.provider_name or 'Provider'} sync failed for item {item_id}: {e}",
                item_id=item_id,
                error_code=e.error_code,
                timeout=e.is_timeout,
                cursor=cursor,
                pages_committed=summary.pages,
            ) from e

    # ------------------------------------------------------------------
    # Page reconciliation
    # ------------------------------------------------------------------

    def _apply_page(
        self,
        db: Session,
        item: PlaidItem,
        page: TransactionsSyncPage,
        summary: SyncSummary,
    ) -> _PageCounts:
        """Reconcile one page and commit it together with its cursor.

        Any failure rolls back the whole page, leaving the previously
        committed cursor in place.
        """
        item_id = item.id
        committed_cursor = summary.next_cursor
        try:
            if page.accounts:
                self._ledger.upsert_accounts(db, item, page.accounts)
            accounts = self._ledger.get_item_accounts(db, item_id)

            # Added and modified share the natural-key upsert path.
            for record in [*page.added, *page.modified]:
                account = accounts.get(record.account_id)
                if account is None:
                    account = self._ledger.find_item_account(db, item_id, record.account_id)
                if account is None:
                    raise UnknownAccount(
                        f"Transaction {record.transaction_id} references account "
                        f"{record.account_id}, which item {item_id} has not reported",
                        item_id=item_id,
                        account_id=record.account_id,
                        transaction_id=record.transaction_id,
                        cursor=committed_cursor,
                        pages_committed=summary.pages,
                    )
                self._ledger.upsert_transaction(db, account, record)

            for removed in page.removed:
                self._ledger.delete_transaction_by_plaid_id(db, item_id, removed.transaction_id)

            self._cursors.set_cursor(db, item_id, page.next_cursor)
            db.commit()
        except UnknownAccount:
            db.rollback()
            raise
        except AccountOwnershipError as e:
            db.rollback()
            raise UnknownAccount(
                f"Account {e.plaid_account_id} reported for item {item_id} "
                f"belongs to item {e.owner_item_id}",
                item_id=item_id,
                account_id=e.plaid_account_id,
                transaction_id="",
                cursor=committed_cursor,
                pages_committed=summary.pages,
            ) from e
        except TransactionOwnershipError as e:
            db.rollback()
            raise UnknownAccount(
                f"Transaction {e.plaid_transaction_id} reported for item {item_id} "
                f"belongs to item {e.owner_item_id}",
                item_id=item_id,
                account_id="",
                transaction_id=e.plaid_transaction_id,
                cursor=committed_cursor,
                pages_committed=summary.pages,
            ) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreWriteFailed(
                f"Failed to reconcile page for item {item_id}: {e}",
                item_id=item_id,
                cursor=committed_cursor,
                pages_committed=summary.pages,
            ) from e
        except Exception:
            db.rollback()
            raise

        return _PageCounts(
            added=len(page.added),
            modified=len(page.modified),
            removed=len(page.removed),
        )

    # ------------------------------------------------------------------
    # Item sync bookkeeping
    # ------------------------------------------------------------------

    def _record_success(self, db: Session, item_id: str) -> None:
        try:
            item = db.get(PlaidItem, item_id)
            if item is None:
                return
            item.sync_failure_count = 0
            item.last_sync_error = None
            item.last_synced_at = utcnow()
            if item.status == ITEM_STATUS_ERROR:
                item.status = ITEM_STATUS_LINKED
                logger.info("Item %s recovered; status reset to %s", item_id, ITEM_STATUS_LINKED)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Failed to record sync success for item %s", item_id, exc_info=True)

    def _record_failure(self, db: Session, item_id: str, error: SyncError) -> None:
        """Count a failed run and mark the Item ``error`` after repeated failures."""
        if isinstance(error, (SyncAlreadyInProgress, SyncCancelled)):
            return
        if isinstance(error, ItemUnavailable):
            logger.warning("Transaction sync for item %s not started: %s", item_id, error)
            return

        logger.warning(
            "Transaction sync for item %s failed (%s) at cursor %r after %d committed pages: %s",
            item_id, error.kind, error.cursor, error.pages_committed, error,
        )
        try:
            item = db.get(PlaidItem, item_id)
            if item is None:
                return
            item.sync_failure_count = (item.sync_failure_count or 0) + 1
            item.last_sync_error = f"{error.kind}: {error}"
            if (
                item.sync_failure_count >= self._max_failures
                and item.status == ITEM_STATUS_LINKED
            ):
                item.status = ITEM_STATUS_ERROR
                logger.error(
                    "Item %s marked %s after %d consecutive sync failures",
                    item_id, ITEM_STATUS_ERROR, item.sync_failure_count,
                )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Failed to record sync failure for item %s", item_id, exc_info=True)
