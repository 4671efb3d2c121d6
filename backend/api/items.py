"""Item API endpoints: inspection, account discovery, unlinking and transaction sync."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.helpers import get_or_404, item_response_dict
from api.plaid import get_plaid_client
from database import get_db
from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from integrations.provider_protocol import ProviderTransaction
from models import Account, PlaidItem
from schemas import (
    AccountResponse,
    ItemResponse,
    SyncedTransaction,
    SyncSummaryResponse,
    SyncTransactionsResponse,
)
from services.item_service import ItemService
from services.ledger_service import AccountOwnershipError
from services.sync_errors import (
    ItemUnavailable,
    ProviderUnavailable,
    StoreWriteFailed,
    SyncAlreadyInProgress,
    SyncCancelled,
    SyncError,
)
from services.transaction_sync_service import SyncSummary, TransactionSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/items", tags=["items"])


def get_transaction_sync_service(
    client: PlaidClient = Depends(get_plaid_client),
) -> TransactionSyncService:
    """Dependency for the sync engine, built around the injected Plaid client."""
    return TransactionSyncService(provider=client)


def sync_error_status(error: SyncError) -> int:
    """Map a sync failure to the HTTP status returned to the caller."""
    if isinstance(error, ItemUnavailable):
        return 404 if error.reason == ItemUnavailable.NOT_FOUND else 403
    if isinstance(error, SyncAlreadyInProgress):
        return 409
    if isinstance(error, ProviderUnavailable):
        return 504 if error.timeout else 502
    if isinstance(error, (StoreWriteFailed, SyncCancelled)):
        return 503
    # UnknownAccount: integrity fault that needs investigation
    return 500


def _synced(records: list[ProviderTransaction]) -> list[SyncedTransaction]:
    return [SyncedTransaction.model_validate(r) for r in records]


def _sync_response(summary: SyncSummary) -> SyncTransactionsResponse:
    page = summary.last_page
    return SyncTransactionsResponse(
        item_id=summary.item_id,
        added=_synced(page.added) if page else [],
        modified=_synced(page.modified) if page else [],
        removed=[r.transaction_id for r in page.removed] if page else [],
        next_cursor=summary.next_cursor,
        has_more=page.has_more if page else False,
        summary=SyncSummaryResponse(
            added_count=summary.added_count,
            modified_count=summary.modified_count,
            removed_count=summary.removed_count,
            pages=summary.pages,
        ),
    )


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(item_id: str, db: Session = Depends(get_db)):
    """Get a linked Item (without its access token)."""
    item = get_or_404(db, PlaidItem, item_id, detail=f"Item not found: {item_id}")
    return item_response_dict(item)


@router.get("/{item_id}/accounts", response_model=list[AccountResponse])
def list_item_accounts(item_id: str, db: Session = Depends(get_db)):
    """List the accounts discovered under an Item."""
    get_or_404(db, PlaidItem, item_id, detail=f"Item not found: {item_id}")
    return (
        db.query(Account)
        .filter(Account.item_id == item_id)
        .order_by(Account.name)
        .all()
    )


@router.post("/{item_id}/accounts/refresh", response_model=list[AccountResponse])
def refresh_item_accounts(
    item_id: str,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
):
    """Re-run account discovery for an Item."""
    item = get_or_404(db, PlaidItem, item_id, detail=f"Item not found: {item_id}")
    try:
        accounts = ItemService(client).refresh_accounts(db, item)
        db.commit()
    except ProviderError as e:
        db.rollback()
        logger.warning("Account refresh failed for item %s: %s", item_id, e)
        raise HTTPException(status_code=502, detail="Failed to fetch accounts from Plaid")
    except AccountOwnershipError as e:
        db.rollback()
        logger.warning("Account refresh conflict for item %s: %s", item_id, e)
        raise HTTPException(status_code=409, detail=str(e))
    return accounts


@router.delete("/{item_id}")
def remove_item(
    item_id: str,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
):
    """Unlink an Item: revoke it with Plaid, then delete it with its ledger data."""
    item = get_or_404(db, PlaidItem, item_id, detail=f"Item not found: {item_id}")
    try:
        with TransactionSyncService.hold_item(item_id):
            ItemService(client).unlink_item(db, item)
            db.commit()
    except SyncAlreadyInProgress:
        raise HTTPException(status_code=409, detail="Transaction sync in progress for this item")

    TransactionSyncService.forget_item(item_id)
    return {"status": "ok", "item_id": item_id}


@router.post("/{item_id}/sync-transactions", response_model=SyncTransactionsResponse)
def sync_transactions(
    item_id: str,
    db: Session = Depends(get_db),
    sync_service: TransactionSyncService = Depends(get_transaction_sync_service),
):
    """Pull every pending transaction change for an Item into the ledger.

    Returns the last page's records plus aggregate counts for the run.

    Raises:
        HTTPException:
            - 403 Forbidden: Item revoked or missing its credential
            - 404 Not Found: Item does not exist
            - 409 Conflict: A sync for this Item is already running
            - 500 Internal Server Error: A record references an unknown account
            - 502 Bad Gateway / 504 Gateway Timeout: Plaid call failed
            - 503 Service Unavailable: Ledger write failed; safe to retry
    """
    try:
        summary = sync_service.sync_item(db, item_id)
    except SyncError as e:
        status_code = sync_error_status(e)
        if status_code >= 500 and not e.retriable:
            logger.error("Transaction sync failed for item %s: %s", item_id, e)
        else:
            logger.warning("Transaction sync failed for item %s: %s", item_id, e)
        raise HTTPException(status_code=status_code, detail=e.context())

    return _sync_response(summary)
