"""Integration tests for the Item endpoints, including transaction sync."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from api.items import get_transaction_sync_service, sync_error_status
from integrations.exceptions import ProviderAPIError
from integrations.provider_protocol import TransactionsSyncPage
from main import app
from models import Account, PlaidItem, Transaction
from models.plaid_item import ITEM_STATUS_REVOKED
from services.ledger_service import LedgerService
from services.sync_errors import (
    ItemUnavailable,
    ProviderUnavailable,
    StoreWriteFailed,
    SyncAlreadyInProgress,
    SyncCancelled,
    UnknownAccount,
)
from services.transaction_sync_service import TransactionSyncService
from tests.fixtures.mocks import SAMPLE_PLAID_ACCOUNTS, make_account, make_removed, make_transaction


@pytest.fixture
def two_pages(mock_plaid_client):
    mock_plaid_client.pages = {
        None: TransactionsSyncPage(
            added=[make_transaction("t1", amount="10.00"), make_transaction("t2", amount="20.00")],
            next_cursor="c1",
            has_more=True,
            accounts=[make_account()],
        ),
        "c1": TransactionsSyncPage(
            modified=[make_transaction("t1", amount="12.50")],
            removed=[make_removed("t2")],
            next_cursor="c2",
            has_more=False,
        ),
    }
    return mock_plaid_client


class TestSyncTransactions:
    def test_sync_returns_last_page_and_summary(self, client, db, plaid_item, two_pages):
        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 200
        data = response.json()
        assert data["item_id"] == plaid_item.id
        assert data["nextCursor"] == "c2"
        assert data["hasMore"] is False
        assert data["added"] == []
        assert [t["transaction_id"] for t in data["modified"]] == ["t1"]
        assert Decimal(data["modified"][0]["amount"]) == Decimal("12.50")
        assert data["removed"] == ["t2"]
        assert data["summary"] == {
            "added_count": 2,
            "modified_count": 1,
            "removed_count": 1,
            "pages": 2,
        }

        stored = db.query(Transaction).all()
        assert [t.plaid_transaction_id for t in stored] == ["t1"]

    def test_second_sync_is_empty(self, client, plaid_item, two_pages):
        client.post(f"/api/items/{plaid_item.id}/sync-transactions")
        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 200
        data = response.json()
        assert data["nextCursor"] == "c2"
        assert data["summary"]["pages"] == 1
        assert data["summary"]["added_count"] == 0

    def test_item_not_found(self, client):
        response = client.post("/api/items/missing/sync-transactions")

        assert response.status_code == 404
        detail = response.json()["detail"]
        assert detail["error"] == "item_unavailable"
        assert detail["reason"] == "not_found"

    def test_revoked_item_is_forbidden(self, client, db, plaid_item):
        plaid_item.status = ITEM_STATUS_REVOKED
        db.commit()

        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "revoked"

    def test_provider_failure_is_bad_gateway(self, client, db, plaid_item, two_pages):
        two_pages.fail_at("c1")

        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["error"] == "provider_unavailable"
        assert detail["retriable"] is True
        assert detail["cursor"] == "c1"
        assert detail["pages_committed"] == 1
        db.expire_all()
        assert db.get(PlaidItem, plaid_item.id).transactions_cursor == "c1"

    def test_provider_timeout_is_gateway_timeout(self, client, plaid_item, two_pages):
        two_pages.fail_at(None, ProviderAPIError("timeout", provider_name="Plaid", status_code=504))

        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 504

    def test_unknown_account_is_server_error(self, client, plaid_item, mock_plaid_client):
        mock_plaid_client.pages = {
            None: TransactionsSyncPage(
                added=[make_transaction("t1", account_id="plaid-acc-mystery")],
                next_cursor="c1",
            ),
        }

        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "unknown_account"
        assert detail["account_id"] == "plaid-acc-mystery"
        assert detail["retriable"] is False

    def test_store_failure_is_service_unavailable(self, client, db, plaid_item, two_pages):
        class FailingLedger(LedgerService):
            def upsert_transaction(self, db, account, record):
                raise OperationalError("INSERT INTO transactions", {}, Exception("disk I/O error"))

        app.dependency_overrides[get_transaction_sync_service] = lambda: TransactionSyncService(
            provider=two_pages, ledger=FailingLedger()
        )

        response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "store_write_failed"
        assert db.query(Transaction).count() == 0

    def test_sync_in_progress_is_conflict(self, client, plaid_item, two_pages):
        lock = TransactionSyncService._lock_for(plaid_item.id)
        lock.acquire()
        try:
            response = client.post(f"/api/items/{plaid_item.id}/sync-transactions")
        finally:
            lock.release()

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "sync_already_in_progress"
        assert two_pages.sync_calls == []


class TestSyncErrorStatus:
    @pytest.mark.parametrize(
        "error, status",
        [
            (ItemUnavailable("x", item_id="i"), 404),
            (ItemUnavailable("x", item_id="i", reason=ItemUnavailable.REVOKED), 403),
            (ItemUnavailable("x", item_id="i", reason=ItemUnavailable.NO_CREDENTIAL), 403),
            (ProviderUnavailable("x", item_id="i"), 502),
            (ProviderUnavailable("x", item_id="i", timeout=True), 504),
            (UnknownAccount("x", item_id="i", account_id="a", transaction_id="t"), 500),
            (StoreWriteFailed("x", item_id="i"), 503),
            (SyncAlreadyInProgress("x", item_id="i"), 409),
            (SyncCancelled("x", item_id="i"), 503),
        ],
    )
    def test_status_mapping(self, error, status):
        assert sync_error_status(error) == status


class TestItemEndpoints:
    def test_get_item_hides_token(self, client, plaid_item):
        response = client.get(f"/api/items/{plaid_item.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["plaid_item_id"] == "plaid-item-123"
        assert data["status"] == "linked"
        assert data["has_cursor"] is False
        assert "access_token" not in data

    def test_get_item_404(self, client):
        assert client.get("/api/items/missing").status_code == 404

    def test_list_accounts(self, client, plaid_item, account):
        response = client.get(f"/api/items/{plaid_item.id}/accounts")

        assert response.status_code == 200
        assert [a["plaid_account_id"] for a in response.json()] == ["plaid-acc-checking"]

    def test_refresh_accounts(self, client, db, plaid_item, mock_plaid_client):
        mock_plaid_client.accounts = SAMPLE_PLAID_ACCOUNTS

        response = client.post(f"/api/items/{plaid_item.id}/accounts/refresh")

        assert response.status_code == 200
        assert len(response.json()) == 2
        assert db.query(Account).count() == 2

    def test_refresh_accounts_provider_failure(self, client, plaid_item, mock_plaid_client):
        mock_plaid_client.should_fail = True

        response = client.post(f"/api/items/{plaid_item.id}/accounts/refresh")

        assert response.status_code == 502

    def test_delete_item_cascades(self, client, db, plaid_item, two_pages):
        client.post(f"/api/items/{plaid_item.id}/sync-transactions")
        assert db.query(Transaction).count() == 1

        response = client.delete(f"/api/items/{plaid_item.id}")

        assert response.status_code == 200
        assert two_pages.removed_tokens == ["access-sandbox-123"]
        assert db.query(PlaidItem).count() == 0
        assert db.query(Transaction).count() == 0

    def test_delete_item_holds_sync_lock_and_drops_it(self, client, db, plaid_item, mock_plaid_client):
        held_during_unlink = []
        original_remove = mock_plaid_client.remove_item

        def remove_and_check(access_token):
            held_during_unlink.append(TransactionSyncService.is_sync_in_progress(plaid_item.id))
            return original_remove(access_token)

        mock_plaid_client.remove_item = remove_and_check
        item_id = plaid_item.id

        response = client.delete(f"/api/items/{item_id}")

        assert response.status_code == 200
        assert held_during_unlink == [True]
        assert item_id not in TransactionSyncService._item_locks

    def test_delete_item_during_sync_is_conflict(self, client, db, plaid_item):
        lock = TransactionSyncService._lock_for(plaid_item.id)
        lock.acquire()
        try:
            response = client.delete(f"/api/items/{plaid_item.id}")
        finally:
            lock.release()

        assert response.status_code == 409
        assert db.query(PlaidItem).count() == 1
