"""Tests for the sync error hierarchy."""

import pytest

from services.sync_errors import (
    ItemUnavailable,
    ProviderUnavailable,
    StoreWriteFailed,
    SyncAlreadyInProgress,
    SyncCancelled,
    SyncError,
    UnknownAccount,
)


class TestRetriable:
    @pytest.mark.parametrize(
        "error_cls",
        [ProviderUnavailable, StoreWriteFailed, SyncAlreadyInProgress, SyncCancelled],
    )
    def test_transient_errors_are_retriable(self, error_cls):
        assert error_cls("boom", item_id="i1").retriable is True

    def test_unknown_account_is_not_retriable(self):
        err = UnknownAccount("boom", item_id="i1", account_id="a1", transaction_id="t1")
        assert err.retriable is False

    def test_item_unavailable_is_not_retriable(self):
        assert ItemUnavailable("gone", item_id="i1").retriable is False

    def test_all_are_sync_errors(self):
        errors = [
            ItemUnavailable("x", item_id="i1"),
            ProviderUnavailable("x", item_id="i1"),
            UnknownAccount("x", item_id="i1", account_id="a", transaction_id="t"),
            StoreWriteFailed("x", item_id="i1"),
            SyncAlreadyInProgress("x", item_id="i1"),
            SyncCancelled("x", item_id="i1"),
        ]
        for err in errors:
            assert isinstance(err, SyncError)


class TestContext:
    def test_base_context(self):
        err = StoreWriteFailed("disk full", item_id="i1", cursor="c3", pages_committed=2)
        assert err.context() == {
            "error": "store_write_failed",
            "message": "disk full",
            "item_id": "i1",
            "cursor": "c3",
            "pages_committed": 2,
            "retriable": True,
        }

    def test_item_unavailable_includes_reason(self):
        err = ItemUnavailable("revoked", item_id="i1", reason=ItemUnavailable.REVOKED)
        assert err.context()["reason"] == "revoked"

    def test_unknown_account_includes_ids(self):
        err = UnknownAccount("x", item_id="i1", account_id="a1", transaction_id="t1")
        ctx = err.context()
        assert ctx["account_id"] == "a1"
        assert ctx["transaction_id"] == "t1"

    def test_provider_unavailable_includes_error_code(self):
        err = ProviderUnavailable("x", item_id="i1", error_code="RATE_LIMIT_EXCEEDED")
        assert err.context()["provider_error_code"] == "RATE_LIMIT_EXCEEDED"
        assert ProviderUnavailable("x", item_id="i1").context()["provider_error_code"] is None
