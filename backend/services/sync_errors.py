"""Closed set of transaction sync failures.

Every error raised by :class:`services.transaction_sync_service.TransactionSyncService`
is a :class:`SyncError` subclass carrying enough context (item, last committed
cursor, pages committed in the failed run) for an operator or scheduler to
resume. Transport status codes are assigned only at the API boundary.
"""


class SyncError(Exception):
    """Base class for transaction sync failures."""

    kind = "sync_error"
    retriable = False

    def __init__(
        self,
        message: str,
        item_id: str,
        cursor: str | None = None,
        pages_committed: int = 0,
    ):
        self.item_id = item_id
        self.cursor = cursor
        self.pages_committed = pages_committed
        super().__init__(message)

    def context(self) -> dict:
        """Structured context for logs and API error bodies."""
        return {
            "error": self.kind,
            "message": str(self),
            "item_id": self.item_id,
            "cursor": self.cursor,
            "pages_committed": self.pages_committed,
            "retriable": self.retriable,
        }


class ItemUnavailable(SyncError):
    """The Item does not exist, is revoked, or has no access credential."""

    kind = "item_unavailable"

    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    NO_CREDENTIAL = "no_credential"

    def __init__(self, message: str, item_id: str, reason: str = NOT_FOUND, **kwargs):
        self.reason = reason
        super().__init__(message, item_id, **kwargs)

    def context(self) -> dict:
        ctx = super().context()
        ctx["reason"] = self.reason
        return ctx


class ProviderUnavailable(SyncError):
    """The provider call failed; safe to retry from the committed cursor."""

    kind = "provider_unavailable"
    retriable = True

    def __init__(
        self,
        message: str,
        item_id: str,
        error_code: str = "",
        timeout: bool = False,
        **kwargs,
    ):
        self.error_code = error_code
        self.timeout = timeout
        super().__init__(message, item_id, **kwargs)

    def context(self) -> dict:
        ctx = super().context()
        ctx["provider_error_code"] = self.error_code or None
        return ctx


class UnknownAccount(SyncError):
    """A record references an account this Item has never reported.

    Also raised when an account or transaction id arriving for this Item is
    already stored under another Item. Integrity failure: retrying without investigation reproduces it.
    """

    kind = "unknown_account"

    def __init__(
        self,
        message: str,
        item_id: str,
        account_id: str,
        transaction_id: str,
        **kwargs,
    ):
        self.account_id = account_id
        self.transaction_id = transaction_id
        super().__init__(message, item_id, **kwargs)

    def context(self) -> dict:
        ctx = super().context()
        ctx["account_id"] = self.account_id
        ctx["transaction_id"] = self.transaction_id
        return ctx


class StoreWriteFailed(SyncError):
    """A ledger or cursor write failed; the page was rolled back."""

    kind = "store_write_failed"
    retriable = True


class SyncAlreadyInProgress(SyncError):
    """Another sync run for the same Item is active."""

    kind = "sync_already_in_progress"
    retriable = True


class SyncCancelled(SyncError):
    """The run was cancelled at a page boundary; committed pages are kept."""

    kind = "sync_cancelled"
    retriable = True
