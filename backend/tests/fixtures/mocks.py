"""Mock implementations for external services."""

from datetime import date
from decimal import Decimal
from typing import Callable

from integrations.exceptions import ProviderAuthError, ProviderConnectionError, ProviderError
from integrations.provider_protocol import (
    ProviderAccount,
    ProviderRemovedTransaction,
    ProviderTransaction,
    TransactionsSyncPage,
)


class MockPlaidClient:
    """In-memory stand-in for PlaidClient.

    Sync pages are scripted by the cursor they answer: ``pages[None]`` is the
    first page, ``pages["c1"]`` is what a call with cursor ``"c1"`` returns.
    A cursor with no scripted page yields an empty page that hands the same
    cursor back, which is how Plaid answers when nothing has changed.
    """

    def __init__(
        self,
        pages: dict[str | None, TransactionsSyncPage] | None = None,
        accounts: list[ProviderAccount] | None = None,
        should_fail: bool = False,
        failure_message: str = "Mock Plaid error",
        failure_type: str = "connection",
        link_token: str = "link-sandbox-test-token",
        exchange_result: dict | None = None,
    ):
        self.pages = pages or {}
        self.accounts = accounts or []
        self.should_fail = should_fail
        self._failure_message = failure_message
        self._failure_type = failure_type
        self._link_token = link_token
        self._exchange_result = exchange_result or {
            "access_token": "access-sandbox-123",
            "item_id": "plaid-item-123",
        }

        # Per-cursor failures, raised until clear_failures()
        self.failures: dict[str | None, ProviderError] = {}
        # Called with the cursor before each sync page is returned
        self.on_fetch: Callable[[str | None], None] | None = None
        # Raised by create_link_token when set
        self.link_token_error: ProviderError | None = None

        self.sync_calls: list[tuple[str, str | None]] = []
        self.link_token_calls: list[dict] = []
        self.removed_tokens: list[str] = []

    def _raise_failure(self) -> None:
        if self._failure_type == "auth":
            raise ProviderAuthError(self._failure_message, provider_name="Plaid")
        raise ProviderConnectionError(self._failure_message, provider_name="Plaid")

    @property
    def provider_name(self) -> str:
        return "Plaid"

    def is_configured(self) -> bool:
        """Mock is always configured unless set to fail."""
        return not self.should_fail

    def fail_at(self, cursor: str | None, error: ProviderError | None = None) -> None:
        """Make the sync call for ``cursor`` fail until ``clear_failures``."""
        self.failures[cursor] = error or ProviderConnectionError(
            "connection reset", provider_name="Plaid"
        )

    def clear_failures(self) -> None:
        self.failures.clear()

    # ------------------------------------------------------------------
    # TransactionsProvider
    # ------------------------------------------------------------------

    def sync_transactions(self, access_token: str, cursor: str | None = None) -> TransactionsSyncPage:
        self.sync_calls.append((access_token, cursor))
        if self.on_fetch is not None:
            self.on_fetch(cursor)
        if cursor in self.failures:
            raise self.failures[cursor]
        if self.should_fail:
            self._raise_failure()
        page = self.pages.get(cursor)
        if page is None:
            return TransactionsSyncPage(next_cursor=cursor or "", has_more=False)
        return page

    # ------------------------------------------------------------------
    # Link flow and account discovery
    # ------------------------------------------------------------------

    def create_link_token(
        self,
        client_user_id: str,
        products: list[str] | None = None,
        access_token: str | None = None,
    ) -> str:
        self.link_token_calls.append({
            "client_user_id": client_user_id,
            "access_token": access_token,
        })
        if self.link_token_error is not None:
            raise self.link_token_error
        if self.should_fail:
            self._raise_failure()
        return self._link_token

    def exchange_public_token(self, public_token: str) -> dict:
        if self.should_fail:
            self._raise_failure()
        return dict(self._exchange_result)

    def get_accounts(self, access_token: str) -> list[ProviderAccount]:
        if self.should_fail:
            self._raise_failure()
        return list(self.accounts)

    def remove_item(self, access_token: str) -> None:
        self.removed_tokens.append(access_token)
        if self.should_fail:
            self._raise_failure()


# ---------------------------------------------------------------------------
# Sample provider records
# ---------------------------------------------------------------------------


def make_account(
    account_id: str = "plaid-acc-checking",
    name: str = "Plaid Checking",
    **kwargs,
) -> ProviderAccount:
    defaults = {
        "official_name": "Plaid Gold Standard 0% Interest Checking",
        "mask": "0000",
        "type": "depository",
        "subtype": "checking",
        "current_balance": Decimal("110.00"),
        "available_balance": Decimal("100.00"),
        "iso_currency_code": "USD",
    }
    defaults.update(kwargs)
    return ProviderAccount(id=account_id, name=name, **defaults)


def make_transaction(
    transaction_id: str,
    amount: str = "10.00",
    account_id: str = "plaid-acc-checking",
    txn_date: date = date(2024, 3, 1),
    name: str = "Coffee Shop",
    pending: bool = False,
    **kwargs,
) -> ProviderTransaction:
    return ProviderTransaction(
        transaction_id=transaction_id,
        account_id=account_id,
        amount=Decimal(amount),
        date=txn_date,
        name=name,
        pending=pending,
        iso_currency_code=kwargs.pop("iso_currency_code", "USD"),
        **kwargs,
    )


def make_removed(transaction_id: str) -> ProviderRemovedTransaction:
    return ProviderRemovedTransaction(transaction_id=transaction_id)


SAMPLE_PLAID_ACCOUNTS = [
    make_account(),
    make_account(
        "plaid-acc-savings",
        "Plaid Saving",
        subtype="savings",
        current_balance=Decimal("210.00"),
        available_balance=Decimal("200.00"),
    ),
]
