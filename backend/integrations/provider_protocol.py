"""Provider protocol definitions for transaction synchronization.

This module defines the normalized records a transactions provider returns
and the contract the sync engine depends on. Plaid is the only
implementation today; tests substitute an in-memory fake.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Protocol


@dataclass
class ProviderAccount:
    """Normalized account data from the provider."""

    id: str  # Provider's external account ID
    name: str
    official_name: str | None = None
    mask: str | None = None  # Last digits of the account number
    type: str | None = None
    subtype: str | None = None
    current_balance: Decimal | None = None
    available_balance: Decimal | None = None
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None


@dataclass
class ProviderTransaction:
    """Normalized transaction from an added or modified sync set."""

    transaction_id: str  # Provider's unique ID for this transaction
    account_id: str  # Provider's account ID this transaction belongs to
    amount: Decimal  # Provider sign convention, stored verbatim
    date: date
    name: str
    pending: bool = False
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None
    transaction_type: str | None = None
    category: dict[str, Any] | None = None  # Legacy + normalized category payload
    account_owner: str | None = None


@dataclass
class ProviderRemovedTransaction:
    """A transaction the provider reports as deleted."""

    transaction_id: str
    account_id: str | None = None


@dataclass
class TransactionsSyncPage:
    """One page of changes returned by a single provider sync call.

    ``next_cursor`` is opaque: it is stored and replayed verbatim.
    ``accounts`` carries any account data the provider returned alongside
    the page, so transactions for newly opened accounts can be resolved.
    """

    added: list[ProviderTransaction] = field(default_factory=list)
    modified: list[ProviderTransaction] = field(default_factory=list)
    removed: list[ProviderRemovedTransaction] = field(default_factory=list)
    next_cursor: str = ""
    has_more: bool = False
    accounts: list[ProviderAccount] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


class TransactionsProvider(Protocol):
    """Contract the transaction sync engine uses to fetch pages.

    Implementations raise :class:`~integrations.exceptions.ProviderError`
    subclasses on failure and must not assume anything about how the
    returned cursor is used.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'Plaid')."""
        ...

    def sync_transactions(
        self,
        access_token: str,
        cursor: str | None = None,
    ) -> TransactionsSyncPage:
        """Fetch one page of transaction changes after ``cursor``.

        Args:
            access_token: The Item's access credential.
            cursor: The last committed cursor, or ``None`` to start from
                the beginning of the Item's history.
        """
        ...
