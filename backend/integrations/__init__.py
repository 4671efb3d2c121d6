"""External API integrations.

This package contains:
- Provider protocol: Normalized sync records and the TransactionsProvider interface
- Provider exceptions: Typed errors every provider call raises
- Plaid client: Integration with the Plaid API
"""

from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from integrations.provider_protocol import (
    ProviderAccount,
    ProviderRemovedTransaction,
    ProviderTransaction,
    TransactionsProvider,
    TransactionsSyncPage,
)

__all__ = [
    "PlaidClient",
    "ProviderAccount",
    "ProviderError",
    "ProviderRemovedTransaction",
    "ProviderTransaction",
    "TransactionsProvider",
    "TransactionsSyncPage",
]
