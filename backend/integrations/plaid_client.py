"""Plaid API client.

This module wraps the plaid-python SDK for the three things the ledger
needs from Plaid: the Link flow (link tokens, public token exchange,
item removal), account discovery, and cursor-based transaction sync via
``/transactions/sync``.

Every SDK failure is translated into the typed hierarchy in
:mod:`integrations.exceptions` so callers never see ``ApiException``.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

import urllib3
from plaid import ApiException, Environment
from plaid.api.plaid_api import PlaidApi
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.item_remove_request import ItemRemoveRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_sync_request import TransactionsSyncRequest

from config import settings
from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
    ProviderError,
)
from integrations.provider_protocol import (
    ProviderAccount,
    ProviderRemovedTransaction,
    ProviderTransaction,
    TransactionsSyncPage,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Plaid"

# Map PLAID_ENVIRONMENT setting to SDK host URLs.
# Plaid's Development environment is deprecated; only sandbox and production
# are supported.
_ENVIRONMENT_MAP: dict[str, str] = {
    "sandbox": Environment.Sandbox,
    "production": Environment.Production,
}

# Plaid error codes that mean the Item's credential no longer works.
_AUTH_ERROR_CODES = frozenset(
    {
        "INVALID_ACCESS_TOKEN",
        "ITEM_LOGIN_REQUIRED",
        "ITEM_NOT_FOUND",
        "ACCESS_NOT_GRANTED",
        "USER_PERMISSION_REVOKED",
    }
)


class PlaidClient:
    """Wrapper around the Plaid API.

    Implements the TransactionsProvider protocol used by the sync engine.
    Constructed explicitly and injected wherever it is needed; there is no
    module-level client handle.
    """

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        page_size: int | None = None,
    ):
        self._client_id = client_id or settings.PLAID_CLIENT_ID
        self._secret = secret or settings.PLAID_SECRET
        self._environment = environment or settings.PLAID_ENVIRONMENT
        self._page_size = page_size or settings.SYNC_PAGE_SIZE

        # Lazily created on first use
        self._api: PlaidApi | None = None

    def _get_api(self) -> PlaidApi:
        """Return (and cache) a PlaidApi instance."""
        if self._api is None:
            env_key = self._environment.lower()
            host = _ENVIRONMENT_MAP.get(env_key)
            if host is None:
                logger.warning(
                    "Unknown PLAID_ENVIRONMENT=%r, falling back to sandbox. "
                    "Valid values: sandbox, production",
                    self._environment,
                )
                host = Environment.Sandbox
            logger.info(
                "Plaid API client: environment=%s, host=%s, client_id=<configured>",
                env_key,
                host,
            )
            configuration = Configuration(
                host=host,
                api_key={
                    "clientId": self._client_id,
                    "secret": self._secret,
                },
            )
            api_client = ApiClient(configuration)
            self._api = PlaidApi(api_client)
        return self._api

    @property
    def provider_name(self) -> str:
        """Return the provider name for logs and error context."""
        return PROVIDER_NAME

    def is_configured(self) -> bool:
        """Check if Plaid credentials are configured."""
        return bool(self._client_id) and bool(self._secret)

    def _call(self, action: str, fn: Callable[[Any], Any], request: Any) -> Any:
        """Invoke an SDK method, translating failures into ProviderError."""
        try:
            return fn(request)
        except ApiException as e:
            raise self._map_plaid_error(e, action) from e
        except urllib3.exceptions.HTTPError as e:
            reason = getattr(e, "reason", None)
            timeout = isinstance(e, urllib3.exceptions.TimeoutError) or isinstance(
                reason, urllib3.exceptions.TimeoutError
            )
            raise ProviderConnectionError(
                f"Plaid {action} failed: {e}",
                provider_name=PROVIDER_NAME,
                timeout=timeout,
            ) from e

    # ------------------------------------------------------------------
    # Link Token & Token Exchange
    # ------------------------------------------------------------------

    def create_link_token(
        self,
        client_user_id: str,
        products: list[str] | None = None,
        access_token: str | None = None,
    ) -> str:
        """Create a Plaid Link token for the browser-based auth flow.

        Passing ``access_token`` creates an update-mode token for re-linking
        an existing Item; update mode must not request products.

        Returns:
            The link_token string to be passed to Plaid Link.
        """
        api = self._get_api()
        kwargs: dict[str, Any] = {
            "user": LinkTokenCreateRequestUser(client_user_id=client_user_id),
            "client_name": settings.PLAID_CLIENT_NAME,
            "country_codes": [CountryCode(code) for code in settings.plaid_country_codes],
            "language": "en",
        }
        if access_token:
            kwargs["access_token"] = access_token
        else:
            kwargs["products"] = [Products(p) for p in (products or settings.plaid_products)]
        if settings.PLAID_REDIRECT_URI:
            kwargs["redirect_uri"] = settings.PLAID_REDIRECT_URI

        response = self._call("link token", api.link_token_create, LinkTokenCreateRequest(**kwargs))
        return response["link_token"]

    def exchange_public_token(self, public_token: str) -> dict:
        """Exchange a Plaid Link public_token for a permanent access_token.

        Returns:
            Dict with ``access_token`` and ``item_id``.
        """
        api = self._get_api()
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        response = self._call("token exchange", api.item_public_token_exchange, request)
        return {
            "access_token": response["access_token"],
            "item_id": response["item_id"],
        }

    def remove_item(self, access_token: str) -> None:
        """Revoke an access token by calling Plaid's /item/remove endpoint."""
        api = self._get_api()
        self._call("item removal", api.item_remove, ItemRemoveRequest(access_token=access_token))

    # ------------------------------------------------------------------
    # Account discovery
    # ------------------------------------------------------------------

    def get_accounts(self, access_token: str) -> list[ProviderAccount]:
        """Fetch the accounts currently visible under an Item."""
        api = self._get_api()
        response = self._call(
            "accounts lookup", api.accounts_get, AccountsGetRequest(access_token=access_token)
        )
        return self._map_accounts(response.get("accounts", []) or [])

    # ------------------------------------------------------------------
    # Transactions sync
    # ------------------------------------------------------------------

    def sync_transactions(
        self,
        access_token: str,
        cursor: str | None = None,
    ) -> TransactionsSyncPage:
        """Fetch one page from ``/transactions/sync``.

        The cursor is omitted entirely when absent; Plaid then starts from
        the beginning of the Item's history.
        """
        api = self._get_api()
        kwargs: dict[str, Any] = {"access_token": access_token, "count": self._page_size}
        if cursor:
            kwargs["cursor"] = cursor

        response = self._call("transactions sync", api.transactions_sync, TransactionsSyncRequest(**kwargs))

        page = TransactionsSyncPage(
            added=[self._map_transaction(t) for t in response.get("added", []) or []],
            modified=[self._map_transaction(t) for t in response.get("modified", []) or []],
            removed=[self._map_removed(t) for t in response.get("removed", []) or []],
            next_cursor=response.get("next_cursor") or "",
            has_more=bool(response.get("has_more")),
            accounts=self._map_accounts(response.get("accounts", []) or []),
        )
        logger.debug(
            "Plaid sync page: %d added, %d modified, %d removed, has_more=%s",
            len(page.added), len(page.modified), len(page.removed), page.has_more,
        )
        return page

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def _map_accounts(self, raw_accounts: list) -> list[ProviderAccount]:
        accounts: list[ProviderAccount] = []
        for acct in raw_accounts:
            acct_id = acct.get("account_id")
            if not acct_id:
                continue
            balances = _to_plain(acct.get("balances")) or {}
            accounts.append(ProviderAccount(
                id=acct_id,
                name=acct.get("name") or acct.get("official_name") or "Plaid Account",
                official_name=acct.get("official_name"),
                mask=acct.get("mask"),
                type=_to_str(acct.get("type")),
                subtype=_to_str(acct.get("subtype")),
                current_balance=self._to_decimal(balances.get("current")),
                available_balance=self._to_decimal(balances.get("available")),
                iso_currency_code=balances.get("iso_currency_code"),
                unofficial_currency_code=balances.get("unofficial_currency_code"),
            ))
        return accounts

    def _map_transaction(self, txn) -> ProviderTransaction:
        """Map a Plaid transaction to a ProviderTransaction.

        A record the ledger cannot store raises ProviderDataError instead
        of being skipped; skipping would silently lose a ledger entry.
        """
        transaction_id = txn.get("transaction_id")
        account_id = txn.get("account_id")
        amount = self._to_decimal(txn.get("amount"))
        txn_date = self._to_date(txn.get("date"))
        if not transaction_id or not account_id or amount is None or txn_date is None:
            raise ProviderDataError(
                f"Plaid returned an incomplete transaction: {transaction_id or '<no id>'}",
                provider_name=PROVIDER_NAME,
            )

        return ProviderTransaction(
            transaction_id=transaction_id,
            account_id=account_id,
            amount=amount,
            date=txn_date,
            name=txn.get("name") or txn.get("merchant_name") or "",
            pending=bool(txn.get("pending")),
            iso_currency_code=txn.get("iso_currency_code"),
            unofficial_currency_code=txn.get("unofficial_currency_code"),
            transaction_type=_to_str(txn.get("transaction_type") or txn.get("payment_channel")),
            category=self._build_category(txn),
            account_owner=txn.get("account_owner"),
        )

    @staticmethod
    def _map_removed(txn) -> ProviderRemovedTransaction:
        transaction_id = txn.get("transaction_id")
        if not transaction_id:
            raise ProviderDataError(
                "Plaid returned a removed transaction without an id",
                provider_name=PROVIDER_NAME,
            )
        return ProviderRemovedTransaction(
            transaction_id=transaction_id,
            account_id=txn.get("account_id"),
        )

    @staticmethod
    def _build_category(txn) -> dict | None:
        """Merge the legacy and personal-finance category schemes into one payload."""
        legacy = {
            "category": _to_plain(txn.get("category")),
            "category_id": txn.get("category_id"),
        }
        personal_finance = _to_plain(txn.get("personal_finance_category"))
        if not any(legacy.values()) and not personal_finance:
            return None
        return {"legacy": legacy, "personal_finance_category": personal_finance}

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _map_plaid_error(exc: ApiException, action: str) -> ProviderError:
        """Map a Plaid ApiException to the typed provider exception."""
        status = exc.status or 0
        message = f"Plaid {action} failed: {exc.reason or exc}"

        error_code = ""
        try:
            body = json.loads(exc.body) if exc.body else {}
        except (TypeError, ValueError):
            body = {}
        if isinstance(body, dict):
            error_code = body.get("error_code") or ""
            error_message = body.get("error_message") or ""
            if error_message:
                message = f"Plaid error ({error_code}): {error_message}"

        if status in (401, 403) or error_code in _AUTH_ERROR_CODES:
            return ProviderAuthError(message, provider_name=PROVIDER_NAME, error_code=error_code)
        return ProviderAPIError(
            message,
            provider_name=PROVIDER_NAME,
            status_code=status or None,
            error_code=error_code,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_decimal(value) -> Decimal | None:
        """Convert a value to Decimal, returning None on failure."""
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None

    @staticmethod
    def _to_date(value) -> date | None:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            return None


def _to_str(value) -> str | None:
    """Render a Plaid enum model (or plain value) as a string."""
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _to_plain(value):
    """Convert Plaid SDK models into JSON-serializable builtins."""
    if value is None:
        return None
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "value") and not isinstance(value, (str, int, float, bool)):
        return value.value
    return value
