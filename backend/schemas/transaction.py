"""Pydantic schemas for ledger transactions and sync results."""

import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TransactionResponse(BaseModel):
    """Schema for a stored ledger transaction."""

    id: str
    account_id: str
    plaid_transaction_id: str
    transaction_type: str | None = None
    name: str
    amount: Decimal
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None
    date: datetime.date
    pending: bool
    category: dict[str, Any] | None = None
    account_owner: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SyncedTransaction(BaseModel):
    """A provider transaction as it appeared in the last sync page."""

    transaction_id: str
    account_id: str
    amount: Decimal
    date: datetime.date
    name: str
    pending: bool
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None
    transaction_type: str | None = None
    category: dict[str, Any] | None = None
    account_owner: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SyncSummaryResponse(BaseModel):
    """Aggregate counts across every page of a sync run."""

    added_count: int
    modified_count: int
    removed_count: int
    pages: int


class SyncTransactionsResponse(BaseModel):
    """Response for a completed transaction sync.

    ``added``/``modified``/``removed`` mirror the last page fetched;
    ``summary`` aggregates the whole run.
    """

    model_config = ConfigDict(populate_by_name=True)

    item_id: str
    added: list[SyncedTransaction] = Field(default_factory=list)
    modified: list[SyncedTransaction] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")
    has_more: bool = Field(default=False, alias="hasMore")
    summary: SyncSummaryResponse
