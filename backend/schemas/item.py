"""Pydantic schemas for Items and their accounts."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class AccountResponse(BaseModel):
    """Schema for Account API response."""

    id: str
    item_id: str
    plaid_account_id: str
    name: str
    official_name: str | None = None
    mask: str | None = None
    type: str | None = None
    subtype: str | None = None
    current_balance: Decimal | None = None
    available_balance: Decimal | None = None
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ItemResponse(BaseModel):
    """Schema for Item API response. The access token is never exposed."""

    id: str
    user_id: str
    plaid_item_id: str
    institution_id: str | None = None
    institution_name: str | None = None
    status: str
    has_cursor: bool = False
    sync_failure_count: int = 0
    last_sync_error: str | None = None
    last_synced_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
