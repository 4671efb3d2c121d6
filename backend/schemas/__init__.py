"""Pydantic schemas for API request/response validation."""

from .item import AccountResponse, ItemResponse
from .transaction import (
    SyncedTransaction,
    SyncSummaryResponse,
    SyncTransactionsResponse,
    TransactionResponse,
)
from .user import UserCreate, UserResponse

__all__ = [
    "AccountResponse",
    "ItemResponse",
    "SyncedTransaction",
    "SyncSummaryResponse",
    "SyncTransactionsResponse",
    "TransactionResponse",
    "UserCreate",
    "UserResponse",
]
