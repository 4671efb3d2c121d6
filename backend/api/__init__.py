"""API route handlers."""
from . import accounts, items, plaid, users

__all__ = ["accounts", "items", "plaid", "users"]
