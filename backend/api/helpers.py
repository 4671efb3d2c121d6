"""Shared API helpers for route handlers."""

from typing import TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from database import Base
from models import PlaidItem

T = TypeVar("T", bound=Base)


def get_or_404(db: Session, model: type[T], entity_id: str, detail: str = "Not found") -> T:
    """Fetch a single entity by primary key or raise 404.

    Args:
        db: Database session.
        model: SQLAlchemy model class.
        entity_id: Primary key value.
        detail: Error message for the 404 response.

    Returns:
        The entity instance.

    Raises:
        HTTPException: 404 if the entity doesn't exist.
    """
    entity = db.get(model, entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail=detail)
    return entity


def item_response_dict(item: PlaidItem) -> dict:
    """Build an ItemResponse-compatible dict from a PlaidItem.

    The access token is deliberately left out.
    """
    return {
        "id": item.id,
        "user_id": item.user_id,
        "plaid_item_id": item.plaid_item_id,
        "institution_id": item.institution_id,
        "institution_name": item.institution_name,
        "status": item.status,
        "has_cursor": bool(item.transactions_cursor),
        "sync_failure_count": item.sync_failure_count or 0,
        "last_sync_error": item.last_sync_error,
        "last_synced_at": item.last_synced_at,
        "created_at": item.created_at,
    }
