"""Plaid Link API endpoints.

Provides the server-side endpoints for the Plaid Link browser-based
authentication flow: creating link tokens (normal and update mode) and
exchanging public tokens for stored Items.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.helpers import get_or_404, item_response_dict
from database import get_db
from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from models import PlaidItem, User
from schemas import AccountResponse, ItemResponse
from services.item_service import ItemService
from services.ledger_service import AccountOwnershipError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plaid", tags=["plaid"])


def get_plaid_client() -> PlaidClient:
    """Dependency for injecting the Plaid client (overridable in tests)."""
    return PlaidClient()


# ------------------------------------------------------------------
# Request / Response schemas
# ------------------------------------------------------------------


class LinkTokenRequest(BaseModel):
    user_id: str
    item_id: str | None = None  # set for update mode (re-linking an Item)


class LinkTokenResponse(BaseModel):
    link_token: str


class ExchangeTokenRequest(BaseModel):
    public_token: str
    user_id: str
    institution_id: str | None = None
    institution_name: str | None = None


class ExchangeTokenResponse(BaseModel):
    item: ItemResponse
    accounts: list[AccountResponse]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@router.post("/link-token", response_model=LinkTokenResponse)
def create_link_token(
    body: LinkTokenRequest,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
):
    """Create a Plaid Link token for the frontend.

    Without ``item_id`` the token links a new institution. With ``item_id``
    it opens Link in update mode for that Item, which must belong to the
    requesting user.
    """
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    user = get_or_404(db, User, body.user_id, detail=f"User not found: {body.user_id}")

    access_token = None
    if body.item_id:
        item = get_or_404(db, PlaidItem, body.item_id, detail=f"Item not found: {body.item_id}")
        if item.user_id != user.id:
            raise HTTPException(status_code=403, detail="Item does not belong to this user")
        access_token = item.access_token

    try:
        link_token = client.create_link_token(
            client_user_id=user.id,
            access_token=access_token,
        )
        return LinkTokenResponse(link_token=link_token)
    except ProviderError as e:
        # Surface actionable hint for the most common error
        if e.error_code == "INVALID_API_KEYS":
            hint = (
                "Plaid rejected the credentials. Check that PLAID_ENVIRONMENT "
                "matches your keys (sandbox or production). "
                "Each environment has different secrets."
            )
            logger.error("Plaid INVALID_API_KEYS: %s", hint)
            raise HTTPException(status_code=400, detail=hint)
        logger.error("Failed to create Plaid link token: %s", e)
        raise HTTPException(status_code=502, detail="Failed to create link token")


@router.post("/exchange-token", response_model=ExchangeTokenResponse)
def exchange_token(
    body: ExchangeTokenRequest,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
):
    """Exchange a Plaid Link public_token, store the Item and discover its accounts."""
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    user = get_or_404(db, User, body.user_id, detail=f"User not found: {body.user_id}")
    service = ItemService(client)

    try:
        item, accounts = service.link_item(
            db,
            user,
            body.public_token,
            institution_id=body.institution_id,
            institution_name=body.institution_name,
        )
        db.commit()
    except ProviderError as e:
        db.rollback()
        logger.error("Failed to link Plaid item: %s", e)
        raise HTTPException(status_code=502, detail="Failed to exchange token")
    except (AccountOwnershipError, IntegrityError) as e:
        db.rollback()
        logger.warning("Conflict while storing linked item: %s", e)
        raise HTTPException(status_code=409, detail="Item or account is already linked elsewhere")

    db.refresh(item)
    return ExchangeTokenResponse(
        item=ItemResponse(**item_response_dict(item)),
        accounts=[AccountResponse.model_validate(a) for a in accounts],
    )
