"""User API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.helpers import get_or_404, item_response_dict
from database import get_db
from models import Account, PlaidItem, Transaction, User
from schemas import ItemResponse, TransactionResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    """Create a user."""
    existing = db.query(User).filter(User.username == body.username).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Username already taken: {body.username}")

    user = User(username=body.username)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Username already taken: {body.username}")
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


@router.get("/by-username/{username}", response_model=UserResponse)
def get_user_by_username(username: str, db: Session = Depends(get_db)):
    """Look a user up by username."""
    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User not found: {username}")
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Get a user by id."""
    return get_or_404(db, User, user_id, detail=f"User not found: {user_id}")


@router.get("/{user_id}/items", response_model=list[ItemResponse])
def list_user_items(user_id: str, db: Session = Depends(get_db)):
    """List the Items a user has linked, newest first."""
    get_or_404(db, User, user_id, detail=f"User not found: {user_id}")
    items = (
        db.query(PlaidItem)
        .filter(PlaidItem.user_id == user_id)
        .order_by(PlaidItem.created_at.desc())
        .all()
    )
    return [item_response_dict(item) for item in items]


@router.get("/{user_id}/transactions", response_model=list[TransactionResponse])
def list_user_transactions(user_id: str, db: Session = Depends(get_db)):
    """List every ledger transaction across the user's Items, newest first."""
    get_or_404(db, User, user_id, detail=f"User not found: {user_id}")
    return (
        db.query(Transaction)
        .join(Account, Transaction.account_id == Account.id)
        .join(PlaidItem, Account.item_id == PlaidItem.id)
        .filter(PlaidItem.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.plaid_transaction_id)
        .all()
    )
