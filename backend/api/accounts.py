"""Account API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.helpers import get_or_404
from database import get_db
from models import Account, Transaction
from schemas import AccountResponse, TransactionResponse

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, db: Session = Depends(get_db)):
    """Get a specific account by ID."""
    return get_or_404(db, Account, account_id, detail="Account not found")


@router.get("/{account_id}/transactions", response_model=list[TransactionResponse])
def list_account_transactions(account_id: str, db: Session = Depends(get_db)):
    """List the ledger transactions of one account, newest first."""
    get_or_404(db, Account, account_id, detail="Account not found")
    return (
        db.query(Transaction)
        .filter(Transaction.account_id == account_id)
        .order_by(Transaction.date.desc(), Transaction.plaid_transaction_id)
        .all()
    )
