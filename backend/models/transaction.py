"""Transaction model - one ledger entry synchronized from Plaid."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow


class Transaction(Base):
    """A transaction as last reported by Plaid.

    ``plaid_transaction_id`` is the natural key for reconciliation. The
    amount keeps Plaid's sign convention (positive = money out of the
    account) and is never recomputed locally. ``category`` holds both of
    Plaid's category schemes as an opaque JSON payload.
    """

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    plaid_transaction_id = Column(String, unique=True, index=True, nullable=False)
    transaction_type = Column(String, nullable=True)  # Plaid transaction_type / payment_channel
    name = Column(String, nullable=False)
    amount = Column(Numeric(18, 4), nullable=False)
    iso_currency_code = Column(String, nullable=True)
    unofficial_currency_code = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    pending = Column(Boolean, nullable=False, default=False)
    category = Column(JSON, nullable=True)
    account_owner = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    account = relationship("Account", back_populates="transactions")
