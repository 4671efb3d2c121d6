"""Account model - a financial account discovered under a Plaid Item."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow


class Account(Base):
    """A bank account reported by Plaid for a linked Item.

    ``plaid_account_id`` is globally unique and is the natural key used when
    account discovery upserts accounts. Sync never deletes accounts.
    """

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    item_id = Column(String(36), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    plaid_account_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    official_name = Column(String, nullable=True)
    mask = Column(String, nullable=True)
    type = Column(String, nullable=True)  # e.g., "depository", "credit"
    subtype = Column(String, nullable=True)  # e.g., "checking", "credit card"
    current_balance = Column(Numeric(18, 4), nullable=True)
    available_balance = Column(Numeric(18, 4), nullable=True)
    iso_currency_code = Column(String, nullable=True)
    unofficial_currency_code = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    item = relationship("PlaidItem", back_populates="accounts")
    transactions = relationship(
        "Transaction", back_populates="account", cascade="all, delete-orphan", passive_deletes=True
    )
