"""PlaidItem model - stores Plaid access tokens and sync cursors per linked institution."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow

ITEM_STATUS_LINKED = "linked"
ITEM_STATUS_ERROR = "error"
ITEM_STATUS_REVOKED = "revoked"


class PlaidItem(Base):
    """A Plaid Item representing one linked financial institution for a user.

    Each institution linked via Plaid Link gets its own access_token. The
    ``transactions_cursor`` column is the resume point for
    ``/transactions/sync``; ``NULL`` means the next sync starts from the
    beginning of the Item's history. Only the transaction sync engine
    writes it.
    """

    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("user_id", "plaid_item_id", name="uix_item_user_plaid_item"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plaid_item_id = Column(String, nullable=False, index=True)
    access_token = Column(String, nullable=False)
    institution_id = Column(String, nullable=True)
    institution_name = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ITEM_STATUS_LINKED)  # "linked" | "error" | "revoked"
    transactions_cursor = Column(String, nullable=True)

    # Sync tracking
    sync_failure_count = Column(Integer, nullable=False, default=0)
    last_sync_error = Column(String, nullable=True)
    last_synced_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="items")
    accounts = relationship(
        "Account", back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )
