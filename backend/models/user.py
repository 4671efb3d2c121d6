"""User model - the owner of linked Plaid Items."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow


class User(Base):
    """An end user who links bank connections through Plaid Link."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    items = relationship(
        "PlaidItem", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
