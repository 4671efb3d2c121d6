"""Test fixtures and sample data."""
import pytest
from sqlalchemy.orm import Session

from models import Account, PlaidItem, User


def create_item(
    db: Session,
    user: User,
    plaid_item_id: str = "plaid-item-123",
    access_token: str = "access-sandbox-123",
    **kwargs,
) -> PlaidItem:
    """Create and commit a PlaidItem for ``user``.

    This is a helper function (not a fixture) for tests that need more than
    one Item.
    """
    item = PlaidItem(
        user_id=user.id,
        plaid_item_id=plaid_item_id,
        access_token=access_token,
        institution_id=kwargs.pop("institution_id", "ins_109508"),
        institution_name=kwargs.pop("institution_name", "First Platypus Bank"),
        **kwargs,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def create_account(
    db: Session,
    item: PlaidItem,
    plaid_account_id: str = "plaid-acc-checking",
    name: str = "Plaid Checking",
) -> Account:
    """Create and commit an Account under ``item``."""
    account = Account(
        item_id=item.id,
        plaid_account_id=plaid_account_id,
        name=name,
        type="depository",
        subtype="checking",
        iso_currency_code="USD",
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    user = User(username="alice")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def plaid_item(db: Session, user: User) -> PlaidItem:
    """Create a linked Item with no sync history."""
    return create_item(db, user)


@pytest.fixture
def account(db: Session, plaid_item: PlaidItem) -> Account:
    """Create the checking account the sample transactions belong to."""
    return create_account(db, plaid_item)
