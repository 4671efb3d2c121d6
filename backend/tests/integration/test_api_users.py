"""Integration tests for User endpoints."""

from datetime import date
from decimal import Decimal

from models import Transaction, User
from tests.fixtures import create_account, create_item


def _add_txn(db, account, plaid_id: str, txn_date: date, amount: str = "1.00") -> None:
    db.add(Transaction(
        account_id=account.id,
        plaid_transaction_id=plaid_id,
        name=plaid_id,
        amount=Decimal(amount),
        date=txn_date,
    ))
    db.commit()


class TestCreateUser:
    def test_creates_user(self, client, db):
        response = client.post("/api/users", json={"username": " bob "})

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "bob"
        assert db.get(User, data["id"]) is not None

    def test_duplicate_username_is_conflict(self, client, user):
        response = client.post("/api/users", json={"username": "alice"})
        assert response.status_code == 409

    def test_blank_username_rejected(self, client):
        response = client.post("/api/users", json={"username": "   "})
        assert response.status_code == 422


class TestGetUser:
    def test_by_id(self, client, user):
        response = client.get(f"/api/users/{user.id}")
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_by_id_404(self, client):
        assert client.get("/api/users/missing").status_code == 404

    def test_by_username(self, client, user):
        response = client.get("/api/users/by-username/alice")
        assert response.status_code == 200
        assert response.json()["id"] == user.id

    def test_by_username_404(self, client):
        assert client.get("/api/users/by-username/nobody").status_code == 404


class TestUserItems:
    def test_lists_items(self, client, plaid_item, user):
        response = client.get(f"/api/users/{user.id}/items")

        assert response.status_code == 200
        items = response.json()
        assert [i["id"] for i in items] == [plaid_item.id]
        assert "access_token" not in items[0]

    def test_unknown_user(self, client):
        assert client.get("/api/users/missing/items").status_code == 404


class TestUserTransactions:
    def test_lists_transactions_across_items_newest_first(self, client, db, user, plaid_item, account):
        other_item = create_item(db, user, plaid_item_id="plaid-item-2", access_token="access-2")
        card = create_account(db, other_item, plaid_account_id="plaid-acc-card", name="Card")
        _add_txn(db, account, "old", date(2024, 1, 5))
        _add_txn(db, card, "new", date(2024, 3, 9))
        _add_txn(db, account, "mid", date(2024, 2, 1), amount="-40.00")

        response = client.get(f"/api/users/{user.id}/transactions")

        assert response.status_code == 200
        data = response.json()
        assert [t["plaid_transaction_id"] for t in data] == ["new", "mid", "old"]
        assert Decimal(data[1]["amount"]) == Decimal("-40.00")

    def test_excludes_other_users(self, client, db, user, account):
        bob = User(username="bob")
        db.add(bob)
        db.commit()
        _add_txn(db, account, "alice-txn", date(2024, 1, 5))

        response = client.get(f"/api/users/{bob.id}/transactions")

        assert response.status_code == 200
        assert response.json() == []
