"""
Tests for transfer API endpoints.

These test the HTTP layer: status codes, response format,
and error translation. Business logic is tested in
test_transfer_service.py.
"""

from decimal import Decimal


def as_user(user):
    return {"X-User-Id": str(user.id)}


class TestSendMoney:

    def test_requires_user_header(self, client):
        response = client.post("/transfers", json={"to_user_id": 1, "amount": "10"})
        assert response.status_code == 401

    def test_success_returns_201(self, client, make_user):
        alice = make_user("alice@test.com", wallet="500.00", full_name="Alice")
        bob = make_user("bob@test.com", full_name="Bob")

        response = client.post("/transfers", headers=as_user(alice), json={
            "to_user_id": bob.id,
            "amount": "200",
            "note": "rent",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["transfer_reference"].startswith("TRF")
        assert data["destination_type"] == "wallet"
        assert data["recipient"]["name"] == "Bob"
        assert Decimal(data["updated_balances"]["sender"]["wallet_balance"]) == Decimal("300.00")
        assert Decimal(data["updated_balances"]["recipient"]["wallet_balance"]) == Decimal("200.00")

    def test_insufficient_funds_returns_400(self, client, make_user):
        alice = make_user("alice@test.com", wallet="10.00")
        bob = make_user("bob@test.com")

        response = client.post("/transfers", headers=as_user(alice), json={
            "to_user_id": bob.id,
            "amount": "10.01",
        })

        assert response.status_code == 400
        assert "Available: ₹10.00" in response.json()["detail"]

    def test_unknown_recipient_returns_404(self, client, make_user):
        alice = make_user("alice@test.com", wallet="10.00")

        response = client.post("/transfers", headers=as_user(alice), json={
            "to_user_id": 9999,
            "amount": "1",
        })

        assert response.status_code == 404
        assert response.json()["detail"] == "Recipient not found"

    def test_bad_source_returns_400(self, client, make_user):
        alice = make_user("alice@test.com", wallet="10.00")
        bob = make_user("bob@test.com")

        response = client.post("/transfers", headers=as_user(alice), json={
            "to_user_id": bob.id,
            "amount": "1",
            "source": "card",
        })

        assert response.status_code == 400

    def test_to_self_returns_400(self, client, make_user):
        alice = make_user("alice@test.com", wallet="10.00")

        response = client.post("/transfers", headers=as_user(alice), json={
            "to_user_id": alice.id,
            "amount": "1",
        })

        assert response.status_code == 400
        assert "self transfer" in response.json()["detail"]

    def test_repeat_idempotency_key_returns_same_transfer(self, client, make_user):
        alice = make_user("alice@test.com", wallet="100.00")
        bob = make_user("bob@test.com")
        body = {"to_user_id": bob.id, "amount": "30", "idempotency_key": "pay-1"}

        first = client.post("/transfers", headers=as_user(alice), json=body)
        second = client.post("/transfers", headers=as_user(alice), json=body)

        assert first.json()["transfer_id"] == second.json()["transfer_id"]
        balances = client.get("/wallet/balances", headers=as_user(alice)).json()
        assert Decimal(balances["wallet_balance"]) == Decimal("70.00")


class TestSelfTransfer:

    def test_moves_between_own_accounts(self, client, make_user, make_account):
        alice = make_user("alice@test.com")
        hdfc = make_account(alice, "HDFC", balance="400.00", is_primary=True)
        sbi = make_account(alice, "SBI")

        response = client.post("/transfers/self", headers=as_user(alice), json={
            "from_account_id": hdfc.id,
            "to_account_id": sbi.id,
            "amount": "150",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["is_self_transfer"] is True
        assert data["source"] == "account"
        assert data["destination_details"]["account_id"] == sbi.id

    def test_same_account_returns_400(self, client, make_user, make_account):
        alice = make_user("alice@test.com")
        hdfc = make_account(alice, "HDFC", balance="400.00", is_primary=True)

        response = client.post("/transfers/self", headers=as_user(alice), json={
            "from_account_id": hdfc.id,
            "to_account_id": hdfc.id,
            "amount": "1",
        })

        assert response.status_code == 400


class TestHistoryAndLookup:

    def test_history_lists_both_sides(self, client, make_user):
        alice = make_user("alice@test.com", wallet="100.00")
        bob = make_user("bob@test.com")
        client.post("/transfers", headers=as_user(alice), json={
            "to_user_id": bob.id, "amount": "5",
        })

        mine = client.get("/transfers", headers=as_user(alice)).json()
        theirs = client.get("/transfers", headers=as_user(bob)).json()

        assert mine["transfers"][0]["direction"] == "sent"
        assert theirs["transfers"][0]["direction"] == "received"
        assert mine["pagination"]["total"] == 1

    def test_find_user_by_username(self, client, make_user):
        alice = make_user("alice@test.com")
        bob = make_user("bob@test.com", username="bobby", full_name="Bob Das")

        data = client.get(
            "/transfers/find-user",
            headers=as_user(alice),
            params={"identifier": "bobby"},
        ).json()

        assert data["found"] is True
        assert data["user"]["user_id"] == bob.id
        assert data["user"]["name"] == "Bob Das"

    def test_find_user_never_returns_caller(self, client, make_user):
        alice = make_user("alice@test.com")

        data = client.get(
            "/transfers/find-user",
            headers=as_user(alice),
            params={"identifier": "alice@test.com"},
        ).json()

        assert data["found"] is False
