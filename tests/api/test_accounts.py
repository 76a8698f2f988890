"""
Tests for account, wallet and history API endpoints.
"""

from decimal import Decimal


def as_user(user):
    return {"X-User-Id": str(user.id)}


class TestAccounts:

    def test_open_and_list(self, client, make_user):
        user = make_user("a@test.com")

        first = client.post("/accounts", headers=as_user(user), json={
            "bank_name": "HDFC Bank", "account_number": "50100012345678",
        })
        client.post("/accounts", headers=as_user(user), json={
            "bank_name": "SBI", "account_number": "30001112223334",
        })

        assert first.status_code == 201
        assert first.json()["is_primary"] is True
        listed = client.get("/accounts", headers=as_user(user)).json()
        assert [a["bank_name"] for a in listed] == ["HDFC Bank", "SBI"]

    def test_duplicate_returns_400(self, client, make_user):
        user = make_user("a@test.com")
        body = {"bank_name": "HDFC Bank", "account_number": "50100012345678"}
        client.post("/accounts", headers=as_user(user), json=body)

        response = client.post("/accounts", headers=as_user(user), json=body)

        assert response.status_code == 400

    def test_set_primary(self, client, make_user, make_account):
        user = make_user("a@test.com")
        make_account(user, "HDFC", is_primary=True)
        sbi = make_account(user, "SBI")

        response = client.post(f"/accounts/{sbi.id}/primary", headers=as_user(user))

        assert response.status_code == 200
        assert response.json()["is_primary"] is True

    def test_close_with_balance_returns_400(self, client, make_user, make_account):
        user = make_user("a@test.com")
        make_account(user, "HDFC", is_primary=True)
        sbi = make_account(user, "SBI", balance="5.00")

        response = client.delete(f"/accounts/{sbi.id}", headers=as_user(user))

        assert response.status_code == 400

    def test_deposit_and_withdraw(self, client, make_user, make_account):
        user = make_user("a@test.com")
        account = make_account(user, "HDFC", is_primary=True)

        client.post(f"/accounts/{account.id}/deposit", headers=as_user(user),
                    json={"amount": "100"})
        response = client.post(f"/accounts/{account.id}/withdraw",
                               headers=as_user(user), json={"amount": "40"})

        assert response.status_code == 200
        assert Decimal(response.json()["balance_after"]) == Decimal("60.00")

    def test_foreign_account_returns_404(self, client, make_user, make_account):
        user = make_user("a@test.com")
        foreign = make_account(make_user("b@test.com"), "HDFC", balance="50.00")

        response = client.post(f"/accounts/{foreign.id}/withdraw",
                               headers=as_user(user), json={"amount": "1"})

        assert response.status_code == 404


class TestWallet:

    def test_balances(self, client, make_user, make_account):
        user = make_user("a@test.com", wallet="25.00")
        make_account(user, "HDFC", balance="75.00", is_primary=True)

        data = client.get("/wallet/balances", headers=as_user(user)).json()

        assert Decimal(data["wallet_balance"]) == Decimal("25.00")
        assert Decimal(data["account_balance"]) == Decimal("75.00")
        assert data["total_accounts"] == 1

    def test_round_trip(self, client, make_user, make_account):
        user = make_user("a@test.com", wallet="25.00")
        account = make_account(user, "HDFC", balance="75.00", is_primary=True)

        out = client.post("/wallet/to-account", headers=as_user(user),
                          json={"account_id": account.id, "amount": "25"})
        back = client.post("/wallet/from-account", headers=as_user(user),
                           json={"account_id": account.id, "amount": "100"})

        assert out.status_code == back.status_code == 200
        assert Decimal(back.json()["wallet_balance"]) == Decimal("100.00")
        assert Decimal(back.json()["account_balance"]) == Decimal("0.00")

    def test_overdraw_returns_400(self, client, make_user, make_account):
        user = make_user("a@test.com", wallet="25.00")
        account = make_account(user, "HDFC", is_primary=True)

        response = client.post("/wallet/to-account", headers=as_user(user),
                               json={"account_id": account.id, "amount": "26"})

        assert response.status_code == 400


class TestHistory:

    def test_filters_by_type(self, client, make_user, make_account):
        user = make_user("a@test.com", wallet="25.00")
        account = make_account(user, "HDFC", is_primary=True)
        client.post(f"/accounts/{account.id}/deposit", headers=as_user(user),
                    json={"amount": "10"})
        client.post("/wallet/to-account", headers=as_user(user),
                    json={"account_id": account.id, "amount": "5"})

        everything = client.get("/history", headers=as_user(user)).json()
        deposits = client.get("/history", headers=as_user(user),
                              params={"transaction_type": "ACCOUNT_DEPOSIT"}).json()

        assert everything["pagination"]["total"] == 2
        assert [r["transaction_type"] for r in deposits["records"]] == ["ACCOUNT_DEPOSIT"]

    def test_limit_is_bounded(self, client, make_user):
        user = make_user("a@test.com")
        response = client.get("/history", headers=as_user(user), params={"limit": 1000})
        assert response.status_code == 422
