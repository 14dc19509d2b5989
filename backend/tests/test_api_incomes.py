"""Tests for incomes API endpoints."""

from decimal import Decimal

BASE = "/api/v1/users/u1/incomes"


class TestIncomesAPI:
    """Test income endpoints."""

    def test_create_and_list(self, client, sample_user):
        response = client.post(BASE, json={"source": "Gift", "amount": "75.5", "currency": "eur"})
        assert response.status_code == 201
        data = response.json()
        assert data["currency"] == "EUR"
        assert data["income_source_id"] is None
        assert Decimal(data["amount"]) == Decimal("75.5")

        listing = client.get(BASE).json()
        assert listing["total"] == 1
        assert listing["items"][0]["id"] == data["id"]

    def test_negative_amount_rejected(self, client, sample_user):
        response = client.post(BASE, json={"source": "Gift", "amount": "-1"})
        assert response.status_code == 422

    def test_get_missing(self, client, sample_user):
        assert client.get(f"{BASE}/missing").status_code == 404

    def test_delete_keeps_source(self, client, sample_income_source):
        client.post("/api/v1/users/u1/income-sources/process-due", params={"as_of": "2024-01-01T00:00:00Z"})
        income_id = client.get(BASE).json()["items"][0]["id"]

        response = client.delete(f"{BASE}/{income_id}")
        assert response.status_code == 204
        assert client.get(BASE).json()["total"] == 0
        assert client.get("/api/v1/users/u1/income-sources").json()["total"] == 1

    def test_delete_with_cascade(self, client, sample_income_source):
        client.post("/api/v1/users/u1/income-sources/process-due", params={"as_of": "2024-01-01T00:00:00Z"})
        income_id = client.get(BASE).json()["items"][0]["id"]

        response = client.delete(f"{BASE}/{income_id}", params={"cascade": True})
        assert response.status_code == 204
        assert client.get("/api/v1/users/u1/income-sources").json()["total"] == 0
