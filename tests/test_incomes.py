from datetime import datetime

import pytest
from httpx import AsyncClient


class TestIncomesAPI:
    """Tests for /api/v1/incomes."""

    @pytest.mark.asyncio
    async def test_create_income(self, client: AsyncClient, ledger):
        salary = await ledger.source("Salary")

        response = await client.post(
            "/api/v1/incomes",
            json={
                "icon": "💼",
                "name": "March salary",
                "amount": 5000,
                "source_id": salary.id,
                "date": "2024-03-31T09:00:00",
            },
        )

        assert response.status_code == 201
        income = response.json()["income"]
        assert income["sourceId"] == salary.id
        assert income["source"]["name"] == "Salary"
        assert income["date"].startswith("2024-03-31T09:00:00")

    @pytest.mark.asyncio
    async def test_unknown_source_is_not_found(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/incomes",
            json={
                "icon": "💼",
                "name": "Salary",
                "amount": 10,
                "source_id": "missing",
                "date": "2024-03-31",
            },
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Source not found"

    @pytest.mark.asyncio
    async def test_partial_update(self, client: AsyncClient, ledger):
        salary = await ledger.source("Salary")
        income = await ledger.income(100, datetime(2024, 3, 1), salary, name="Pay", description="base")

        response = await client.put(
            f"/api/v1/incomes/{income.id}", json={"description": "base + bonus"}
        )

        assert response.status_code == 200
        updated = response.json()["income"]
        assert updated["description"] == "base + bonus"
        assert updated["amount"] == 100
        assert updated["name"] == "Pay"
        assert updated["sourceId"] == salary.id

    @pytest.mark.asyncio
    async def test_list_filters_by_source_name(self, client: AsyncClient, ledger):
        salary = await ledger.source("Salary")
        gifts = await ledger.source("Gifts")
        await ledger.income(100, datetime(2024, 3, 1), salary)
        await ledger.income(20, datetime(2024, 3, 2), gifts)

        response = await client.get("/api/v1/incomes", params={"source": "Gifts"})

        data = response.json()
        assert data["message"] == "Incomes listed successfully"
        assert [i["amount"] for i in data["incomes"]] == [20]

    @pytest.mark.asyncio
    async def test_delete_missing_income(self, client: AsyncClient):
        response = await client.delete("/api/v1/incomes/missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Income not found"
