from datetime import datetime

import pytest
from httpx import AsyncClient


def _expense_payload(category_id: str, **overrides) -> dict:
    payload = {
        "icon": "🍔",
        "name": "Lunch",
        "description": "Team lunch",
        "amount": 42.5,
        "category_id": category_id,
        "date": "2024-03-10",
    }
    payload.update(overrides)
    return payload


class TestCreateExpense:
    """Tests for POST /api/v1/expenses."""

    @pytest.mark.asyncio
    async def test_create_expense(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")

        response = await client.post("/api/v1/expenses", json=_expense_payload(food.id))

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Expense created successfully"
        expense = data["expense"]
        assert expense["amount"] == 42.5
        assert expense["categoryId"] == food.id
        assert expense["category"]["name"] == "Food"
        assert expense["date"].startswith("2024-03-10T00:00:00")
        assert expense["images"] == []

    @pytest.mark.asyncio
    async def test_description_defaults_to_empty(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        payload = _expense_payload(food.id)
        del payload["description"]

        response = await client.post("/api/v1/expenses", json=payload)

        assert response.status_code == 201
        assert response.json()["expense"]["description"] == ""

    @pytest.mark.asyncio
    async def test_unknown_category_is_not_found(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/expenses", json=_expense_payload("no-such-category")
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Category not found"

    @pytest.mark.asyncio
    async def test_other_users_category_is_not_found(
        self, client: AsyncClient, ledger, other_user
    ):
        theirs = await ledger.category("Food", user=other_user)

        response = await client.post("/api/v1/expenses", json=_expense_payload(theirs.id))

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, 100_000_001])
    async def test_amount_out_of_range(self, client: AsyncClient, ledger, amount):
        food = await ledger.category("Food")

        response = await client.post(
            "/api/v1/expenses", json=_expense_payload(food.id, amount=amount)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_name_too_long(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")

        response = await client.post(
            "/api/v1/expenses", json=_expense_payload(food.id, name="x" * 101)
        )

        assert response.status_code == 400


class TestListExpenses:
    """Tests for GET /api/v1/expenses."""

    @pytest.mark.asyncio
    async def test_newest_first_with_total(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        for day in range(1, 6):
            await ledger.expense(day, datetime(2024, 3, day), food, name=f"day {day}")

        response = await client.get("/api/v1/expenses", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Expenses listed successfully"
        assert data["total"] == 5
        assert data["totalPages"] == 3
        assert [e["name"] for e in data["expenses"]] == ["day 5", "day 4"]

    @pytest.mark.asyncio
    async def test_search_matches_name_or_description(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        await ledger.expense(1, datetime(2024, 3, 1), food, name="Pizza")
        await ledger.expense(2, datetime(2024, 3, 2), food, name="Other", description="pizza night")
        await ledger.expense(3, datetime(2024, 3, 3), food, name="Bus")

        response = await client.get("/api/v1/expenses", params={"search": "PIZZA"})

        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_filter_by_category_id_or_name(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        rent = await ledger.category("Rent")
        await ledger.expense(10, datetime(2024, 3, 1), food)
        await ledger.expense(900, datetime(2024, 3, 1), rent)

        by_id = await client.get("/api/v1/expenses", params={"category": rent.id})
        by_name = await client.get("/api/v1/expenses", params={"category": "Food"})

        assert [e["amount"] for e in by_id.json()["expenses"]] == [900]
        assert [e["amount"] for e in by_name.json()["expenses"]] == [10]

    @pytest.mark.asyncio
    async def test_unknown_category_gives_empty_page(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        await ledger.expense(10, datetime(2024, 3, 1), food)

        response = await client.get("/api/v1/expenses", params={"category": "Nope"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 0
        assert data["expenses"] == []

    @pytest.mark.asyncio
    async def test_date_filter(self, client: AsyncClient, ledger):
        await ledger.expense(1, datetime(2024, 2, 28))
        await ledger.expense(2, datetime(2024, 3, 15))

        response = await client.get(
            "/api/v1/expenses", params={"fromDate": "2024-03-01"}
        )

        assert [e["amount"] for e in response.json()["expenses"]] == [2]


class TestSingleExpense:
    """Tests for GET/PUT/DELETE /api/v1/expenses/{id}."""

    @pytest.mark.asyncio
    async def test_get_expense(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        expense = await ledger.expense(10, datetime(2024, 3, 1), food, images=["https://img/1.png"])

        response = await client.get(f"/api/v1/expenses/{expense.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Expense found successfully"
        assert data["expense"]["images"] == ["https://img/1.png"]

    @pytest.mark.asyncio
    async def test_other_users_expense_is_not_found(
        self, client: AsyncClient, ledger, other_user
    ):
        theirs = await ledger.expense(10, datetime(2024, 3, 1), user=other_user)

        response = await client.get(f"/api/v1/expenses/{theirs.id}")

        assert response.status_code == 404
        assert response.json()["message"] == "Expense not found"

    @pytest.mark.asyncio
    async def test_update_moves_category(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        rent = await ledger.category("Rent")
        expense = await ledger.expense(10, datetime(2024, 3, 1), food)

        response = await client.put(
            f"/api/v1/expenses/{expense.id}",
            json={"category_id": rent.id, "amount": 15},
        )

        assert response.status_code == 200
        updated = response.json()["expense"]
        assert updated["amount"] == 15
        assert updated["categoryId"] == rent.id
        assert updated["category"]["name"] == "Rent"
        assert updated["name"] == expense.name

    @pytest.mark.asyncio
    async def test_update_with_unknown_category(self, client: AsyncClient, ledger):
        expense = await ledger.expense(10, datetime(2024, 3, 1))

        response = await client.put(
            f"/api/v1/expenses/{expense.id}", json={"category_id": "missing"}
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Category not found"

    @pytest.mark.asyncio
    async def test_delete_expense(self, client: AsyncClient, ledger):
        expense = await ledger.expense(10, datetime(2024, 3, 1))

        response = await client.delete(f"/api/v1/expenses/{expense.id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Expense deleted successfully"
        response = await client.get(f"/api/v1/expenses/{expense.id}")
        assert response.status_code == 404
