import io
from datetime import datetime

import pandas as pd
import pytest
from httpx import AsyncClient

from app.services.aggregation import EXPENSE, INCOME
from app.services.export_service import XLSX_MEDIA_TYPE, records_to_dataframe


class TestExpenseExport:
    """Tests for GET /api/v1/expenses/downloadExcel."""

    @pytest.mark.asyncio
    async def test_download_all_expenses(self, client: AsyncClient, ledger):
        food = await ledger.category("Food")
        await ledger.expense(
            12.5, datetime(2024, 3, 2), food, name="Lunch", description="tacos",
            images=["https://img/a.png", "https://img/b.png"],
        )
        await ledger.expense(7, datetime(2023, 1, 5), category=None, name="Misc")

        response = await client.get("/api/v1/expenses/downloadExcel")

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert response.headers["content-disposition"] == "attachment; filename=expenses.xlsx"

        sheets = pd.read_excel(io.BytesIO(response.content), sheet_name=None, engine="openpyxl")
        assert list(sheets) == ["Expenses"]
        df = sheets["Expenses"]
        assert list(df.columns) == ["Date", "Name", "Amount", "Category", "Description", "Images"]
        # Oldest first, and no default month window
        assert df["Name"].tolist() == ["Misc", "Lunch"]
        assert df["Category"].tolist() == ["Uncategorized", "Food"]
        assert df.loc[1, "Images"] == "https://img/a.png, https://img/b.png"

    @pytest.mark.asyncio
    async def test_download_respects_window(self, client: AsyncClient, ledger):
        await ledger.expense(1, datetime(2024, 2, 29, 23, 0), name="before")
        await ledger.expense(2, datetime(2024, 3, 31, 22, 0), name="inside")

        response = await client.get(
            "/api/v1/expenses/downloadExcel",
            params={"fromDate": "2024-03-01", "toDate": "2024-03-31"},
        )

        df = pd.read_excel(io.BytesIO(response.content), engine="openpyxl")
        assert df["Name"].tolist() == ["inside"]

    @pytest.mark.asyncio
    async def test_download_with_invalid_date(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/expenses/downloadExcel", params={"toDate": "someday"}
        )

        assert response.status_code == 400


class TestIncomeExport:
    """Tests for GET /api/v1/incomes/downloadExcel."""

    @pytest.mark.asyncio
    async def test_download_incomes(self, client: AsyncClient, ledger):
        salary = await ledger.source("Salary")
        await ledger.income(5000, datetime(2024, 3, 31), salary, name="Pay")

        response = await client.get("/api/v1/incomes/downloadExcel")

        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename=incomes.xlsx"
        df = pd.read_excel(io.BytesIO(response.content), sheet_name="Incomes", engine="openpyxl")
        assert list(df.columns) == ["Date", "Name", "Amount", "Source", "Description", "Images"]
        assert df.loc[0, "Source"] == "Salary"
        assert df.loc[0, "Amount"] == 5000

    @pytest.mark.asyncio
    async def test_empty_export_still_has_headers(self, client: AsyncClient):
        response = await client.get("/api/v1/incomes/downloadExcel")

        df = pd.read_excel(io.BytesIO(response.content), engine="openpyxl")
        assert df.empty
        assert "Source" in df.columns


class TestRecordsToDataframe:
    def test_columns_follow_record_kind(self):
        assert "Category" in records_to_dataframe(EXPENSE, []).columns
        assert "Source" in records_to_dataframe(INCOME, []).columns
