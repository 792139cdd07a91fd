from typing import Optional, List, Literal

from pydantic import Field

from app.schemas.common import CamelModel


class DateRange(CamelModel):
    # "from" is a keyword, so the attribute carries a trailing underscore
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None


# /totalIncome and /totalExpense

class IncomeBySource(CamelModel):
    source_id: Optional[str] = None
    name: str
    icon: str
    total: float
    count: int
    percentage: str  # e.g. "60.00%"


class ExpenseByCategory(CamelModel):
    category_id: Optional[str] = None
    name: str
    icon: str
    total: float
    count: int
    percentage: str


class TotalIncomeResponse(CamelModel):
    message: str = "Total income fetched successfully"
    total_income: float
    income_by_source: List[IncomeBySource]
    date_range: DateRange


class TotalExpenseResponse(CamelModel):
    message: str = "Total expense fetched successfully"
    total_expense: float
    expense_by_category: List[ExpenseByCategory]
    date_range: DateRange


# /netBalance

class NetBalanceResponse(CamelModel):
    message: str = "Net balance fetched successfully"
    net_balance: float
    date_range: DateRange


# /transactions

class DimensionRef(CamelModel):
    id: str
    name: str
    icon: str


class FeedTransaction(CamelModel):
    id: str
    type: Literal["income", "expense"]
    icon: str
    name: str
    description: str
    amount: float
    date: str
    # Category for expenses, source for incomes
    category: Optional[DimensionRef] = None
    images: List[str] = []


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool


class TransactionFeedResponse(CamelModel):
    message: str = "Transactions fetched successfully"
    transactions: List[FeedTransaction]
    pagination: Pagination


# /expenseSummary and /incomeSummary

class RecordHighlight(CamelModel):
    amount: float
    name: str
    date: str
    description: str


class ExpenseCategorySummary(CamelModel):
    category_id: str
    name: str
    icon: str
    total: float
    count: int
    average_expense: float
    percentage: float
    highest_expense: RecordHighlight
    recent_expenses: List[RecordHighlight]


class IncomeSourceSummary(CamelModel):
    source_id: str
    name: str
    icon: str
    total: float
    count: int
    average_income: float
    percentage: float
    highest_income: RecordHighlight
    recent_incomes: List[RecordHighlight]


class ExpenseSummaryResponse(CamelModel):
    message: str = "Expense summary fetched successfully"
    total_expense: float
    expense_summary: List[ExpenseCategorySummary]
    date_range: DateRange


class IncomeSummaryResponse(CamelModel):
    message: str = "Income summary fetched successfully"
    total_income: float
    income_summary: List[IncomeSourceSummary]
    date_range: DateRange
