from app.models.user import User
from app.models.category import Category
from app.models.source import Source
from app.models.expense import Expense
from app.models.income import Income

__all__ = [
    "User",
    "Category",
    "Source",
    "Expense",
    "Income",
]
