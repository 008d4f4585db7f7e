from .store import ExpenseStore
from .summary import MonthlySummary, category_totals, filter_by_month, tips_payload, total_amount

__all__ = [
    "ExpenseStore",
    "MonthlySummary",
    "category_totals",
    "filter_by_month",
    "tips_payload",
    "total_amount",
]
