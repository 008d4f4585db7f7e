from .categories import CATEGORIES, CATEGORY_NAMES, DEFAULT_CATEGORY, is_known_category
from .models import Expense, ExtractedReceiptData, ReceiptResult

__all__ = [
    "CATEGORIES",
    "CATEGORY_NAMES",
    "DEFAULT_CATEGORY",
    "is_known_category",
    "Expense",
    "ExtractedReceiptData",
    "ReceiptResult",
]
