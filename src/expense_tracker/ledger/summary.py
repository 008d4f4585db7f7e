"""Monthly filtering and per-category aggregation of ledger expenses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from ..domain.models import Expense

UNCATEGORIZED = "Uncategorized"
TIPS_PAYLOAD_LIMIT = 50

_MONTH_RE = re.compile(r"\d{4}-(0[1-9]|1[0-2])")


def validate_month(month: str) -> str:
    if not isinstance(month, str) or not _MONTH_RE.fullmatch(month):
        raise ValueError(f"month must be YYYY-MM, got {month!r}")
    return month


def filter_by_month(expenses: Iterable[Expense], month: str) -> List[Expense]:
    validate_month(month)
    return [e for e in expenses if e.month == month]


def total_amount(expenses: Iterable[Expense]) -> float:
    return round(sum(e.amount for e in expenses), 2)


def totals_by_category(pairs: Iterable[Tuple[str, float]]) -> Dict[str, float]:
    """Sum amounts per category, keeping first-seen order (used for tie-breaks)."""
    totals: Dict[str, float] = {}
    for category, amount in pairs:
        totals[category] = totals.get(category, 0.0) + amount
    return totals


def category_totals(expenses: Iterable[Expense]) -> Dict[str, float]:
    totals = totals_by_category((e.category or UNCATEGORIZED, e.amount) for e in expenses)
    return {k: round(v, 2) for k, v in totals.items()}


def category_shares(totals: Dict[str, float]) -> Dict[str, float]:
    """Percentage of the overall total per category (0 when nothing was spent)."""
    grand = sum(totals.values())
    if grand <= 0:
        return {k: 0.0 for k in totals}
    return {k: round(v / grand * 100, 1) for k, v in totals.items()}


def tips_payload(expenses: Sequence[Expense], limit: int = TIPS_PAYLOAD_LIMIT) -> List[Dict[str, Any]]:
    return [
        {"category": e.category, "amount": e.amount, "description": e.description}
        for e in expenses[:limit]
    ]


@dataclass
class MonthlySummary:
    month: str
    count: int
    total: float
    by_category: Dict[str, float] = field(default_factory=dict)
    shares: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def build(cls, expenses: Iterable[Expense], month: str) -> "MonthlySummary":
        selected = filter_by_month(expenses, month)
        totals = category_totals(selected)
        return cls(
            month=month,
            count=len(selected),
            total=total_amount(selected),
            by_category=totals,
            shares=category_shares(totals),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "count": self.count,
            "total": self.total,
            "by_category": self.by_category,
            "shares": self.shares,
        }
