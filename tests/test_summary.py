from __future__ import annotations

import pytest

from expense_tracker.domain.models import Expense
from expense_tracker.ledger.summary import (
    MonthlySummary,
    category_shares,
    category_totals,
    filter_by_month,
    tips_payload,
    total_amount,
)


def _expense(i: int, amount: float, date: str, category: str, description: str = "") -> Expense:
    return Expense(id=i, amount=amount, date=date, description=description, category=category)


LEDGER = [
    _expense(1, 100.0, "2024-03-02", "Food", "Lunch"),
    _expense(2, 300.0, "2024-03-10", "Travel", "Train"),
    _expense(3, 50.0, "2024-03-11", "Food", "Snacks"),
    _expense(4, 999.0, "2024-04-01", "Shopping", "Shoes"),
    _expense(5, 25.0, "2024-03-20", "", "Unknown"),
]


def test_filter_by_month_and_totals():
    march = filter_by_month(LEDGER, "2024-03")
    assert [e.id for e in march] == [1, 2, 3, 5]
    assert total_amount(march) == 475.0


def test_invalid_month_is_rejected():
    with pytest.raises(ValueError):
        filter_by_month(LEDGER, "2024-13")


def test_category_totals_keep_first_seen_order_and_label_blank():
    totals = category_totals(filter_by_month(LEDGER, "2024-03"))
    assert list(totals.items()) == [("Food", 150.0), ("Travel", 300.0), ("Uncategorized", 25.0)]


def test_category_shares():
    assert category_shares({"Food": 25.0, "Travel": 75.0}) == {"Food": 25.0, "Travel": 75.0}
    assert category_shares({"Food": 0.0}) == {"Food": 0.0}


def test_tips_payload_is_capped():
    many = [_expense(i, 1.0, "2024-03-01", "Food") for i in range(60)]
    payload = tips_payload(many)
    assert len(payload) == 50
    assert payload[0] == {"category": "Food", "amount": 1.0, "description": ""}


def test_monthly_summary():
    report = MonthlySummary.build(LEDGER, "2024-04").to_dict()
    assert report == {
        "month": "2024-04",
        "count": 1,
        "total": 999.0,
        "by_category": {"Shopping": 999.0},
        "shares": {"Shopping": 100.0},
    }
