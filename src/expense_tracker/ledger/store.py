"""JSON-file expense ledger.

The whole list lives in one JSON array, rewritten on every change. A file
that cannot be read back as a list of valid expenses is treated as
corrupted: it is deleted and the ledger starts empty.
"""

from __future__ import annotations

import json
import os
import time
from typing import List, Optional

from ..domain.models import Expense
from ..errors import InvalidExpenseError
from ..logging import get_logger

LOG = get_logger("ledger-store")


class ExpenseStore:
    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)

    def _discard_corrupted(self, reason: str) -> List[Expense]:
        LOG.error("Failed to parse expenses from %s (%s); clearing corrupted data", self.path, reason)
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        return []

    def load(self) -> List[Expense]:
        if not os.path.isfile(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (ValueError, UnicodeDecodeError) as exc:
            return self._discard_corrupted(str(exc))
        if not isinstance(raw, list):
            return self._discard_corrupted(f"expected a list, got {type(raw).__name__}")
        try:
            expenses = [Expense.from_dict(item) for item in raw]
        except (InvalidExpenseError, AttributeError) as exc:
            return self._discard_corrupted(str(exc))
        LOG.debug("Loaded %s expense(s) from %s", len(expenses), self.path)
        return expenses

    def save(self, expenses: List[Expense]) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([e.to_dict() for e in expenses], f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)

    def _next_id(self, expenses: List[Expense]) -> int:
        candidate = int(time.time() * 1000)
        taken = {e.id for e in expenses}
        while candidate in taken:
            candidate += 1
        return candidate

    def add(
        self,
        *,
        amount: float,
        date: str,
        description: str = "",
        category: str = "",
        expense_id: Optional[int] = None,
    ) -> Expense:
        """Validate and append a new expense (newest first), returning it."""
        expenses = self.load()
        expense = Expense(
            id=expense_id if expense_id is not None else self._next_id(expenses),
            amount=amount,
            date=date,
            description=(description or "").strip(),
            category=(category or "").strip(),
        )
        if any(e.id == expense.id for e in expenses):
            raise InvalidExpenseError(f"Expense id {expense.id} already exists")
        expenses.insert(0, expense)
        self.save(expenses)
        LOG.info("Added expense id=%s amount=%.2f category=%s", expense.id, expense.amount, expense.category or "-")
        return expense

    def delete(self, expense_id: int) -> bool:
        expenses = self.load()
        remaining = [e for e in expenses if e.id != expense_id]
        if len(remaining) == len(expenses):
            LOG.warning("No expense with id=%s", expense_id)
            return False
        self.save(remaining)
        LOG.info("Deleted expense id=%s", expense_id)
        return True

    def clear(self) -> int:
        count = len(self.load())
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        LOG.info("Cleared %s expense(s)", count)
        return count
