import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..errors import InvalidExpenseError
from .categories import DEFAULT_CATEGORY
from .normalize import strict_iso_date


@dataclass(frozen=True)
class Expense:
    """A single ledger entry. Entries are never edited, only added or removed."""

    id: int
    amount: float
    date: str
    description: str
    category: str

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise InvalidExpenseError(f"amount must be a number, got {self.amount!r}")
        if not math.isfinite(self.amount) or self.amount < 0:
            raise InvalidExpenseError(f"amount must be non-negative, got {self.amount}")
        if strict_iso_date(self.date) is None:
            raise InvalidExpenseError(f"date must be a valid YYYY-MM-DD date, got {self.date!r}")

    @property
    def month(self) -> str:
        return self.date[:7]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        try:
            return cls(
                id=int(data["id"]),
                amount=float(data["amount"]),
                date=str(data["date"]),
                description=str(data.get("description") or ""),
                category=str(data.get("category") or ""),
            )
        except InvalidExpenseError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidExpenseError(f"Malformed expense record: {data!r}") from exc


@dataclass
class ExtractedReceiptData:
    amount: Optional[float] = None
    date: Optional[str] = None
    description: Optional[str] = None
    category: str = DEFAULT_CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReceiptResult:
    """Response payload of receipt processing (keys match the HTTP contract)."""

    category: str
    amount: Optional[float]
    date: Optional[str]
    merchant: Optional[str]
    raw_text: str

    @classmethod
    def from_extraction(cls, data: ExtractedReceiptData, raw_text: str) -> "ReceiptResult":
        return cls(
            category=data.category,
            amount=data.amount,
            date=data.date,
            merchant=data.description,
            raw_text=raw_text,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "amount": self.amount,
            "date": self.date,
            "merchant": self.merchant,
            "rawText": self.raw_text,
        }
