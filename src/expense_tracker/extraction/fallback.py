"""Local regex heuristics used when the language model is unavailable.

Each field has an ordered table of matchers. A matcher captures a piece of
text and converts it; the first matcher yielding a value wins, and a capture
that fails to convert simply moves on to the next matcher. Fields are
computed independently of each other.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Generic, Optional, Sequence, TypeVar

from ..domain.categories import DEFAULT_CATEGORY, keyword_pairs
from ..domain.models import ExtractedReceiptData
from ..domain.normalize import DESCRIPTION_MAX_LEN, parse_amount_text, parse_loose_date
from ..logging import get_logger

LOG = get_logger("extraction-fallback")

DEFAULT_DESCRIPTION = "Processed Receipt"

T = TypeVar("T")


@dataclass(frozen=True)
class FieldMatcher(Generic[T]):
    name: str
    pattern: "re.Pattern[str]"
    convert: Callable[[str], Optional[T]]

    def match(self, text: str) -> Optional[T]:
        m = self.pattern.search(text)
        if not m:
            return None
        return self.convert(m.group(1))


def first_match(matchers: Sequence[FieldMatcher[T]], text: str) -> Optional[T]:
    for matcher in matchers:
        value = matcher.match(text)
        if value is not None:
            LOG.debug("Matcher %s produced %r", matcher.name, value)
            return value
    return None


def _clean_description(value: str) -> Optional[str]:
    text = value.strip()[:DESCRIPTION_MAX_LEN]
    return text or None


_AMOUNT = r"([\d,]+\.\d{2})"
_NUMERIC_DATE = r"(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})"

AMOUNT_MATCHERS: Sequence[FieldMatcher[float]] = (
    FieldMatcher(
        "labelled-total", re.compile(r"\b(?:total|amount|rs|inr)\b\.?\s*:?\s*" + _AMOUNT, re.I), parse_amount_text
    ),
    FieldMatcher("labelled-payment", re.compile(r"\b(?:payment|paid)\b\s*:?\s*" + _AMOUNT, re.I), parse_amount_text),
    FieldMatcher("bare-decimal", re.compile(r"\b" + _AMOUNT + r"\s*(?:rs|inr)?\b", re.I), parse_amount_text),
)

DATE_MATCHERS: Sequence[FieldMatcher[str]] = (
    FieldMatcher("iso", re.compile(r"(\d{4}-\d{2}-\d{2})"), parse_loose_date),
    FieldMatcher("numeric", re.compile(_NUMERIC_DATE), parse_loose_date),
    FieldMatcher("labelled-numeric", re.compile(r"(?:date|on)\s*:?\s*" + _NUMERIC_DATE, re.I), parse_loose_date),
)

DESCRIPTION_MATCHERS: Sequence[FieldMatcher[str]] = (
    FieldMatcher("vendor-label", re.compile(r"\b(?:at|from|store|vendor)\b\s*:?\s*([^\n]{5,50})", re.I), _clean_description),
    FieldMatcher("item-label", re.compile(r"\b(?:description|item)\b\s*:?\s*([^\n]{5,50})", re.I), _clean_description),
    FieldMatcher("first-line", re.compile(r"\A([^\n]{10,50})(?=\n|\Z)"), _clean_description),
)


def match_category(text: str) -> str:
    lowered = (text or "").lower()
    for category, keyword in keyword_pairs():
        if keyword in lowered:
            return category
    return DEFAULT_CATEGORY


def fallback_extract(text: str, *, today: Optional[date] = None) -> ExtractedReceiptData:
    """Best-effort structured fields from receipt text using local rules only.

    Unlike the model path, a missing date defaults to ``today``.
    """
    text = text or ""
    LOG.info("Using fallback expense extraction (%s chars)", len(text))
    found_date = first_match(DATE_MATCHERS, text)
    return ExtractedReceiptData(
        amount=first_match(AMOUNT_MATCHERS, text),
        date=found_date or (today or date.today()).isoformat(),
        description=first_match(DESCRIPTION_MATCHERS, text) or DEFAULT_DESCRIPTION,
        category=match_category(text),
    )
