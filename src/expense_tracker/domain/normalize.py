import math
import re
from datetime import date
from typing import Any, Optional

from ..logging import get_logger
from .categories import DEFAULT_CATEGORY, is_known_category

_LOG = get_logger("normalize")

ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
NUMERIC_DATE_RE = re.compile(r"(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})")
DESCRIPTION_MAX_LEN = 100


def strict_iso_date(value: Any) -> Optional[str]:
    """Accept only an exact, valid YYYY-MM-DD string; anything else is absent.

    No lenient parsing here: a wrong date silently stored is worse than none.
    """
    if not isinstance(value, str) or not ISO_DATE_RE.fullmatch(value):
        return None
    try:
        date.fromisoformat(value)
    except ValueError:
        return None
    return value


def parse_loose_date(value: str) -> Optional[str]:
    """Parse ISO or slash/dash numeric dates to ISO YYYY-MM-DD.

    Numeric dates are ambiguous: month-first is tried, then day-first.
    Two-digit years map to 20xx below 70, else 19xx.
    """
    if not value:
        return None
    v = value.strip()
    iso = strict_iso_date(v)
    if iso:
        return iso
    m = NUMERIC_DATE_RE.fullmatch(v)
    if not m:
        return None
    first, second, year_raw = (int(g) for g in m.groups())
    year = year_raw
    if len(m.group(3)) == 2:
        year = 2000 + year_raw if year_raw < 70 else 1900 + year_raw
    elif len(m.group(3)) == 3:
        return None
    for month, day in ((first, second), (second, first)):
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            continue
    _LOG.debug(f"Could not interpret {v!r} as a calendar date")
    return None


def normalize_amount(value: Any) -> Optional[float]:
    """Keep numeric model output only, rounded to cents."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return round(float(value), 2)


def parse_amount_text(value: str) -> Optional[float]:
    """Parse a captured receipt amount such as '1,234.56'."""
    cleaned = (value or "").replace(",", "").strip()
    if not cleaned:
        return None
    try:
        return round(float(cleaned), 2)
    except ValueError:
        return None


def normalize_description(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()[:DESCRIPTION_MAX_LEN]
    return text or None


def normalize_category(value: Any) -> str:
    if is_known_category(value):
        return value
    if value not in (None, ""):
        _LOG.debug(f"Unknown category {value!r}; using {DEFAULT_CATEGORY}")
    return DEFAULT_CATEGORY
