"""Receipt text → structured expense fields, via the language model or local rules."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable, Dict, Optional

from ..ai.client import AIClient
from ..ai.fallback import with_fallback
from ..domain.categories import CATEGORY_NAMES
from ..domain.models import ExtractedReceiptData
from ..domain.normalize import normalize_amount, normalize_category, normalize_description, strict_iso_date
from ..errors import MalformedResponseError
from ..logging import get_logger
from .cache import ExtractionCache, fingerprint
from .fallback import fallback_extract

LOG = get_logger("extraction-pipeline")

PROMPT_TEXT_LIMIT = 2000


def build_prompt(text: str) -> str:
    categories = ", ".join(CATEGORY_NAMES)
    return (
        "Analyze this receipt text and extract structured data as JSON with these fields:\n"
        "- amount (number or null): The total amount paid\n"
        "- date (string in YYYY-MM-DD format or null): Transaction date\n"
        "- description (string or null): Brief description (max 50 chars)\n"
        f"- category (string): One of: {categories}\n"
        "\n"
        "IMPORTANT:\n"
        "1. Respond ONLY with valid JSON containing these exact field names\n"
        "2. For category, choose the most specific match from the provided list\n"
        "3. If information is missing, use null except for category (default to 'Other')\n"
        "\n"
        "Example response format:\n"
        "{\n"
        '  "amount": 19.99,\n'
        '  "date": "2023-05-15",\n'
        '  "description": "Coffee shop purchase",\n'
        '  "category": "Food"\n'
        "}\n"
        "\n"
        f'Receipt text: """{text[:PROMPT_TEXT_LIMIT]}"""'
    )


def parse_model_json(payload: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(payload)
    except ValueError as exc:
        raise MalformedResponseError(payload) from exc
    if not isinstance(parsed, dict):
        raise MalformedResponseError(payload)
    return parsed


def normalize_model_fields(parsed: Dict[str, Any]) -> ExtractedReceiptData:
    """Validate each field on its own; a bad field never spoils the others.

    A missing or non-ISO date stays absent here, unlike the fallback path.
    """
    return ExtractedReceiptData(
        amount=normalize_amount(parsed.get("amount")),
        date=strict_iso_date(parsed.get("date")),
        description=normalize_description(parsed.get("description")),
        category=normalize_category(parsed.get("category")),
    )


class ReceiptFieldExtractor:
    """Extract amount/date/description/category from receipt text. Never raises."""

    def __init__(
        self,
        ai: AIClient,
        cache: Optional[ExtractionCache[ExtractedReceiptData]] = None,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.ai = ai
        if cache is None:
            cache = ExtractionCache(ai.settings.cache_size, ai.settings.cache_ttl)
        self.cache = cache
        self._today = today

    def _fallback(self, text: str) -> ExtractedReceiptData:
        return fallback_extract(text, today=self._today())

    def _extract_remote(self, text: str) -> ExtractedReceiptData:
        content = self.ai.complete(build_prompt(text), temperature=0.2, max_tokens=200, json_mode=True)
        result = normalize_model_fields(parse_model_json(content))
        LOG.info(
            "Model extraction: amount=%s date=%s category=%s",
            result.amount,
            result.date,
            result.category,
        )
        return result

    def extract(self, text: str) -> ExtractedReceiptData:
        text = text or ""
        key = fingerprint(text)
        cached = self.cache.get(key)
        if cached is not None:
            LOG.debug("Returning cached extraction result")
            return cached

        if not self.ai.enabled:
            return self._fallback(text)

        result = with_fallback(
            lambda: self._extract_remote(text),
            lambda: self._fallback(text),
            label="AI field extraction",
        )
        self.cache.put(key, result)
        return result
