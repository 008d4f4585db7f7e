from __future__ import annotations

import re
from typing import Tuple

from ..ai.client import AIClient
from ..domain.models import ReceiptResult
from ..errors import InvalidImageError, NoTextDetectedError
from ..logging import get_logger
from .pipeline import ReceiptFieldExtractor

LOG = get_logger("receipt-service")

BASE64_RE = re.compile(r"^([A-Za-z0-9+/]{4})*([A-Za-z0-9+/]{3}=|[A-Za-z0-9+/]{2}==)?$")
DATA_URL_RE = re.compile(r"^data:([\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64$", re.I)
DEFAULT_MIME = "image/jpeg"


def split_image_payload(image_base64: str) -> Tuple[str, str]:
    """Strip an optional data-URL prefix and validate the base64 body.

    Returns (base64 data, mime type).
    """
    if not image_base64 or not isinstance(image_base64, str):
        raise InvalidImageError("Valid imageBase64 string is required")
    mime = DEFAULT_MIME
    data = image_base64.strip()
    if "," in data:
        prefix, _, rest = data.partition(",")
        m = DATA_URL_RE.match(prefix)
        if m and m.group(1):
            mime = m.group(1).lower()
        data = rest
    if not data or not BASE64_RE.match(data):
        raise InvalidImageError("Invalid base64 image data")
    return data, mime


class ReceiptProcessingService:
    """Image → text (no fallback) → structured fields (always answers)."""

    def __init__(self, ai: AIClient, extractor: ReceiptFieldExtractor) -> None:
        self.ai = ai
        self.extractor = extractor

    def transcribe(self, image_base64: str) -> str:
        data, mime = split_image_payload(image_base64)
        LOG.info("Starting OCR processing (%s)", mime)
        text = self.ai.transcribe_image(data, mime_type=mime)
        if not text:
            LOG.warning("No text detected in image")
            raise NoTextDetectedError()
        LOG.info("OCR completed. Text length: %s chars", len(text))
        return text

    def process(self, image_base64: str) -> ReceiptResult:
        raw_text = self.transcribe(image_base64)
        fields = self.extractor.extract(raw_text)
        return ReceiptResult.from_extraction(fields, raw_text)
