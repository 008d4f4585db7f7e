"""Receipt field extraction: model-backed pipeline, regex fallback and cache."""

from .cache import ExtractionCache, fingerprint
from .fallback import fallback_extract
from .pipeline import ReceiptFieldExtractor
from .service import ReceiptProcessingService, split_image_payload

__all__ = [
    "ExtractionCache",
    "fingerprint",
    "fallback_extract",
    "ReceiptFieldExtractor",
    "ReceiptProcessingService",
    "split_image_payload",
]
