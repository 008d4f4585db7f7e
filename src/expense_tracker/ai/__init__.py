from .client import AIClient
from .fallback import with_fallback

__all__ = ["AIClient", "with_fallback"]
