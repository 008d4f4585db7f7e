"""Thin wrapper around the OpenAI SDK used for transcription and completions."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAI

from ..config import Settings
from ..errors import CredentialsMissingError, EmptyResponseError
from ..logging import get_logger

LOG = get_logger("ai-client")

TRANSCRIBE_INSTRUCTION = (
    "Extract all text from this receipt image exactly as it appears, including numbers, dates, and prices. "
    "Preserve the original formatting and layout as much as possible."
)


class AIClient:
    """Lazily-built OpenAI client with a hard per-request timeout and no retries.

    ``enabled`` reflects whether an API key is configured. Without one, every
    call raises :class:`CredentialsMissingError` and callers are expected to
    use their local fallbacks instead of calling in the first place.
    ``client`` lets tests inject an object shaped like ``openai.OpenAI``.
    """

    def __init__(self, settings: Settings, *, client: Any = None) -> None:
        self.settings = settings
        self._client = client
        self._http_client: Optional[httpx.Client] = None
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.settings.ai_enabled

    def _get_client(self) -> Any:
        if not self.enabled:
            raise CredentialsMissingError()
        with self._lock:
            if self._client is None:
                timeout = max(self.settings.ai_timeout, self.settings.vision_timeout)
                self._http_client = httpx.Client(
                    timeout=httpx.Timeout(timeout, connect=min(5.0, timeout)),
                    limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                )
                self._client = OpenAI(
                    api_key=self.settings.openai_api_key,
                    base_url=self.settings.openai_base_url,
                    http_client=self._http_client,
                    max_retries=0,
                    timeout=self.settings.ai_timeout,
                )
                LOG.info("OpenAI client initialized (model=%s, timeout=%ss)", self.settings.model, self.settings.ai_timeout)
            return self._client

    def _create(self, *, model: str, messages: List[Dict[str, Any]], timeout: float, **kwargs: Any) -> str:
        client = self._get_client()
        completion = client.chat.completions.create(model=model, messages=messages, timeout=timeout, **kwargs)
        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) if message is not None else None
        usage = getattr(completion, "usage", None)
        LOG.debug(
            "Completion id=%s usage=%s",
            getattr(completion, "id", None),
            getattr(usage, "total_tokens", None) if usage else None,
        )
        return (content or "").strip()

    def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.2,
        max_tokens: int = 200,
        json_mode: bool = False,
    ) -> str:
        """Send a single-message chat completion and return the stripped content."""
        kwargs: Dict[str, Any] = {"temperature": temperature, "max_tokens": max_tokens}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        content = self._create(
            model=self.settings.model,
            messages=[{"role": "user", "content": prompt}],
            timeout=self.settings.ai_timeout,
            **kwargs,
        )
        if not content:
            raise EmptyResponseError()
        return content

    def transcribe_image(self, image_b64: str, *, mime_type: str = "image/jpeg") -> str:
        """Return the verbatim text visible in the image ('' when nothing was read)."""
        LOG.info("Transcribing receipt image via %s (~%s KiB)", self.settings.vision_model, len(image_b64) * 3 // 4 // 1024)
        return self._create(
            model=self.settings.vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": TRANSCRIBE_INSTRUCTION},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
                    ],
                }
            ],
            timeout=self.settings.vision_timeout,
            max_tokens=1000,
        )

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None
            self._client = None
