"""Exception types and the HTTP status mapping used by the web layer."""

from __future__ import annotations

from typing import Tuple

import openai


class ExpenseTrackerError(Exception):
    """Base class for errors raised by this package."""


class InvalidImageError(ExpenseTrackerError):
    pass


class NoTextDetectedError(ExpenseTrackerError):
    def __init__(self, message: str = "No text content detected in the image") -> None:
        super().__init__(message)


class CredentialsMissingError(ExpenseTrackerError):
    def __init__(self, message: str = "OpenAI API key is not configured") -> None:
        super().__init__(message)


class EmptyResponseError(ExpenseTrackerError):
    def __init__(self, message: str = "Empty response from OpenAI") -> None:
        super().__init__(message)


class MalformedResponseError(ExpenseTrackerError):
    """The model answered with something that is not the JSON object we asked for."""

    def __init__(self, payload: str) -> None:
        self.payload = payload
        preview = payload if len(payload) <= 200 else payload[:200] + "..."
        super().__init__(f"Invalid JSON response: {preview}")


class InvalidExpenseError(ExpenseTrackerError, ValueError):
    pass


DEFAULT_FAILURE = (500, "Receipt processing failed")
QUOTA_FAILURE = (429, "API quota exceeded")
AUTH_FAILURE = (401, "Authentication error")
INVALID_FAILURE = (400, "Invalid request data")


def classify_failure(exc: BaseException) -> Tuple[int, str]:
    """Map an exception from receipt processing to (status, error message).

    SDK exception types are checked first; anything else is classified by
    keywords in its message.
    """
    if isinstance(exc, NoTextDetectedError):
        return 400, str(exc)
    if isinstance(exc, openai.RateLimitError):
        return QUOTA_FAILURE
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError, CredentialsMissingError)):
        return AUTH_FAILURE
    if isinstance(exc, (openai.BadRequestError, InvalidImageError)):
        return INVALID_FAILURE

    message = str(exc)
    lowered = message.lower()
    if "quota" in lowered or "limit" in lowered:
        return QUOTA_FAILURE
    if "invalid" in lowered:
        return INVALID_FAILURE
    if "auth" in lowered or "api key" in lowered:
        return AUTH_FAILURE
    return DEFAULT_FAILURE
