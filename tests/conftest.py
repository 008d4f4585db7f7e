from __future__ import annotations

import os
import sys
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

# Ensure the repository's src/ is importable when tests run from the repo root
sys.path.insert(0, os.path.abspath("src"))

from expense_tracker.ai.client import AIClient
from expense_tracker.config import Settings


Reply = Union[str, None, BaseException, Callable[[Dict[str, Any]], Any]]


class FakeCompletions:
    """Stands in for ``OpenAI().chat.completions``; records every request."""

    def __init__(self, replies: List[Reply]) -> None:
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if not self.replies:
            raise AssertionError("unexpected chat.completions.create call")
        reply = self.replies.pop(0)
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(kwargs)
        if isinstance(reply, BaseException):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(id="cmpl-test", choices=[SimpleNamespace(message=message)], usage=None)


class FakeOpenAI:
    def __init__(self, replies: Optional[List[Reply]] = None) -> None:
        self.completions = FakeCompletions(replies or [])
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.completions.calls


def make_settings(api_key: Optional[str] = "sk-test", **overrides: Any) -> Settings:
    return Settings(openai_api_key=api_key, **overrides)


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def ai_client(fake_openai: FakeOpenAI) -> AIClient:
    return AIClient(make_settings(), client=fake_openai)


@pytest.fixture
def offline_client(fake_openai: FakeOpenAI) -> AIClient:
    """A client without credentials; the fake records any call that slips through."""
    return AIClient(make_settings(api_key=None), client=fake_openai)
