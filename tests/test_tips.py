from __future__ import annotations

import random

import httpx
import openai

from expense_tracker.ai.client import AIClient
from expense_tracker.config import Settings
from expense_tracker.tips import (
    ONBOARDING_TIP,
    STATIC_TIPS,
    TipGenerator,
    build_prompt,
    dominant_category,
)


def test_empty_list_returns_onboarding_prompt_without_remote_call(ai_client, fake_openai):
    assert TipGenerator(ai_client).generate([]) == ONBOARDING_TIP
    assert fake_openai.calls == []


def test_dominant_category_uses_largest_total():
    expenses = [{"category": "Food", "amount": 10}, {"category": "Travel", "amount": 50}]
    assert dominant_category(expenses) == "Travel"


def test_dominant_category_sums_per_category_and_breaks_ties_by_first_seen():
    expenses = [
        {"category": "Food", "amount": 30},
        {"category": "Travel", "amount": 50},
        {"category": "Food", "amount": 20},
    ]
    assert dominant_category(expenses) == "Food"
    assert dominant_category([{"category": "Health", "amount": 5}, {"category": "Food", "amount": 5}]) == "Health"
    many_small = [{"category": "Food", "amount": 30}, {"category": "Food", "amount": 30}, {"category": "Travel", "amount": 50}]
    assert dominant_category(many_small) == "Food"


def test_static_path_without_credential(offline_client, fake_openai):
    expenses = [{"category": "Food", "amount": 10}, {"category": "Travel", "amount": 50}]
    tip = TipGenerator(offline_client, rng=random.Random(7)).generate(expenses)
    assert tip in STATIC_TIPS["Travel"]
    assert fake_openai.calls == []


def test_force_simple_skips_remote(ai_client, fake_openai):
    tip = TipGenerator(ai_client).generate([{"category": "Education", "amount": 10}], force_simple=True)
    assert tip in STATIC_TIPS["default"]
    assert fake_openai.calls == []


def test_remote_tip_names_top_two_categories(ai_client, fake_openai):
    fake_openai.completions.replies = ["  Cook at home three days a week.  "]
    expenses = [
        {"category": "Food", "amount": 60},
        {"category": "Travel", "amount": 30},
        {"category": "Health", "amount": 10},
    ]
    assert TipGenerator(ai_client).generate(expenses) == "Cook at home three days a week."
    prompt = fake_openai.calls[0]["messages"][0]["content"]
    assert "Food (60%) and Travel (30%)" in prompt
    assert "Health" not in prompt.split("Make it")[0]
    assert "India" in prompt


def test_remote_failure_degrades_to_static_tip(ai_client, fake_openai):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    fake_openai.completions.replies = [openai.APIConnectionError(request=request)]
    tip = TipGenerator(ai_client).generate([{"category": "Groceries", "amount": 80}])
    assert tip in STATIC_TIPS["Groceries"]


def test_empty_remote_tip_uses_first_generic_tip(ai_client, fake_openai):
    fake_openai.completions.replies = [""]
    tip = TipGenerator(ai_client).generate([{"category": "Food", "amount": 1}])
    assert tip == STATIC_TIPS["default"][0]


def test_prompt_uses_configured_locale(fake_openai):
    client = AIClient(Settings(openai_api_key="sk-test", tip_locale="Germany"), client=fake_openai)
    fake_openai.completions.replies = ["Tip."]
    TipGenerator(client).generate([{"category": "Food", "amount": 1}])
    assert "Culturally appropriate for Germany" in fake_openai.calls[0]["messages"][0]["content"]


def test_build_prompt_handles_zero_total():
    assert "Food (0%)" in build_prompt({"Food": 0.0}, "India")
