"""Budget tips: one short suggestion for the spending pattern of a period."""

from __future__ import annotations

import random
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .ai.client import AIClient
from .ai.fallback import with_fallback
from .errors import EmptyResponseError
from .ledger.summary import totals_by_category
from .logging import get_logger

LOG = get_logger("tips")

ONBOARDING_TIP = "Start tracking expenses to get personalized budget tips."
DEFAULT_KEY = "default"

STATIC_TIPS: Dict[str, List[str]] = {
    "Food": [
        "Consider meal prepping to reduce dining out costs.",
        "Try local markets for fresher ingredients at lower prices.",
    ],
    "Groceries": [
        "Buy in bulk for non-perishable items to save money.",
        "Compare prices between stores for best deals.",
    ],
    "Travel": [
        "Book tickets in advance for better prices.",
        "Consider carpooling or public transport options.",
    ],
    "Utilities": [
        "Switch off appliances at the plug overnight to trim your electricity bill.",
        "Review your mobile and internet plans for a cheaper tier that fits your usage.",
    ],
    "Entertainment": [
        "Rotate streaming subscriptions instead of paying for all of them every month.",
        "Look for weekday or early-show discounts on movie tickets.",
    ],
    "Shopping": [
        "Wait 48 hours before any non-essential purchase to avoid impulse buys.",
        "Track sale seasons and buy clothing and electronics during them.",
    ],
    "Health": [
        "Ask your pharmacist about generic alternatives to branded medicines.",
        "Check whether a longer gym membership is cheaper per month than paying monthly.",
    ],
    DEFAULT_KEY: [
        "Review your monthly subscriptions for potential savings.",
        "Set a weekly spending limit to control expenses.",
    ],
}


def _pairs(expenses: Sequence[Mapping[str, Any]]) -> List[Tuple[str, float]]:
    pairs: List[Tuple[str, float]] = []
    for e in expenses:
        category = str(e.get("category") or "Other")
        try:
            amount = float(e.get("amount") or 0)
        except (TypeError, ValueError):
            LOG.debug("Skipping expense with non-numeric amount: %r", e.get("amount"))
            continue
        pairs.append((category, amount))
    return pairs


def ranked_categories(totals: Dict[str, float]) -> List[Tuple[str, float]]:
    # sorted() is stable, so equal totals keep first-encountered order.
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def dominant_category(expenses: Sequence[Mapping[str, Any]]) -> Optional[str]:
    # Summed per category, not the category of the single largest expense:
    # many small Food entries outweigh one bigger Travel entry.
    ranked = ranked_categories(totals_by_category(_pairs(expenses)))
    return ranked[0][0] if ranked else None


def build_prompt(totals: Dict[str, float], locale: str) -> str:
    grand = sum(totals.values())
    top = []
    for category, amount in ranked_categories(totals)[:2]:
        share = (amount / grand * 100) if grand > 0 else 0.0
        top.append(f"{category} ({share:.0f}%)")
    return (
        f"Provide ONE specific budget tip for someone who spends mostly on {' and '.join(top)}.\n"
        "Make it:\n"
        "- Actionable (with concrete steps)\n"
        "- Specific to these categories\n"
        f"- Culturally appropriate for {locale}\n"
        "- 1-2 sentences maximum\n"
        "\n"
        'Example: "For your high Food expenses, try preparing lunch at home 3 days/week to save ~₹2000/month."'
    )


class TipGenerator:
    def __init__(self, ai: AIClient, *, rng: Optional[random.Random] = None) -> None:
        self.ai = ai
        self.rng = rng or random.Random()

    def static_tip(self, expenses: Sequence[Mapping[str, Any]]) -> str:
        category = dominant_category(expenses)
        tips = STATIC_TIPS.get(category or DEFAULT_KEY) or STATIC_TIPS[DEFAULT_KEY]
        return self.rng.choice(tips)

    def _remote_tip(self, expenses: Sequence[Mapping[str, Any]]) -> str:
        totals = totals_by_category(_pairs(expenses))
        prompt = build_prompt(totals, self.ai.settings.tip_locale)
        try:
            return self.ai.complete(prompt, temperature=0.4, max_tokens=100)
        except EmptyResponseError:
            return STATIC_TIPS[DEFAULT_KEY][0]

    def generate(self, expenses: Sequence[Mapping[str, Any]], force_simple: bool = False) -> str:
        if not expenses:
            return ONBOARDING_TIP
        if force_simple or not self.ai.enabled:
            LOG.info("Using static tips")
            return self.static_tip(expenses)
        LOG.info("Generating tip for %s expense(s)", len(expenses))
        return with_fallback(
            lambda: self._remote_tip(expenses),
            lambda: self.static_tip(expenses),
            label="AI tip generation",
        )
