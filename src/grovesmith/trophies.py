"""Achievement trophies derived from a recipient's category balances."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from .models import CategoryBalances, CategoryType


@dataclass(frozen=True, slots=True)
class Trophy:
    id: str
    title: str
    description: str
    category: Optional[CategoryType]
    earned: bool


_Rule = Tuple[str, str, str, Optional[CategoryType], Callable[[CategoryBalances], bool]]

TROPHY_RULES: Tuple[_Rule, ...] = (
    ("first-saver", "First Saver", "Saved your first dollar", CategoryType.SAVE, lambda b: b.save > 0),
    ("generous-giver", "Generous Giver", "Made your first donation", CategoryType.GIVE, lambda b: b.give > 0),
    ("smart-investor", "Smart Investor", "Made your first investment", CategoryType.INVEST, lambda b: b.invest > 0),
    ("wise-spender", "Wise Spender", "Made your first purchase", CategoryType.SPEND, lambda b: b.spend > 0),
    ("big-saver", "Big Saver", "Saved $50 or more", CategoryType.SAVE, lambda b: b.save >= Decimal("50")),
    ("champion-giver", "Champion Giver", "Given $25 or more", CategoryType.GIVE, lambda b: b.give >= Decimal("25")),
    (
        "goal-achiever",
        "Goal Achiever",
        "Reached all category goals",
        None,
        lambda b: all(amount >= Decimal("10") for _, amount in b.items()),
    ),
)

NEXT_GOAL = Trophy("next-goal", "Next Goal", "Keep going to unlock more", None, False)


def evaluate_trophies(balances: CategoryBalances) -> List[Trophy]:
    return [
        Trophy(trophy_id, title, description, category, rule(balances))
        for trophy_id, title, description, category, rule in TROPHY_RULES
    ]


def earned_trophies(balances: CategoryBalances) -> List[Trophy]:
    return [trophy for trophy in evaluate_trophies(balances) if trophy.earned]


def display_trophies(balances: CategoryBalances, *, max_display: int = 4) -> List[Trophy]:
    """Earned trophies first, then unearned ones, capped at ``max_display``.

    A "Next Goal" placeholder is appended when the cap leaves room and at least
    one trophy is still unearned.
    """

    trophies = sorted(evaluate_trophies(balances), key=lambda trophy: not trophy.earned)
    shown = trophies[:max_display]
    if len(shown) < max_display and any(not trophy.earned for trophy in trophies):
        shown.append(NEXT_GOAL)
    return shown
