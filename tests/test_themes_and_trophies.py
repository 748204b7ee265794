from decimal import Decimal

from grovesmith.models import CategoryBalances
from grovesmith.themes import AVAILABLE_THEMES, _string_hash, theme_by_id, theme_for, unlocked_themes
from grovesmith.trophies import NEXT_GOAL, display_trophies, earned_trophies, evaluate_trophies


def test_string_hash_wraps_to_signed_32_bits() -> None:
    assert _string_hash("") == 0
    assert _string_hash("a") == 97
    assert _string_hash("ab") == 97 * 31 + 98
    # long strings overflow many times over
    assert -(2**31) <= _string_hash("x" * 64) < 2**31


def test_theme_is_stable_for_an_id() -> None:
    first = theme_for("c1a2f3")
    assert theme_for("c1a2f3") is first
    assert first in AVAILABLE_THEMES
    assert theme_for("ab") is AVAILABLE_THEMES[(97 * 31 + 98) % 10]


def test_theme_lookup_and_unlocked_set() -> None:
    assert len(AVAILABLE_THEMES) == 10
    assert theme_by_id("ocean").name == "Ocean Breeze"
    assert theme_by_id("missing") is None
    assert [theme.id for theme in unlocked_themes()] == ["sunset", "ocean", "forest"]
    assert "linear-gradient" in AVAILABLE_THEMES[0].gradient_css


def test_no_trophies_for_empty_balances() -> None:
    balances = CategoryBalances()
    assert earned_trophies(balances) == []
    shown = display_trophies(balances)
    assert len(shown) == 4
    assert not any(trophy.earned for trophy in shown)


def test_trophy_thresholds() -> None:
    balances = CategoryBalances(give=Decimal("25"), spend=Decimal("10"), save=Decimal("50"), invest=Decimal("10"))
    earned = {trophy.id for trophy in earned_trophies(balances)}
    assert earned == {
        "first-saver",
        "generous-giver",
        "smart-investor",
        "wise-spender",
        "big-saver",
        "champion-giver",
        "goal-achiever",
    }

    partial = CategoryBalances(save=Decimal("49.99"), give=Decimal("5"))
    flags = {trophy.id: trophy.earned for trophy in evaluate_trophies(partial)}
    assert flags["first-saver"] and flags["generous-giver"]
    assert not flags["big-saver"] and not flags["champion-giver"] and not flags["goal-achiever"]


def test_display_puts_earned_first() -> None:
    balances = CategoryBalances(invest=Decimal("1"))
    shown = display_trophies(balances)
    assert shown[0].id == "smart-investor" and shown[0].earned
    assert len(shown) == 4

    roomy = display_trophies(balances, max_display=10)
    assert roomy[-1] is NEXT_GOAL
    assert len(roomy) == 8
