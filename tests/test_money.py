from decimal import Decimal

import pytest

from grovesmith.exceptions import ValidationError
from grovesmith.money import format_currency, parse_amount, require_positive, split_evenly, to_decimal


def test_to_decimal_quantizes_to_cents() -> None:
    assert to_decimal(12.5) == Decimal("12.50")
    assert to_decimal("3.005") == Decimal("3.01")
    assert to_decimal(Decimal("7")) == Decimal("7.00")


def test_to_decimal_rejects_bad_input() -> None:
    with pytest.raises(ValidationError):
        to_decimal("twelve")
    with pytest.raises(ValidationError):
        to_decimal("NaN")
    with pytest.raises(TypeError):
        to_decimal(True)


def test_require_positive_labels_the_field() -> None:
    assert require_positive(Decimal("0.00"), allow_zero=True) == Decimal("0.00")
    with pytest.raises(ValidationError, match="Goal amount must be greater than zero"):
        require_positive(Decimal("0.00"), label="Goal amount")
    with pytest.raises(ValidationError, match="zero or greater"):
        require_positive(Decimal("-1.00"), allow_zero=True)


def test_parse_amount_accepts_form_text() -> None:
    assert parse_amount("$1,200.5") == Decimal("1200.50")
    assert parse_amount("  ", default=Decimal("0")) == Decimal("0.00")
    with pytest.raises(ValidationError, match="Enter an amount"):
        parse_amount("")


def test_split_evenly_keeps_every_cent() -> None:
    assert split_evenly("10.00") == (Decimal("2.50"),) * 4
    parts = split_evenly("10.03")
    assert parts == (Decimal("2.51"), Decimal("2.51"), Decimal("2.51"), Decimal("2.50"))
    assert sum(parts) == Decimal("10.03")


def test_format_currency() -> None:
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-3")) == "-$3.00"


def test_oversized_amounts_are_rejected() -> None:
    assert to_decimal("9999999999.99") == Decimal("9999999999.99")
    for raw in ("1e30", "10000000000", "-1e40"):
        with pytest.raises(ValidationError, match="too large"):
            parse_amount(raw)
    with pytest.raises(ValidationError):
        to_decimal(Decimal("1e40"))
