from __future__ import annotations

import math

import pytest

from pyfuelprices.ingestion.normalize import SeparatorConvention, parse_price


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("54,10 TL/lt", 54.10),
        ("54.10", 54.10),
        (" 43,599 ", 43.599),
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        (54.1, 54.1),
        (42, 42.0),
    ],
)
def test_parse_price_auto(raw: object, expected: float) -> None:
    assert parse_price(raw) == pytest.approx(expected)


def test_parse_price_conventions_disambiguate_single_separator() -> None:
    assert parse_price("1.234") == pytest.approx(1.234)
    assert parse_price("1.234", SeparatorConvention.DECIMAL_COMMA) == pytest.approx(1234.0)
    assert parse_price("1,234", SeparatorConvention.DECIMAL_DOT) == pytest.approx(1234.0)
    assert parse_price("1,234", SeparatorConvention.DECIMAL_COMMA) == pytest.approx(1.234)


@pytest.mark.parametrize(
    "raw",
    [
        "0",
        "0,00",
        "-5,10",
        -1.0,
        0,
        float("nan"),
        float("inf"),
        "nan",
        "inf",
        "5e400",
        True,
        False,
        None,
        "",
        "-",
        "TL",
        "abc",
        ["54,10"],
    ],
)
def test_parse_price_rejects_invalid(raw: object) -> None:
    assert parse_price(raw) is None


@pytest.mark.parametrize("value", [54.1, 43.599, 1234.5, 1e-05, 7.0])
def test_parse_price_is_idempotent_on_its_own_output(value: float) -> None:
    first = parse_price(value)
    assert first is not None
    assert parse_price(repr(first)) == first


def test_parse_price_never_returns_non_finite() -> None:
    for raw in ("1e308", "9" * 400, "1.5E+3"):
        result = parse_price(raw)
        assert result is None or (math.isfinite(result) and result > 0)
