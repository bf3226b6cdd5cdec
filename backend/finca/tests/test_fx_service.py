"""
Tests for the conversion resolver and the multi-target normalizer.
"""
import pytest
from decimal import Decimal
from finca.services.fx_service import convert, normalize, resolve_rate, InvalidAmountError
from finca.services.rate_table import RateTable

TOLERANCE = Decimal("1e-6")

RATES = RateTable.from_pairs({
    ("SGD", "INR"): "60",
    ("SGD", "USD"): "0.75",
    ("EUR", "SGD"): "1.45",
})


@pytest.mark.parametrize("currency", ["INR", "SGD", "USD", "XYZ"])
def test_identity_with_any_table(currency):
    """Same-currency conversion returns the amount untouched, even with no rates."""
    amount = Decimal("123.456789")
    assert convert(amount, currency, currency, RateTable()) == amount
    assert convert(amount, currency, currency, RATES) == amount


@pytest.mark.parametrize("amount", ["1", "42.5", "0.01", "99999.99"])
def test_direct_and_inverse(amount):
    """A stored A->B rate multiplies; the reverse direction divides."""
    x = Decimal(amount)
    assert convert(x, "SGD", "INR", RATES) == x * Decimal("60")
    assert convert(x, "INR", "SGD", RATES) == x / Decimal("60")


def test_hub_relay():
    """EUR->INR has no direct or inverse rate and goes through SGD."""
    assert convert(Decimal("10"), "EUR", "INR", RATES) == Decimal("10") * Decimal("1.45") * Decimal("60")


def test_hub_relay_resolves_inverse_legs():
    """Legs of the relay may themselves be inverse rates."""
    rates = RateTable.from_pairs({("SGD", "EUR"): "0.5", ("INR", "SGD"): "0.0125"})
    # EUR->SGD = 1 / 0.5, SGD->INR = 1 / 0.0125
    result = convert(Decimal("3"), "EUR", "INR", rates)
    assert abs(result - Decimal("480")) < TOLERANCE


def test_direct_rate_wins_over_relay():
    rates = RateTable.from_pairs({
        ("EUR", "INR"): "90",
        ("EUR", "SGD"): "1.45",
        ("SGD", "INR"): "60",
    })
    assert convert(Decimal("2"), "EUR", "INR", rates) == Decimal("180")


def test_no_path_returns_none():
    assert convert(Decimal("5"), "INR", "USD", RateTable()) is None


def test_relay_needs_both_legs():
    rates = RateTable.from_pairs({("EUR", "SGD"): "1.45"})
    assert convert(Decimal("5"), "EUR", "GBP", rates) is None


def test_no_double_relay_when_hub_is_endpoint():
    """GBP->SGD with only GBP->EUR and EUR->SGD is not resolved."""
    rates = RateTable.from_pairs({("GBP", "EUR"): "1.17", ("EUR", "SGD"): "1.45"})
    assert convert(Decimal("5"), "GBP", "SGD", rates) is None


def test_custom_hub_currency():
    rates = RateTable.from_pairs({("INR", "USD"): "0.012", ("USD", "EUR"): "0.9"})
    result = convert(Decimal("1000"), "INR", "EUR", rates, hub_currency="USD")
    assert result == Decimal("1000") * Decimal("0.012") * Decimal("0.9")
    assert convert(Decimal("1000"), "INR", "EUR", rates) is None


def test_codes_are_case_insensitive():
    assert convert(Decimal("2"), "sgd", "inr", RATES) == Decimal("120")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("NaN"), Decimal("Infinity")])
def test_invalid_amount_fails_fast(amount):
    with pytest.raises(InvalidAmountError):
        convert(amount, "SGD", "INR", RATES)


def test_resolve_rate():
    assert resolve_rate("SGD", "USD", RATES) == Decimal("0.75")
    assert resolve_rate("USD", "SGD", RATES) == Decimal(1) / Decimal("0.75")
    assert resolve_rate("USD", "GBP", RATES) is None


@pytest.mark.parametrize("amount", ["0.01", "1", "1234.567", "100000"])
def test_normalize_hub_currency_is_exact(amount):
    x = Decimal(amount)
    result = normalize(x, "SGD", RATES, hub_currency="SGD", reporting_currencies=["SGD", "INR", "USD"])
    assert result.hub_amount == x
    assert result.reporting_amounts["SGD"] == x
    assert result.reporting_amounts["INR"] == x * Decimal("60")
    assert result.reporting_amounts["USD"] == x * Decimal("0.75")


def test_normalize_end_to_end_inverse_then_hub():
    """50 INR: no INR->SGD row, so the inverse of SGD->INR gives the hub amount."""
    rates = RateTable.from_pairs({("SGD", "INR"): "60", ("SGD", "USD"): "0.75"})
    result = normalize(Decimal("50"), "INR", rates, hub_currency="SGD", reporting_currencies=["SGD", "INR", "USD"])
    assert abs(result.hub_amount - Decimal("0.8333333")) < TOLERANCE
    assert result.reporting_amounts["INR"] == Decimal("50")
    assert abs(result.reporting_amounts["USD"] - Decimal("0.625")) < TOLERANCE
    assert result.reporting_amounts["SGD"] == result.hub_amount


def test_reporting_amounts_agree_with_direct_conversion():
    """Going through the hub matches a consistent direct rate."""
    rates = RateTable.from_pairs({
        ("SGD", "INR"): "60",
        ("SGD", "USD"): "0.75",
        ("INR", "USD"): "0.0125",
    })
    amount = Decimal("1234.5")
    result = normalize(amount, "INR", rates, hub_currency="SGD", reporting_currencies=["SGD", "INR", "USD"])
    via_direct = convert(amount, "INR", "USD", rates)
    assert abs(result.reporting_amounts["USD"] - via_direct) < TOLERANCE
    ratio = result.reporting_amounts["INR"] / result.reporting_amounts["USD"]
    assert abs(ratio - convert(Decimal("1"), "USD", "INR", rates)) < TOLERANCE


def test_normalize_falls_back_to_direct_when_hub_unknown():
    rates = RateTable.from_pairs({("GBP", "USD"): "1.25"})
    result = normalize(Decimal("10"), "GBP", rates, hub_currency="SGD", reporting_currencies=["SGD", "USD"])
    assert result.hub_amount is None
    assert result.reporting_amounts["SGD"] is None
    assert result.reporting_amounts["USD"] == Decimal("12.5")


def test_normalize_without_rates_leaves_nulls():
    result = normalize(Decimal("10"), "EUR", RateTable(), hub_currency="SGD", reporting_currencies=["SGD", "INR"])
    assert result.hub_amount is None
    assert result.reporting_amounts == {"SGD": None, "INR": None}


def test_normalize_does_not_round():
    rates = RateTable.from_pairs({("SGD", "INR"): "3"})
    result = normalize(Decimal("1"), "INR", rates, hub_currency="SGD", reporting_currencies=["SGD"])
    assert result.hub_amount == Decimal(1) / Decimal(3)
