"""
Unit tests for the KPR (mortgage) simulator.
"""
import pytest

from app.services.kpr.calculator import (
    BANKS,
    affordability,
    monthly_payment,
    resolve_bank,
    simulate,
    tenor_options,
)


def test_monthly_payment_annuity():
    # 400 juta, 8% p.a., 10 years
    payment = monthly_payment(400_000_000, 8.0, 10)
    assert payment == pytest.approx(4_853_103, rel=1e-4)


def test_monthly_payment_zero_rate():
    assert monthly_payment(120_000_000, 0, 10) == pytest.approx(1_000_000)


def test_simulate_defaults():
    result = simulate(500_000_000)

    assert result.down_payment_percent == 20
    assert result.down_payment_amount == 100_000_000
    assert result.loan_amount == pytest.approx(400_000_000)
    assert result.annual_rate == BANKS["BRI"]
    assert result.monthly_payment == pytest.approx(monthly_payment(400_000_000, 8.0, 10))
    assert result.total_interest == pytest.approx(result.monthly_payment * 120 - 400_000_000)
    assert result.min_salary == pytest.approx(result.monthly_payment * 3)


def test_simulate_floors_down_payment_amount():
    result = simulate(333_333_333, down_payment_percent=15)
    assert result.down_payment_amount == 49_999_999


@pytest.mark.parametrize(
    "kwargs",
    [
        {"house_price": 0},
        {"house_price": 500_000_000, "tenor_years": 0},
        {"house_price": 500_000_000, "down_payment_percent": 5},
        {"house_price": 500_000_000, "down_payment_percent": 60},
        {"house_price": 500_000_000, "annual_rate": -1},
    ],
)
def test_simulate_rejects_invalid_input(kwargs):
    with pytest.raises(ValueError):
        simulate(**kwargs)


def test_tenor_options():
    options = tenor_options(400_000_000, 7.5)

    assert [o.years for o in options] == [5, 10, 15, 20, 25, 30]
    assert [o.years for o in options if o.is_recommended] == [15, 20]
    # Longer tenors: smaller installment, more interest
    payments = [o.monthly_payment for o in options]
    interest = [o.total_interest for o in options]
    assert payments == sorted(payments, reverse=True)
    assert interest == sorted(interest)
    assert all(o.affordability_level == "good" for o in options)


def test_tenor_options_affordability_with_income():
    options = {o.years: o for o in tenor_options(400_000_000, 8.0, user_income=15_000_000)}

    # ~8.1 juta/month over 5 years is > 40% of income
    assert options[5].affordability_level == "risky"
    # ~3.3 juta/month over 20 years is < 30% of income
    assert options[20].affordability_level == "good"


@pytest.mark.parametrize(
    "payment,income,level",
    [
        (2_000_000, None, "good"),
        (3_000_000, 10_000_000, "good"),
        (3_500_000, 10_000_000, "moderate"),
        (4_500_000, 10_000_000, "risky"),
    ],
)
def test_affordability_levels(payment, income, level):
    assert affordability(payment, income) == level


def test_resolve_bank_is_case_insensitive():
    assert resolve_bank("mandiri") == ("Mandiri", 8.2)
    assert resolve_bank("BCA") == ("BCA", 7.5)
    with pytest.raises(ValueError):
        resolve_bank("Bank Lain")
