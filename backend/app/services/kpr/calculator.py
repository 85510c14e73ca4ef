"""
KPR (home mortgage) simulator.

Closed-form annuity formula:
monthly_payment = loan * r / (1 - (1 + r) ** -n)

where:
- loan = house_price * (1 - down_payment_percent / 100)
- r = annual_rate / 12 / 100
- n = tenor_years * 12

The minimum recommended salary is three times the monthly payment.
"""
import math
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel


# Annual interest rates (%) offered in the simulator
BANKS: Dict[str, float] = {
    "BRI": 8.0,
    "BCA": 7.5,
    "Mandiri": 8.2,
}

TENOR_OPTIONS = [5, 10, 15, 20, 25, 30]
RECOMMENDED_TENORS = {15, 20}

MIN_DOWN_PAYMENT_PERCENT = 10
MAX_DOWN_PAYMENT_PERCENT = 50
SALARY_MULTIPLIER = 3

# Payment-to-income thresholds
MODERATE_RATIO = 0.3
RISKY_RATIO = 0.4


class KPRSimulation(BaseModel):
    house_price: float
    down_payment_percent: float
    down_payment_amount: int
    loan_amount: float
    annual_rate: float
    tenor_years: int
    monthly_payment: float
    total_interest: float
    min_salary: float


class TenorOption(BaseModel):
    years: int
    monthly_payment: float
    total_interest: float
    is_recommended: bool
    affordability_level: str


def monthly_payment(loan_amount: float, annual_rate: float, tenor_years: int) -> float:
    """Fixed monthly installment for an amortizing loan."""
    months = tenor_years * 12
    monthly_rate = annual_rate / 12 / 100
    if monthly_rate == 0:
        return loan_amount / months
    return (loan_amount * monthly_rate) / (1 - math.pow(1 + monthly_rate, -months))


def affordability(payment: float, user_income: Optional[float]) -> str:
    if not user_income:
        return "good"
    ratio = payment / user_income
    if ratio > RISKY_RATIO:
        return "risky"
    if ratio > MODERATE_RATIO:
        return "moderate"
    return "good"


def simulate(
    house_price: float,
    down_payment_percent: float = 20,
    tenor_years: int = 10,
    annual_rate: float = BANKS["BRI"],
) -> KPRSimulation:
    """
    Simulate a mortgage for one price / down payment / tenor / rate.

    Raises:
        ValueError: non-positive price or tenor, negative rate, or a down
            payment outside 10-50 %
    """
    if house_price <= 0:
        raise ValueError("house_price must be positive")
    if tenor_years <= 0:
        raise ValueError("tenor_years must be positive")
    if annual_rate < 0:
        raise ValueError("annual_rate must not be negative")
    if not MIN_DOWN_PAYMENT_PERCENT <= down_payment_percent <= MAX_DOWN_PAYMENT_PERCENT:
        raise ValueError(
            f"down_payment_percent must be between {MIN_DOWN_PAYMENT_PERCENT} "
            f"and {MAX_DOWN_PAYMENT_PERCENT}"
        )

    loan_amount = house_price * (1 - down_payment_percent / 100)
    payment = monthly_payment(loan_amount, annual_rate, tenor_years)
    total_interest = payment * tenor_years * 12 - loan_amount

    return KPRSimulation(
        house_price=house_price,
        down_payment_percent=down_payment_percent,
        down_payment_amount=math.floor(house_price * down_payment_percent / 100),
        loan_amount=loan_amount,
        annual_rate=annual_rate,
        tenor_years=tenor_years,
        monthly_payment=payment,
        total_interest=total_interest,
        min_salary=payment * SALARY_MULTIPLIER,
    )


def tenor_options(
    loan_amount: float,
    annual_rate: float,
    user_income: Optional[float] = None,
) -> List[TenorOption]:
    """Compare the standard tenors for one loan."""
    options = []
    for years in TENOR_OPTIONS:
        payment = monthly_payment(loan_amount, annual_rate, years)
        options.append(
            TenorOption(
                years=years,
                monthly_payment=payment,
                total_interest=payment * years * 12 - loan_amount,
                is_recommended=years in RECOMMENDED_TENORS,
                affordability_level=affordability(payment, user_income),
            )
        )
    return options


def resolve_bank(bank: str) -> Tuple[str, float]:
    """Canonical bank name and annual rate (case-insensitive lookup)."""
    for name, rate in BANKS.items():
        if name.lower() == bank.strip().lower():
            return name, rate
    raise ValueError(f"Unknown bank '{bank}'. Choose one of {sorted(BANKS)}")
