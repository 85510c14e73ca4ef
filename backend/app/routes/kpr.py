"""
KPR (mortgage) simulator endpoints.

POST /api/kpr/simulate
GET  /api/kpr/banks
"""
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from app.core.logging import get_logger
from app.core.metrics import record_kpr_simulation
from app.services.kpr.calculator import (
    BANKS,
    MAX_DOWN_PAYMENT_PERCENT,
    MIN_DOWN_PAYMENT_PERCENT,
    TENOR_OPTIONS,
    resolve_bank,
    simulate,
    tenor_options,
)

logger = get_logger(__name__)

router = APIRouter()


class KPRRequest(BaseModel):
    """Mortgage simulation request model."""

    model_config = ConfigDict(populate_by_name=True)

    house_price: float = Field(..., alias="housePrice", description="House price in rupiah")
    down_payment_percent: float = Field(20, alias="downPaymentPercent")
    tenor_years: int = Field(10, alias="tenorYears")
    bank: str = Field("BRI", description="BRI, BCA or Mandiri")
    user_income: Optional[float] = Field(
        None, alias="userIncome", description="Monthly income, enables affordability levels"
    )


@router.post("/simulate")
async def simulate_kpr(request: KPRRequest):
    """
    Simulate a mortgage and compare the standard tenors.

    Returns the simulation for the requested tenor plus monthly payment,
    total interest and affordability for 5 to 30 years.
    """
    try:
        bank, annual_rate = resolve_bank(request.bank)
        simulation = simulate(
            house_price=request.house_price,
            down_payment_percent=request.down_payment_percent,
            tenor_years=request.tenor_years,
            annual_rate=annual_rate,
        )
    except ValueError as e:
        logger.warning("kpr_invalid_request", error=str(e), bank=request.bank)
        raise HTTPException(status_code=400, detail=str(e))

    options = tenor_options(simulation.loan_amount, annual_rate, request.user_income)
    record_kpr_simulation(bank)

    logger.info(
        "kpr_simulated",
        bank=bank,
        tenor_years=simulation.tenor_years,
        monthly_payment=round(simulation.monthly_payment),
    )
    return {
        "simulation": simulation.model_dump(),
        "tenor_options": [option.model_dump() for option in options],
    }


@router.get("/banks")
async def list_banks():
    return {
        "banks": [{"name": name, "annual_rate": rate} for name, rate in BANKS.items()],
        "tenor_options": TENOR_OPTIONS,
        "down_payment_percent": {
            "min": MIN_DOWN_PAYMENT_PERCENT,
            "max": MAX_DOWN_PAYMENT_PERCENT,
        },
    }
