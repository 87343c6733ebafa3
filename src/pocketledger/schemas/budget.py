"""Budget status and update schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class BudgetStatus(BaseModel):
    """Spend against the budget for one month.

    All amounts are in ``currency``.
    """

    month: str = Field(description="Month in YYYY-MM format")
    budget: Decimal = Field(description="Budgeted amount")
    spent: Decimal = Field(description="Sum of the month's expenses")
    remaining: Decimal = Field(description="Budget left, never negative")
    percent: int = Field(description="Spent as a rounded percentage of the budget")
    currency: str = Field(description="ISO currency code")


class BudgetUpdateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Budget for the month")
    currency: str | None = Field(
        None, min_length=3, max_length=3, description="Budget currency; active currency when omitted"
    )
