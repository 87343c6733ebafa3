"""Monthly budget, exchange rate and user preference models."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, DateTime, Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pocketledger.models.base import BaseModel, utcnow


class UserBudget(BaseModel):
    """Budget for one user and one calendar month (``YYYY-MM``), in minor units."""

    __tablename__ = "user_budgets"
    __table_args__ = (UniqueConstraint("user_id", "month", name="uq_budget_user_month"),)

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    budget_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    budget_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    def __repr__(self) -> str:
        return f"<UserBudget(user_id={self.user_id}, month={self.month}, amount={self.budget_amount})>"


class FxRate(BaseModel):
    """Exchange rate: 1 unit of ``base_code`` buys ``rate`` units of ``quote_code``."""

    __tablename__ = "fx_rates"
    __table_args__ = (UniqueConstraint("base_code", "quote_code", name="uq_fx_base_quote"),)

    base_code: Mapped[str] = mapped_column(String(3), nullable=False)
    quote_code: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[float] = mapped_column(Float, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class UserSettings(BaseModel):
    """Per-user preferences."""

    __tablename__ = "user_settings"

    user_id: Mapped[UUID] = mapped_column(nullable=False, unique=True, index=True)
    active_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
