"""Expense model: the general expense ledger."""
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketledger.models.base import BaseModel

SOURCE_MANUAL = "manual"
SOURCE_WALLET = "wallet"


class Expense(BaseModel):
    """A committed expense.

    Amounts are stored in minor units (cents). ``provider_transaction_id`` is
    NULL for manually entered expenses; for imported ones it is the dedup
    key and unique per user.
    """

    __tablename__ = "expenses"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "provider_transaction_id", name="uq_expense_user_provider_txn"
        ),
        Index("ix_expenses_user_id_date", "user_id", "date"),
    )

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    wallet_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("wallets.id", ondelete="SET NULL"), nullable=True, index=True
    )
    provider_transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency_code: Mapped[str | None] = mapped_column(String(3), nullable=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    expense_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default=SOURCE_MANUAL)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    wallet: Mapped["Wallet"] = relationship("Wallet", back_populates="expenses")

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, description={self.description}, amount={self.amount})>"
