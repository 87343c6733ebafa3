"""Wallet model representing one linked external account."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, String, Text, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketledger.models.base import BaseModel


class Wallet(BaseModel):
    """A user's linked aggregation-provider item.

    The sync cursor is only written by the sync engine, after a successful
    provider call. The access credential is stored encrypted.
    """

    __tablename__ = "wallets"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "provider", "provider_item_id", name="uq_wallet_user_provider_item"
        ),
    )

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    wallet_name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_item_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    access_credential: Mapped[str] = mapped_column(Text, nullable=False)
    last_sync_cursor: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    needs_reconnect: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )

    # Expenses keep their rows (wallet_id set to NULL by the FK) on disconnect.
    expenses: Mapped[list["Expense"]] = relationship(
        "Expense", back_populates="wallet", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<Wallet(id={self.id}, provider={self.provider}, name={self.wallet_name})>"
