"""Schemas for staged transactions, sync results and the commit step.

A staged transaction is a provider transaction that has been fetched and
classified but not yet saved as an expense. The user may edit its
description, amount and category before committing; the provider
transaction id is the dedup key and travels through unchanged.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class StagedTransaction(BaseModel):
    """A fetched transaction awaiting review."""

    provider_transaction_id: str = Field(
        ..., min_length=1, max_length=255, description="Provider's transaction id (dedup key)"
    )
    description: str = Field(..., max_length=500, description="Merchant or free-text description")
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount spent")
    category: str = Field(..., description="Expense category")
    transaction_date: date = Field(..., description="Date the transaction posted")
    currency_code: str | None = Field(
        None, min_length=3, max_length=3, description="ISO currency code, if reported"
    )

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        """Ensure description is not blank."""
        if not v or not v.strip():
            raise ValueError("Description cannot be empty")
        return v.strip()

    @field_validator("currency_code")
    @classmethod
    def currency_upper(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class SyncResponse(BaseModel):
    """Result of pulling new transactions for a wallet."""

    wallet_id: UUID = Field(description="Wallet that was synced")
    added: list[StagedTransaction] = Field(description="Staged outflows, classified")
    removed: list[str] = Field(description="Provider ids of transactions the provider removed")


class ReviewResponse(BaseModel):
    """Staged transactions for the review screen."""

    transactions: list[StagedTransaction]


class CommitRequest(BaseModel):
    """Reviewed transactions to save as expenses."""

    expenses: list[StagedTransaction] = Field(
        ..., description="Reviewed transactions; must not be empty"
    )


class CommitResponse(BaseModel):
    """Outcome of a commit."""

    inserted: int = Field(description="Number of new expenses written")
    skipped: int = Field(description="Number of transactions that were already imported")
