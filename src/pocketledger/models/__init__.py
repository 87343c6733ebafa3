"""Database models."""
from pocketledger.models.base import Base
from pocketledger.models.wallet import Wallet
from pocketledger.models.expense import Expense
from pocketledger.models.budget import FxRate, UserBudget, UserSettings

__all__ = ["Base", "Wallet", "Expense", "UserBudget", "FxRate", "UserSettings"]
