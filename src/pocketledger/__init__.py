"""Pocket Ledger: wallet transaction import and monthly budgets."""

__version__ = "0.1.0"
