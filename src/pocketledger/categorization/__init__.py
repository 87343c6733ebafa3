"""Transaction categorization utilities.

Deterministic, local categorization of imported transactions from merchant
text and merchant category codes. Rule-based (no network calls) so imports
stay fast and explainable.
"""

from .rules import CATEGORIES, UNCATEGORIZED, classify, normalize_merchant

__all__ = ["CATEGORIES", "UNCATEGORIZED", "classify", "normalize_merchant"]
