"""Deterministic transaction categorization.

Imported bank transactions carry a merchant string and, when the card
network supplies one, a merchant category code (MCC). We infer one of the
expense categories shown in the app from those two fields.

Rule evaluation order is fixed:
1. exact MCC rules
2. MCC range rules
3. substring rules over the normalized merchant text
4. the provider's own category hint, if any

The first match wins. Nothing here performs I/O, so ``classify`` is safe to
call repeatedly and concurrently.
"""

from __future__ import annotations

import re

UNCATEGORIZED = "Uncategorized"

# Categories offered in the expense forms.
CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transport",
    "Shopping",
    "Entertainment",
    "Bills",
    "Health",
    "Travel",
    "Education",
    "Miscellaneous",
)


def _norm(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().upper())


def normalize_merchant(description: str | None) -> str:
    """Normalize a merchant/description string into a stable key.

    Trim, collapse whitespace, uppercase. Exact-match key, not fuzzy.
    """
    return _norm(description or "")


# Ordering matters: earlier matches win.
_MCC_EXACT: list[tuple[str, frozenset[int]]] = [
    ("Food", frozenset({5411, 5422, 5441, 5451, 5462, 5499, 5811, 5812, 5813, 5814})),
    ("Transport", frozenset({4111, 4112, 4121, 4131, 4784, 5541, 5542, 7523})),
    ("Entertainment", frozenset({4899, 5815, 5816, 5817, 5818, 7832, 7841, 7922, 7991, 7996})),
    ("Bills", frozenset({4812, 4814, 4816, 4900})),
    ("Health", frozenset({5912, 5975, 5976, 8011, 8021, 8042, 8043, 8062, 8071, 8099})),
    ("Education", frozenset({8211, 8220, 8241, 8244, 8249, 8299})),
    ("Travel", frozenset({4411, 4511, 4722, 7011, 7512})),
]

# Code ranges, consulted only when no exact code matched.
_MCC_RANGES: list[tuple[str, range]] = [
    ("Travel", range(3000, 3300)),  # airlines
    ("Travel", range(3351, 3442)),  # car rental
    ("Travel", range(3501, 4000)),  # lodging
    ("Shopping", range(5300, 5400)),  # general merchandise
    ("Shopping", range(5600, 5700)),  # apparel
    ("Shopping", range(5940, 5971)),  # hobby, gift, mail order
]

_TEXT_RULES: list[tuple[str, re.Pattern[str]]] = [
    # Food delivery before ride hailing: "UBER EATS" is food, "UBER" is transport.
    ("Food", re.compile(r"UBER\s*EATS|DOORDASH|GRUBHUB|DELIVEROO|TALABAT|ELMENUS|SWIGGY|ZOMATO")),
    ("Entertainment", re.compile(r"SPOTIFY|NETFLIX|HULU|DISNEY|YOUTUBE|STEAM|PLAYSTATION|XBOX|CINEMA|THEATRE|THEATER")),
    ("Transport", re.compile(r"\bUBER\b|\bLYFT\b|\bCAREEM\b|\bTAXI\b|\bMETRO\b|\bPARKING\b|\bFUEL\b|\bPETROL\b|\bSHELL\b|\bCHEVRON\b")),
    ("Travel", re.compile(r"AIRLINE|AIRWAYS|\bHOTEL\b|AIRBNB|BOOKING\.COM|EXPEDIA")),
    ("Health", re.compile(r"PHARMACY|PHARM\b|\bCLINIC\b|HOSPITAL|\bDENTAL\b|\bCVS\b|WALGREENS")),
    ("Bills", re.compile(r"\bELECTRIC|\bWATER\b|\bGAS BILL\b|INTERNET|BROADBAND|VODAFONE|VERIZON|AT&T|COMCAST|\bRENT\b|INSURANCE")),
    ("Education", re.compile(r"UDEMY|COURSERA|TUITION|SCHOOL|UNIVERSITY|\bBOOKSTORE\b")),
    ("Food", re.compile(r"COFFEE|CAFE|STARBUCKS|RESTAURANT|BAKERY|GROCERY|SUPERMARKET|MCDONALD|\bKFC\b|PIZZA|BURGER|\bFOODS?\b")),
    ("Shopping", re.compile(r"AMAZON|\bSHOP|\bSTORE\b|\bMART\b|WALMART|TARGET|IKEA|\bMALL\b|\bNOON\b")),
]

# Plaid personal_finance_category.primary values.
_PROVIDER_CATEGORY_MAP: dict[str, str] = {
    "FOOD_AND_DRINK": "Food",
    "TRANSPORTATION": "Transport",
    "TRAVEL": "Travel",
    "ENTERTAINMENT": "Entertainment",
    "GENERAL_MERCHANDISE": "Shopping",
    "HOME_IMPROVEMENT": "Shopping",
    "RENT_AND_UTILITIES": "Bills",
    "LOAN_PAYMENTS": "Bills",
    "MEDICAL": "Health",
    "PERSONAL_CARE": "Health",
    "GENERAL_SERVICES": "Miscellaneous",
    "BANK_FEES": "Miscellaneous",
    "GOVERNMENT_AND_NON_PROFIT": "Miscellaneous",
}


def _classify_mcc(mcc: int) -> str | None:
    for category, codes in _MCC_EXACT:
        if mcc in codes:
            return category
    for category, codes in _MCC_RANGES:
        if mcc in codes:
            return category
    return None


def classify(
    merchant_text: str | None,
    mcc: int | None = None,
    provider_category: str | None = None,
) -> str:
    """Infer an expense category for an imported transaction.

    Args:
        merchant_text: Merchant name or free-text description.
        mcc: Merchant category code, when the provider supplies one.
        provider_category: Provider's own primary category, used only when
            none of our rules match.

    Returns:
        A label from CATEGORIES, or UNCATEGORIZED. Never raises.
    """
    if mcc is not None:
        category = _classify_mcc(mcc)
        if category:
            return category

    text = _norm(merchant_text or "")
    if text:
        for category, pattern in _TEXT_RULES:
            if pattern.search(text):
                return category

    if provider_category:
        mapped = _PROVIDER_CATEGORY_MAP.get(provider_category.strip().upper())
        if mapped:
            return mapped

    return UNCATEGORIZED
