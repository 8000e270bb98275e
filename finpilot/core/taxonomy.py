"""
Closed category taxonomy shared by every ingestion component.

Any category attached to a transaction must be a member of the set matching
the transaction type. ``enforce_category`` is the one place that restores this
when model output drifts outside the lists.
"""
from __future__ import annotations

from typing import Dict, Literal, Tuple

from loguru import logger

TransactionType = Literal["income", "expense"]

OTHER = "Other"

EXPENSE_CATEGORIES: Tuple[str, ...] = (
    "Food",
    "Transport",
    "Shopping",
    "Entertainment",
    "Bills",
    "Health",
    "Education",
    "Travel",
    "Groceries",
    "Rent",
    OTHER,
)

INCOME_CATEGORIES: Tuple[str, ...] = (
    "Salary",
    "Business",
    "Investment",
    "Freelance",
    "Gift",
    OTHER,
)

CATEGORY_METADATA: Dict[str, Dict[str, str]] = {
    # expense
    "Food": {"icon": "fast-food-outline", "color": "#EF4444"},
    "Transport": {"icon": "car-outline", "color": "#F59E0B"},
    "Shopping": {"icon": "cart-outline", "color": "#8B5CF6"},
    "Entertainment": {"icon": "game-controller-outline", "color": "#EC4899"},
    "Bills": {"icon": "receipt-outline", "color": "#14B8A6"},
    "Health": {"icon": "medical-outline", "color": "#EF4444"},
    "Education": {"icon": "school-outline", "color": "#3B82F6"},
    "Travel": {"icon": "airplane-outline", "color": "#06B6D4"},
    "Groceries": {"icon": "basket-outline", "color": "#10B981"},
    "Rent": {"icon": "home-outline", "color": "#6366F1"},
    OTHER: {"icon": "ellipsis-horizontal-outline", "color": "#6B7280"},
    # income
    "Salary": {"icon": "cash-outline", "color": "#10B981"},
    "Business": {"icon": "briefcase-outline", "color": "#3B82F6"},
    "Investment": {"icon": "trending-up-outline", "color": "#8B5CF6"},
    "Freelance": {"icon": "laptop-outline", "color": "#06B6D4"},
    "Gift": {"icon": "gift-outline", "color": "#EC4899"},
}

# Synthesized transactions stand out from model-categorized "Other" entries.
FALLBACK_METADATA: Dict[str, str] = {"icon": "receipt-outline", "color": "#6B7280"}

# Guidance embedded in inference prompts.
CATEGORY_RULES: Dict[str, str] = {
    "Food": "Restaurants, cafes, snacks, dining out",
    "Groceries": "Supermarkets, vegetables, daily essentials",
    "Transport": "Uber, taxi, fuel, parking, metro",
    "Bills": "Electricity, water, phone, internet",
    "Shopping": "Clothing, electronics, general purchases",
    "Entertainment": "Movies, concerts, gaming, subscriptions",
    "Health": "Doctor, medicine, hospital, pharmacy",
    "Education": "Books, courses, tuition",
    "Travel": "Hotels, flights, vacation expenses",
    "Rent": "House rent, office rent",
    "Salary": "Monthly salary, wages",
    "Business": "Business income, sales",
    "Investment": "Stock gains, dividends",
    "Freelance": "Freelance work, gigs",
    "Gift": "Money gifts received",
    OTHER: "Anything that doesn't fit the categories above",
}


def normalize_type(value: object) -> TransactionType:
    return "income" if str(value or "").strip().lower() == "income" else "expense"


def categories_for(txn_type: str) -> Tuple[str, ...]:
    return INCOME_CATEGORIES if txn_type == "income" else EXPENSE_CATEGORIES


def is_valid_category(category: str, txn_type: str) -> bool:
    return category in categories_for(txn_type)


def enforce_category(category: object, txn_type: str) -> str:
    """Return *category* if it belongs to ``taxonomy[txn_type]``, else ``Other``."""
    value = category if isinstance(category, str) else ""
    if is_valid_category(value, txn_type):
        return value
    logger.warning("Invalid category {!r} for {}; setting to {!r}", category, txn_type, OTHER)
    return OTHER


def metadata_for(category: str, txn_type: str = "expense") -> Dict[str, str]:
    if not is_valid_category(category, txn_type):
        return dict(CATEGORY_METADATA[OTHER])
    return dict(CATEGORY_METADATA.get(category, CATEGORY_METADATA[OTHER]))


def prompt_category_block() -> str:
    """Category section shared by the receipt and voice prompts."""
    rules = "\n".join(f"- {name}: {desc}" for name, desc in CATEGORY_RULES.items())
    return (
        'STRICT CATEGORIES - USE ONLY THESE (if category doesn\'t fit, use "Other"):\n'
        f"Expense ONLY: {', '.join(EXPENSE_CATEGORIES)}\n"
        f"Income ONLY: {', '.join(INCOME_CATEGORIES)}\n\n"
        f"CATEGORY RULES:\n{rules}"
    )
