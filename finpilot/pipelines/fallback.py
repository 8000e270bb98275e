from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Pattern, Tuple

from loguru import logger

from finpilot.core.taxonomy import FALLBACK_METADATA, OTHER
from finpilot.models.transaction import ParsedTransaction, Provenance

_NUM = r"(\d+(?:,\d+)*(?:\.\d{2})?)"

# Tried in order; the first match wins.
AMOUNT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"₹\s*" + _NUM),
    re.compile(r"Rs\.?\s*" + _NUM),
    re.compile(r"INR\s*" + _NUM),
    re.compile(_NUM),
)

FALLBACK_NAME = "Transaction from Receipt"


def extract_amount(text: str) -> Decimal:
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text or "")
        if not match:
            continue
        try:
            return Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            return Decimal("0")
    return Decimal("0")


def create_fallback_transaction(text: str) -> ParsedTransaction:
    """Deterministic single-transaction guess from raw text; never fails."""
    amount = extract_amount(text)
    logger.info("Fallback transaction synthesized amount={}", amount)
    return ParsedTransaction(
        name=FALLBACK_NAME,
        description=(text or "")[:100],
        amount=amount,
        type="expense",
        category=OTHER,
        icon=FALLBACK_METADATA["icon"],
        color=FALLBACK_METADATA["color"],
        payment_method="other",
        provenance=Provenance(source="scanned", confidence_tier="low"),
    )
