from __future__ import annotations

from datetime import date as _date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from finpilot.core.taxonomy import TransactionType, is_valid_category
from finpilot.models.extraction import QualityTier

ConfidenceTier = Literal["high", "medium", "low"]
PaymentMethod = Literal["cash", "card", "upi", "bank_transfer", "wallet", "other"]

PAYMENT_METHODS = ("cash", "card", "upi", "bank_transfer", "wallet", "other")


def normalize_payment_method(value: object) -> PaymentMethod:
    v = str(value or "").strip().lower().replace(" ", "_")
    return v if v in PAYMENT_METHODS else "other"  # type: ignore[return-value]


def today_iso() -> str:
    return _date.today().isoformat()


class Provenance(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Literal["scanned", "manual", "inferred"] = "scanned"
    confidence_tier: ConfidenceTier = "medium"


class ParsedTransaction(BaseModel):
    """A transaction candidate; identity and owner are assigned on persistence."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    amount: Decimal = Field(ge=0)
    type: TransactionType = "expense"
    category: str = "Other"
    icon: str
    color: str
    payment_method: PaymentMethod = "other"
    date: str = Field(default_factory=today_iso)  # YYYY-MM-DD
    merchant_name: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: str = ""
    provenance: Provenance = Field(default_factory=Provenance)

    @model_validator(mode="after")
    def _category_in_taxonomy(self) -> "ParsedTransaction":
        if not is_valid_category(self.category, self.type):
            raise ValueError(f"category {self.category!r} is not a valid {self.type} category")
        return self


class ParsedReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant_name: str = "Unknown Merchant"
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    date: str = Field(default_factory=today_iso)
    time: str = ""
    payment_method: PaymentMethod = "other"
    transactions: List[ParsedTransaction] = Field(default_factory=list)
    confidence_tier: ConfidenceTier = "medium"
    quality_tier: Optional[QualityTier] = None
    notes: str = ""
    raw_text: str = ""


class ReceiptParseResult(BaseModel):
    success: bool
    receipt: Optional[ParsedReceipt] = None
    error: Optional[str] = None
    fallback: Optional[ParsedTransaction] = None


class TransactionCheck(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    quality: Literal["good", "fair", "invalid"] = "good"


class CategorySuggestion(BaseModel):
    category: str
    icon: str
    color: str
    confidence: ConfidenceTier
    type: TransactionType
