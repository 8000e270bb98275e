from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from finpilot.core.errors import InferenceError, ResponseFormatError
from finpilot.core.taxonomy import (
    OTHER,
    enforce_category,
    metadata_for,
    normalize_type,
    prompt_category_block,
)
from finpilot.models.extraction import QualityTier
from finpilot.models.transaction import (
    CategorySuggestion,
    ConfidenceTier,
    ParsedReceipt,
    ParsedTransaction,
    Provenance,
    ReceiptParseResult,
    TransactionCheck,
    normalize_payment_method,
    today_iso,
)
from finpilot.utils.json_tools import parse_with_recovery
from finpilot.utils.llm_client import InferenceClient

MIN_TEXT_CHARS = 5

SYSTEM_PROMPT = (
    "You are a financial transaction parser for an Indian personal-finance app. "
    "Return ONLY valid JSON, no markdown, no explanation."
)

# ── Field-name aliases the model might return ──────────
_RECEIPT_ALIASES: Dict[str, str] = {
    "merchantname": "merchant_name",
    "merchant": "merchant_name",
    "vendor": "merchant_name",
    "vendor_name": "merchant_name",
    "store": "merchant_name",
    "totalamount": "total_amount",
    "total": "total_amount",
    "grand_total": "total_amount",
    "paymentmethod": "payment_method",
    "items": "transactions",
    "line_items": "transactions",
    "lineitems": "transactions",
    "confidence": "confidence_tier",
}

_ITEM_ALIASES: Dict[str, str] = {
    "item": "name",
    "item_name": "name",
    "title": "name",
    "price": "amount",
    "total": "amount",
    "paymentmethod": "payment_method",
}

_CONFIDENCE_TIERS = ("high", "medium", "low")


def _normalize_keys(raw: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    """Map model-returned field names onto canonical snake_case names."""
    out: Dict[str, Any] = {}
    for key, val in raw.items():
        k = str(key).strip()
        canonical = aliases.get(k.lower(), aliases.get(k, k))
        # Don't overwrite a field that's already set with a canonical name
        if canonical not in out:
            out[canonical] = val
    return out


_CURRENCY_RE = re.compile(r"₹|\brs\.?|\binr\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"-?\d+(?:,\d+)*(?:\.\d+)?")


def to_decimal(value: Any) -> Decimal:
    """Absolute Decimal from model output; anything unparseable becomes 0."""
    if isinstance(value, str):
        # "Rs. 450", "INR 1,200.00", "450/-"
        match = _NUMBER_RE.search(_CURRENCY_RE.sub("", value))
        if match is None:
            return Decimal("0")
        value = match.group(0).replace(",", "")
    try:
        d = abs(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return d if d.is_finite() else Decimal("0")


def _confidence_tier(value: Any) -> ConfidenceTier:
    v = str(value or "").strip().lower()
    return v if v in _CONFIDENCE_TIERS else "medium"  # type: ignore[return-value]


def build_receipt_prompt(extracted_text: str) -> str:
    return f"""
Analyze the following receipt/bill text and extract transaction details.

RECEIPT TEXT:
{extracted_text}

INSTRUCTIONS:
1. Identify ALL individual items/transactions with their amounts
2. Extract merchant/vendor name if present
3. Detect transaction date and time if available
4. Categorize each transaction appropriately
5. Identify if this is a single transaction or multiple items
6. Extract payment method if mentioned
7. Calculate totals and subtotals

IMPORTANT RULES:
- Return ONLY valid JSON, no markdown or extra text
- Amounts should be positive numbers (type says expense or income)
- Use Indian Rupee (₹) amounts
- If date is not found, use null
- Split itemized bills into one transaction per line item; a bill without
  line items becomes one transaction for the total

{prompt_category_block()}

OUTPUT FORMAT (JSON):
{{
  "merchantName": "Vendor/Store Name",
  "totalAmount": 1000,
  "date": "2024-10-30",
  "time": "14:30",
  "paymentMethod": "cash/card/upi/bank_transfer/wallet/other",
  "transactions": [
    {{
      "name": "Item Description",
      "description": "Detailed description",
      "amount": 100,
      "type": "expense",
      "category": "Groceries",
      "paymentMethod": "card",
      "notes": "",
      "tags": []
    }}
  ],
  "confidence": "high/medium/low",
  "notes": "Additional context if needed"
}}

Now parse the receipt text above and return ONLY the JSON response:"""


def enrich_transaction(
    item: Dict[str, Any],
    *,
    receipt_date: str,
    receipt_payment: str,
    merchant_name: Optional[str],
    confidence_tier: ConfidenceTier,
) -> ParsedTransaction:
    item = _normalize_keys(item, _ITEM_ALIASES)
    txn_type = normalize_type(item.get("type"))
    category = enforce_category(item.get("category") or OTHER, txn_type)
    meta = metadata_for(category, txn_type)
    name = str(item.get("name") or "Unknown Item")
    tags = item.get("tags") if isinstance(item.get("tags"), list) else []

    return ParsedTransaction(
        name=name,
        description=str(item.get("description") or name),
        amount=to_decimal(item.get("amount")),
        type=txn_type,
        category=category,
        icon=meta["icon"],
        color=meta["color"],
        payment_method=normalize_payment_method(item.get("payment_method") or receipt_payment),
        date=receipt_date,
        merchant_name=merchant_name,
        tags=[str(t) for t in tags],
        notes=str(item.get("notes") or ""),
        provenance=Provenance(source="scanned", confidence_tier=confidence_tier),
    )


def build_receipt(payload: Any, raw_text: str, quality_tier: Optional[QualityTier] = None) -> ParsedReceipt:
    if not isinstance(payload, dict):
        raise ResponseFormatError("Inference response is not a JSON object")
    data = _normalize_keys(payload, _RECEIPT_ALIASES)

    items = data.get("transactions")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ResponseFormatError("'transactions' is not a list")

    merchant = str(data.get("merchant_name") or "Unknown Merchant")
    receipt_date = str(data.get("date") or today_iso())
    payment = normalize_payment_method(data.get("payment_method"))
    tier = _confidence_tier(data.get("confidence_tier"))

    transactions = [
        enrich_transaction(
            item,
            receipt_date=receipt_date,
            receipt_payment=payment,
            merchant_name=merchant,
            confidence_tier=tier,
        )
        for item in items
        if isinstance(item, dict)
    ]

    return ParsedReceipt(
        merchant_name=merchant,
        total_amount=to_decimal(data.get("total_amount") or 0),
        date=receipt_date,
        time=str(data.get("time") or ""),
        payment_method=payment,
        transactions=transactions,
        confidence_tier=tier,
        quality_tier=quality_tier,
        notes=str(data.get("notes") or ""),
        raw_text=raw_text,
    )


async def parse_receipt_text(
    extracted_text: str,
    client: InferenceClient,
    *,
    quality_tier: Optional[QualityTier] = None,
) -> ReceiptParseResult:
    """
    Extracted text -> one inference call -> validated ParsedReceipt.
    Failures come back as ``success=False`` with the original message; the
    caller decides whether to synthesize a fallback transaction.
    """
    text = (extracted_text or "").strip()
    if len(text) < MIN_TEXT_CHARS:
        return ReceiptParseResult(success=False, error="Insufficient text to parse")

    try:
        raw = await client.generate(build_receipt_prompt(text), system_prompt=SYSTEM_PROMPT)
        receipt = build_receipt(parse_with_recovery(raw), raw_text=text, quality_tier=quality_tier)
    except (InferenceError, ValidationError) as e:
        logger.warning("Receipt parsing failed: {}", e)
        return ReceiptParseResult(success=False, error=str(e))

    if not receipt.transactions:
        logger.warning("Receipt parsing returned no transactions")
        return ReceiptParseResult(success=False, error="No transactions extracted")

    logger.info("Parsed {} transactions from receipt ({})", len(receipt.transactions), receipt.merchant_name)
    return ReceiptParseResult(success=True, receipt=receipt)


def validate_transaction_data(receipt: ParsedReceipt) -> TransactionCheck:
    errors: List[str] = []
    warnings: List[str] = []

    if not receipt.transactions:
        errors.append("No transactions extracted")

    for idx, txn in enumerate(receipt.transactions, start=1):
        if txn.amount <= 0:
            warnings.append(f"Transaction {idx}: Amount is missing or invalid")
        if len(txn.name) < 2:
            warnings.append(f"Transaction {idx}: Description is too short")
        if not txn.category:
            warnings.append(f"Transaction {idx}: Category is missing")

    if errors:
        quality = "invalid"
    elif len(warnings) > 2:
        quality = "fair"
    else:
        quality = "good"
    return TransactionCheck(valid=not errors, errors=errors, warnings=warnings, quality=quality)


_INCOME_KEYWORDS = ("salary", "income", "received", "payment received", "freelance", "business", "investment")


async def suggest_category(description: str, amount: Any, client: InferenceClient) -> CategorySuggestion:
    """Pick one taxonomy category for a manually entered transaction."""
    txn_type = "income" if any(k in (description or "").lower() for k in _INCOME_KEYWORDS) else "expense"
    prompt = (
        f'Categorize this transaction:\nDescription: "{description}"\nAmount: ₹{amount}\n\n'
        'Choose EXACTLY ONE category. If it doesn\'t clearly fit, choose "Other".\n\n'
        f"{prompt_category_block()}\n\n"
        "Return ONLY the category name, nothing else."
    )
    try:
        raw = await client.generate(prompt)
    except InferenceError as e:
        logger.warning("Category suggestion failed: {}", e)
        meta = metadata_for(OTHER)
        return CategorySuggestion(category=OTHER, icon=meta["icon"], color=meta["color"], confidence="low", type="expense")

    category = enforce_category(raw.strip().strip('"').strip(), txn_type)
    meta = metadata_for(category, txn_type)
    return CategorySuggestion(category=category, icon=meta["icon"], color=meta["color"], confidence="high", type=txn_type)
