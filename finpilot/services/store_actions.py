"""Voice-action handlers backed by the transaction store."""
from __future__ import annotations

from typing import Any, Dict

from finpilot.core.taxonomy import enforce_category, metadata_for, normalize_type
from finpilot.models.transaction import ParsedTransaction, Provenance, normalize_payment_method
from finpilot.pipelines.receipt_parser import to_decimal
from finpilot.services.action_dispatcher import ActionDispatcher
from finpilot.services.transaction_store import TransactionStore


def register_store_actions(dispatcher: ActionDispatcher, store: TransactionStore) -> ActionDispatcher:
    def list_transactions(user_id: str, params: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
        limit = int(params.get("limit") or 10)
        txn_type = params.get("type") if params.get("type") in ("income", "expense") else None
        items = store.list_for_user(user_id, category=params.get("category"), txn_type=txn_type)
        return {"count": len(items), "transactions": [s.to_dict() for s in items[:limit]]}

    def add_transaction(user_id: str, params: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
        txn_type = normalize_type(params.get("type"))
        category = enforce_category(params.get("category") or "Other", txn_type)
        meta = metadata_for(category, txn_type)
        name = str(params.get("name") or params.get("description") or "Voice entry")
        txn = ParsedTransaction(
            name=name,
            description=str(params.get("description") or name),
            amount=to_decimal(params.get("amount")),
            type=txn_type,
            category=category,
            icon=meta["icon"],
            color=meta["color"],
            payment_method=normalize_payment_method(params.get("paymentMethod") or params.get("payment_method")),
            provenance=Provenance(source="inferred", confidence_tier="medium"),
        )
        return store.add(user_id, txn).to_dict()

    def balance(user_id: str, params: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
        return {k: str(v) for k, v in store.balance(user_id).items()}

    dispatcher.register("/transactions", list_transactions, method="GET")
    dispatcher.register("/transactions", add_transaction, method="POST")
    dispatcher.register("/users/balance", balance)
    return dispatcher
