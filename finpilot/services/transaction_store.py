from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Protocol

from finpilot.models.transaction import ParsedTransaction


@dataclass(frozen=True)
class StoredTransaction:
    id: str
    user_id: str
    created_at: str
    transaction: ParsedTransaction

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "createdAt": self.created_at,
            **self.transaction.model_dump(mode="json"),
        }


class TransactionStore(Protocol):
    def add(self, user_id: str, txn: ParsedTransaction) -> StoredTransaction: ...

    def list_for_user(self, user_id: str, category: Optional[str] = None, txn_type: Optional[str] = None) -> List[StoredTransaction]: ...

    def balance(self, user_id: str) -> Dict[str, Decimal]: ...


@dataclass
class InMemoryTransactionStore:
    """Process-local store for demos and tests; real persistence lives elsewhere."""

    items: List[StoredTransaction] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, user_id: str, txn: ParsedTransaction) -> StoredTransaction:
        stored = StoredTransaction(
            id=uuid.uuid4().hex,
            user_id=user_id,
            created_at=datetime.now(timezone.utc).isoformat(),
            transaction=txn,
        )
        with self._lock:
            self.items.append(stored)
        return stored

    def list_for_user(self, user_id: str, category: Optional[str] = None, txn_type: Optional[str] = None) -> List[StoredTransaction]:
        with self._lock:
            out = [s for s in self.items if s.user_id == user_id]
        if category:
            out = [s for s in out if s.transaction.category.lower() == category.lower()]
        if txn_type:
            out = [s for s in out if s.transaction.type == txn_type]
        return sorted(out, key=lambda s: s.created_at, reverse=True)

    def balance(self, user_id: str) -> Dict[str, Decimal]:
        income = Decimal("0")
        expense = Decimal("0")
        for s in self.list_for_user(user_id):
            if s.transaction.type == "income":
                income += s.transaction.amount
            else:
                expense += s.transaction.amount
        return {"income": income, "expense": expense, "balance": income - expense}
