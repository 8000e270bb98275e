from __future__ import annotations

from datetime import datetime

from finpilot.pipelines.fallback import create_fallback_transaction
from finpilot.services.transaction_store import InMemoryTransactionStore


def test_created_at_is_timezone_aware_utc() -> None:
    stored = InMemoryTransactionStore().add("u1", create_fallback_transaction("Rs. 120"))
    created = datetime.fromisoformat(stored.created_at)
    assert created.tzinfo is not None
    assert created.utcoffset().total_seconds() == 0


def test_list_is_scoped_to_user() -> None:
    store = InMemoryTransactionStore()
    first = store.add("u1", create_fallback_transaction("Rs. 10"))
    second = store.add("u1", create_fallback_transaction("Rs. 20"))
    store.add("u2", create_fallback_transaction("Rs. 30"))

    assert {s.id for s in store.list_for_user("u1")} == {first.id, second.id}
    assert len(store.list_for_user("u2")) == 1
