from functools import lru_cache

from fastapi import Header

from finpilot.agents.receipt_agent import ReceiptAgent
from finpilot.agents.voice_agent import VoiceAgent
from finpilot.core.action_catalogue import load_action_catalogue
from finpilot.services.action_dispatcher import ActionDispatcher
from finpilot.services.store_actions import register_store_actions
from finpilot.services.transaction_store import InMemoryTransactionStore
from finpilot.utils.llm_client import InferenceClient, build_inference_client


@lru_cache(maxsize=1)
def get_inference_client() -> InferenceClient:
    return build_inference_client()


@lru_cache(maxsize=1)
def get_transaction_store() -> InMemoryTransactionStore:
    return InMemoryTransactionStore()


@lru_cache(maxsize=1)
def get_action_dispatcher() -> ActionDispatcher:
    return register_store_actions(ActionDispatcher(), get_transaction_store())


def get_receipt_agent() -> ReceiptAgent:
    return ReceiptAgent(get_inference_client())


def get_voice_agent() -> VoiceAgent:
    return VoiceAgent(get_inference_client(), get_action_dispatcher(), load_action_catalogue())


def get_user_id(x_user_id: str = Header("anonymous")) -> str:
    # Auth is handled upstream; the gateway forwards the account id.
    return x_user_id.strip() or "anonymous"
