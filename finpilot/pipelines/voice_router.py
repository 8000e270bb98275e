from __future__ import annotations

import os
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from finpilot.core.action_catalogue import ActionCatalogue
from finpilot.core.errors import InferenceError, ResponseFormatError
from finpilot.core.taxonomy import prompt_category_block
from finpilot.models.voice import VoiceIntentResult
from finpilot.pipelines.upload_validator import audio_mime_type
from finpilot.utils.json_tools import parse_with_recovery
from finpilot.utils.llm_client import InferenceClient

_METHODS = ("GET", "POST", "PUT", "DELETE")

_RESPONSE_SHAPE = """{
  "transcription": "exact words the user spoke",
  "confidence": 0.95,
  "intent": "descriptive intent like 'view_food_budget' or 'get_spending_report'",
  "endpoint": "/budgets or /transactions or /insights/spending etc",
  "method": "GET or POST or PUT or DELETE",
  "parameters": {"category": "Food", "period": "month"},
  "naturalQuery": "user-friendly version of the query",
  "requiresAuth": true
}"""

_RULES = """RULES:
- Be precise with endpoint selection; use only endpoints listed above
- Extract all relevant parameters (category, dates, amounts, etc.)
- If the query is ambiguous, choose the most likely intent
- For budget queries, extract the category name
- For transaction queries, identify if they want to view, create, or analyze
- For time-based queries, determine the period (month, week, year)
- If a category is mentioned, match it to the closest valid category
- Return ONLY valid JSON, no markdown formatting"""


def build_voice_prompt(catalogue: ActionCatalogue, query_text: Optional[str] = None) -> str:
    if query_text is None:
        task = (
            "Listen to this audio recording and:\n"
            "1. TRANSCRIBE the audio accurately\n"
            "2. UNDERSTAND the user's intent\n"
            "3. IDENTIFY the appropriate API endpoint to call\n"
            "4. EXTRACT any parameters from the query"
        )
    else:
        task = f'Analyze this typed query and determine the API endpoint to call.\n\nUSER QUERY: "{query_text}"'

    return f"""
You are a financial voice assistant. {task}

AVAILABLE API ENDPOINTS:
{catalogue.routes_json()}

COMMON CATEGORIES:
{', '.join(catalogue.common_categories)}

{prompt_category_block()}

EXAMPLE QUERIES AND RESPONSES:
{catalogue.examples_json()}

{_RULES}

RESPOND IN THIS EXACT JSON FORMAT:
{_RESPONSE_SHAPE}

Return the JSON response now:"""


def _confidence(value: Any, default: float) -> float:
    try:
        c = float(value)
    except (TypeError, ValueError):
        return default
    if c > 1:
        c = c / 100.0
    return max(0.0, min(1.0, c))


def build_intent(payload: Any, *, transcription: Optional[str] = None, default_confidence: float = 0.9) -> VoiceIntentResult:
    """Validate a routed-action payload. Requires a transcription and a target endpoint."""
    if not isinstance(payload, dict):
        raise ResponseFormatError("Inference response is not a JSON object")

    text = transcription if transcription is not None else payload.get("transcription")
    endpoint = payload.get("endpoint")
    if not text or not endpoint or not isinstance(endpoint, str):
        raise ResponseFormatError("Invalid response structure: transcription and endpoint are required")

    method = str(payload.get("method") or "GET").strip().upper()
    params = payload.get("parameters")

    return VoiceIntentResult(
        success=True,
        transcription=str(text),
        confidence=_confidence(payload.get("confidence"), default_confidence),
        intent=str(payload.get("intent") or "unknown"),
        endpoint=endpoint,
        method=method if method in _METHODS else "GET",
        parameters=params if isinstance(params, dict) else {},
        natural_query=str(payload.get("naturalQuery") or payload.get("natural_query") or text),
        requires_auth=payload.get("requiresAuth", payload.get("requires_auth")) is not False,
    )


async def route_voice_query(audio_path: str, client: InferenceClient, catalogue: ActionCatalogue) -> VoiceIntentResult:
    """
    Recording -> transcription + routed action.

    The audio is uploaded as a remote file that is released exactly once,
    whichever way this returns. Failures yield ``VoiceIntentResult.unknown``.
    """
    mime_type = audio_mime_type(audio_path)
    audio_meta: Dict[str, Any] = {"audio_file": os.path.basename(audio_path), "mime_type": mime_type}

    if not os.path.exists(audio_path):
        return VoiceIntentResult.unknown("Audio file not found", **audio_meta)

    try:
        async with client.remote_file(audio_path, mime_type) as remote:
            raw = await client.generate(build_voice_prompt(catalogue), file=remote)
        result = build_intent(parse_with_recovery(raw))
    except (InferenceError, ValidationError) as e:
        logger.warning("Voice routing failed: {}", e)
        return VoiceIntentResult.unknown(str(e), **audio_meta)

    logger.info(
        "Voice routed transcription={!r} intent={} -> {} {}",
        result.transcription,
        result.intent,
        result.method,
        result.endpoint,
    )
    return result.model_copy(update=audio_meta)


async def understand_text_query(query_text: str, client: InferenceClient, catalogue: ActionCatalogue) -> VoiceIntentResult:
    """Typed quick-question path: same routing, no audio upload."""
    if not (query_text or "").strip():
        return VoiceIntentResult.unknown("Question is required")
    try:
        raw = await client.generate(build_voice_prompt(catalogue, query_text=query_text))
        return build_intent(parse_with_recovery(raw), transcription=query_text, default_confidence=0.95)
    except (InferenceError, ValidationError) as e:
        logger.warning("Text query routing failed: {}", e)
        return VoiceIntentResult.unknown(str(e), transcription=query_text)


_INTENT_TYPES = {
    "add_transaction": "add_transaction",
    "view_transactions": "view_transactions",
    "recent_transactions": "view_transactions",
    "view_balance": "view_balance",
    "get_balance": "view_balance",
    "set_budget": "set_budget",
    "view_budget": "set_budget",
    "get_budget": "set_budget",
    "view_goals": "view_goals",
    "get_goals": "view_goals",
    "add_goal": "add_goal",
    "view_subscriptions": "view_subscriptions",
    "get_subscriptions": "view_subscriptions",
    "upcoming_bills": "view_subscriptions",
    "view_insights": "view_insights",
    "spending_report": "view_insights",
    "get_advice": "get_advice",
}


def map_intent_to_type(intent: Optional[str]) -> str:
    """Collapse a free-form intent string onto the interaction type enum."""
    lowered = (intent or "").lower()
    for key, value in _INTENT_TYPES.items():
        if key in lowered:
            return value
    return "other"
