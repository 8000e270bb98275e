from __future__ import annotations

import json
from typing import Any

from loguru import logger

from finpilot.core.errors import InferenceError
from finpilot.models.voice import NarratedResponse

FALLBACK_RESPONSE = "I found the information you requested. Please check your screen for details."
FALLBACK_ERROR_RESPONSE = "I'm sorry, I couldn't process your request. Please try again or rephrase your question."

_EXAMPLES = """Query: "What is my food budget?"
Response: "Your food budget is set at ₹5,000 for this month. You've spent ₹3,200 so far, which is 64% of your budget. You have ₹1,800 remaining."

Query: "What's my balance?"
Response: "Your current balance is ₹45,320. Your monthly income is ₹75,000 and you've spent ₹29,680 this month.\""""


def build_narration_prompt(api_data: Any, intent: str, query: str) -> str:
    return f"""
You are a friendly financial voice assistant. The user asked: "{query}"

Their intent was: {intent}

Here is the data retrieved from the backend:
{json.dumps(api_data, indent=2, default=str, ensure_ascii=False)}

TASK: Convert this data into a natural, conversational response that:
1. Directly answers the user's question
2. Highlights key numbers and insights
3. Is concise but informative (2-4 sentences)
4. Uses a friendly, helpful tone
5. Mentions currency as "rupees" or uses the ₹ symbol

EXAMPLES:

{_EXAMPLES}

Return ONLY the response text, no JSON, no markdown:"""


async def narrate_response(api_data: Any, intent: str, query: str, client) -> NarratedResponse:
    """Structured API result -> short spoken answer. Never raises."""
    try:
        text = (await client.generate(build_narration_prompt(api_data, intent, query))).strip()
    except InferenceError as e:
        logger.warning("Narration failed: {}", e)
        return NarratedResponse(success=False, response=FALLBACK_RESPONSE, intent=intent, original_query=query, error=str(e))
    except Exception as e:
        # Spoken output must never surface as a request failure.
        logger.exception("Narration failed unexpectedly")
        return NarratedResponse(success=False, response=FALLBACK_RESPONSE, intent=intent, original_query=query, error=str(e))

    if not text:
        return NarratedResponse(
            success=False,
            response=FALLBACK_RESPONSE,
            intent=intent,
            original_query=query,
            error="Empty response from inference service",
        )
    return NarratedResponse(success=True, response=text, intent=intent, original_query=query)


async def format_error_response(query: str, error_message: str, client) -> str:
    prompt = (
        f'The user asked: "{query}"\n\n'
        f"But we encountered an error: {error_message}\n\n"
        "Generate a friendly, helpful error message that apologizes, suggests what might be wrong "
        "and tells them what to do next. Keep it to 1-2 sentences.\n\n"
        "Return ONLY the message text:"
    )
    try:
        text = (await client.generate(prompt)).strip()
    except InferenceError as e:
        logger.warning("Error narration failed: {}", e)
        return FALLBACK_ERROR_RESPONSE
    except Exception:
        logger.exception("Error narration failed unexpectedly")
        return FALLBACK_ERROR_RESPONSE
    return text or FALLBACK_ERROR_RESPONSE
