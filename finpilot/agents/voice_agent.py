from __future__ import annotations

import time
from typing import Optional

from loguru import logger

from finpilot.core.action_catalogue import ActionCatalogue
from finpilot.core.errors import InputRejectedError
from finpilot.models.voice import VoiceIntentResult, VoiceReply
from finpilot.pipelines.narrator import format_error_response, narrate_response
from finpilot.pipelines.upload_validator import validate_file
from finpilot.pipelines.voice_router import map_intent_to_type, route_voice_query, understand_text_query
from finpilot.services.action_dispatcher import ActionDispatcher
from finpilot.utils.llm_client import InferenceClient


class VoiceAgent:
    def __init__(self, client: InferenceClient, dispatcher: ActionDispatcher, catalogue: ActionCatalogue) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.catalogue = catalogue

    async def handle_audio(self, audio_path: str, user_id: str, mime_type: Optional[str] = None) -> VoiceReply:
        check = validate_file(audio_path, "audio", mime_type)
        if not check.valid:
            raise InputRejectedError(check.error or "Invalid audio file")

        t0 = time.time()
        intent = await route_voice_query(audio_path, self.client, self.catalogue)
        return await self._answer(intent, user_id, t0)

    async def handle_question(self, question: str, user_id: str) -> VoiceReply:
        if not (question or "").strip():
            raise InputRejectedError("Question is required")

        t0 = time.time()
        intent = await understand_text_query(question, self.client, self.catalogue)
        return await self._answer(intent, user_id, t0, query=question)

    async def _answer(self, intent: VoiceIntentResult, user_id: str, t0: float, query: str = "") -> VoiceReply:
        asked = intent.transcription or query or "your request"

        if not intent.success:
            return await self._apologize(intent, asked, intent.error or "Could not understand the request", t0)

        result = await self.dispatcher.dispatch(intent, user_id)
        if not result.success:
            return await self._apologize(intent, asked, result.error or "API execution failed", t0)

        narrated = await narrate_response(result.data, intent.intent, asked, self.client)
        elapsed = int((time.time() - t0) * 1000)
        logger.info("Voice query answered intent={} in {}ms", intent.intent, elapsed)
        return VoiceReply(
            success=True,
            transcription=intent.transcription,
            intent=intent.intent,
            intent_type=map_intent_to_type(intent.intent),
            response=narrated.response,
            confidence=intent.confidence,
            api_data=result.data,
            processing_ms=elapsed,
        )

    async def _apologize(self, intent: VoiceIntentResult, asked: str, error: str, t0: float) -> VoiceReply:
        logger.warning("Voice query failed: {}", error)
        message = await format_error_response(asked, error, self.client)
        return VoiceReply(
            success=False,
            transcription=intent.transcription,
            intent=intent.intent,
            intent_type=map_intent_to_type(intent.intent),
            response=message,
            confidence=intent.confidence,
            processing_ms=int((time.time() - t0) * 1000),
            error=error,
        )
