"""
FinPilot voice agent API.
"""
from __future__ import annotations

import tempfile

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from finpilot.agents.voice_agent import VoiceAgent
from finpilot.api.dependencies import get_user_id, get_voice_agent
from finpilot.api.uploads import save_upload
from finpilot.core.errors import InputRejectedError
from finpilot.models.voice import VoiceReply

router = APIRouter(prefix="/api/voice", tags=["voice"])


class QuickQuestion(BaseModel):
    question: str


@router.post("/query", response_model=VoiceReply)
async def voice_query(
    file: UploadFile = File(...),
    agent: VoiceAgent = Depends(get_voice_agent),
    user_id: str = Depends(get_user_id),
) -> VoiceReply:
    """Recorded question -> transcription -> executed action -> spoken answer."""
    with tempfile.TemporaryDirectory() as td:
        path = await save_upload(file, td, user_id)
        try:
            return await agent.handle_audio(str(path), user_id, file.content_type)
        except InputRejectedError as e:
            raise HTTPException(status_code=400, detail=str(e))


@router.post("/quick-question", response_model=VoiceReply)
async def quick_question(
    req: QuickQuestion,
    agent: VoiceAgent = Depends(get_voice_agent),
    user_id: str = Depends(get_user_id),
) -> VoiceReply:
    try:
        return await agent.handle_question(req.question, user_id)
    except InputRejectedError as e:
        raise HTTPException(status_code=400, detail=str(e))
