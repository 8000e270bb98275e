from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class VoiceIntentResult(BaseModel):
    success: bool
    transcription: str = ""
    confidence: float = Field(default=0.0, ge=0, le=1)
    intent: str = "unknown"
    endpoint: Optional[str] = None
    method: Optional[HttpMethod] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    natural_query: str = ""
    requires_auth: bool = True
    error: Optional[str] = None
    audio_file: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def unknown(cls, error: str, **extra: Any) -> "VoiceIntentResult":
        return cls(success=False, error=error, **extra)


class NarratedResponse(BaseModel):
    success: bool
    response: str
    intent: Optional[str] = None
    original_query: Optional[str] = None
    error: Optional[str] = None


class VoiceReply(BaseModel):
    success: bool
    transcription: str = ""
    intent: str = "unknown"
    intent_type: str = "other"
    response: str
    confidence: float = 0.0
    api_data: Any = None
    processing_ms: int = 0
    error: Optional[str] = None
