from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

QualityTier = Literal["good", "fair", "poor"]
ExtractionSource = Literal["image", "pdf"]


class ExtractionResult(BaseModel):
    succeeded: bool
    source: ExtractionSource
    text: str = ""
    raw_text: str = ""
    confidence: float = Field(default=0.0, ge=0, le=100)
    word_count: int = Field(default=0, ge=0)
    line_count: int = Field(default=0, ge=0)
    page_count: Optional[int] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _failed_has_no_text(self) -> "ExtractionResult":
        if not self.succeeded and self.text:
            raise ValueError("failed extraction must not carry text")
        return self

    @classmethod
    def failed(cls, source: ExtractionSource, error: str) -> "ExtractionResult":
        return cls(succeeded=False, source=source, error=error)


class QualityAssessment(BaseModel):
    valid: bool
    tier: QualityTier
    warnings: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0, le=100)
