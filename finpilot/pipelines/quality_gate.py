from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from finpilot.models.extraction import ExtractionResult, QualityAssessment, QualityTier


@dataclass(frozen=True)
class QualityThresholds:
    poor_confidence: float
    fair_confidence: float
    poor_words: int
    fair_words: int
    little_text_chars: int
    max_pages: Optional[int] = None
    low_confidence_msg: str = "Low confidence level detected."
    little_text_msg: str = "Very little text extracted."
    few_words_msg: str = "Few words detected."
    failed_msg: str = "Text extraction failed"


IMAGE_THRESHOLDS = QualityThresholds(
    poor_confidence=50,
    fair_confidence=60,
    poor_words=5,
    fair_words=10,
    little_text_chars=10,
    low_confidence_msg="Low confidence level detected. Image quality may be poor.",
    little_text_msg="Very little text extracted. Ensure the image is clear and contains readable text.",
    few_words_msg="Few words detected. Image may be too blurry or poorly lit.",
    failed_msg="OCR processing failed",
)

# PDFs carry denser text, so the word marks sit higher.
PDF_THRESHOLDS = QualityThresholds(
    poor_confidence=50,
    fair_confidence=60,
    poor_words=10,
    fair_words=15,
    little_text_chars=20,
    max_pages=5,
    low_confidence_msg=(
        "Low confidence level detected. PDF may not contain readable text or may be scanned images."
    ),
    little_text_msg="Very little text extracted. PDF may contain mostly images or be corrupted.",
    few_words_msg="Few words detected. PDF may not contain proper text content.",
    failed_msg="PDF text extraction failed",
)


def thresholds_for(result: ExtractionResult) -> QualityThresholds:
    return PDF_THRESHOLDS if result.source == "pdf" else IMAGE_THRESHOLDS


def assess_extraction(result: ExtractionResult, thresholds: Optional[QualityThresholds] = None) -> QualityAssessment:
    """Tier an extraction and collect warnings. A poor tier is flagged, never blocked."""
    t = thresholds or thresholds_for(result)

    if not result.succeeded:
        return QualityAssessment(valid=False, tier="poor", warnings=[t.failed_msg], confidence=0)

    warnings: List[str] = []
    if result.confidence < t.poor_confidence:
        warnings.append(t.low_confidence_msg)
    if len(result.text) < t.little_text_chars:
        warnings.append(t.little_text_msg)
    if result.word_count < t.poor_words:
        warnings.append(t.few_words_msg)
    if t.max_pages is not None and (result.page_count or 0) > t.max_pages:
        warnings.append("PDF has multiple pages. Content from all pages will be analyzed.")

    tier: QualityTier = "good"
    if result.confidence < t.fair_confidence or result.word_count < t.fair_words:
        tier = "fair"
    if result.confidence < t.poor_confidence or result.word_count < t.poor_words:
        tier = "poor"

    return QualityAssessment(
        valid=len(result.text) > 0,
        tier=tier,
        warnings=warnings,
        confidence=result.confidence,
    )
