from __future__ import annotations

from finpilot.models.extraction import ExtractionResult
from finpilot.pipelines.quality_gate import IMAGE_THRESHOLDS, PDF_THRESHOLDS, QualityThresholds, assess_extraction


def _image(text: str, confidence: float) -> ExtractionResult:
    return ExtractionResult(
        succeeded=True, source="image", text=text, raw_text=text, confidence=confidence, word_count=len(text.split())
    )


def test_short_pdf_text_is_poor_but_valid() -> None:
    text = "Coffee shop 120"
    assert len(text) == 15
    result = ExtractionResult(
        succeeded=True, source="pdf", text=text, confidence=45, word_count=3, page_count=1
    )
    q = assess_extraction(result)
    assert q.valid is True
    assert q.tier == "poor"
    assert any(w.startswith("Very little text extracted") for w in q.warnings)


def test_good_image() -> None:
    q = assess_extraction(_image("BIG BAZAAR Rice 5kg 450.00 Oil 1L 180.00 Total 630.00 Paid by card", 88))
    assert q.tier == "good"
    assert q.warnings == []


def test_fair_on_confidence() -> None:
    q = assess_extraction(_image("BIG BAZAAR Rice 5kg 450.00 Oil 1L 180.00 Total 630.00 Paid by card", 55))
    assert q.tier == "fair"


def test_fair_on_word_count() -> None:
    q = assess_extraction(_image("Cafe Latte 120 Muffin 90 Total 210", 90))
    assert q.tier == "fair"
    assert q.warnings == []


def test_poor_on_confidence_adds_warning() -> None:
    q = assess_extraction(_image("BIG BAZAAR Rice 5kg 450.00 Oil 1L 180.00 Total 630.00 Paid by card", 30))
    assert q.tier == "poor"
    assert IMAGE_THRESHOLDS.low_confidence_msg in q.warnings


def test_tier_never_improves_with_lower_confidence() -> None:
    text = "BIG BAZAAR Rice 5kg 450.00 Oil 1L 180.00 Total 630.00 Paid by card"
    order = {"good": 2, "fair": 1, "poor": 0}
    tiers = [order[assess_extraction(_image(text, c)).tier] for c in (95, 70, 60, 59, 50, 49, 10)]
    assert tiers == sorted(tiers, reverse=True)


def test_empty_text_is_invalid() -> None:
    q = assess_extraction(_image("", 0))
    assert q.valid is False
    assert q.tier == "poor"


def test_failed_extraction() -> None:
    q = assess_extraction(ExtractionResult.failed("pdf", "broken"))
    assert q.valid is False
    assert q.warnings == [PDF_THRESHOLDS.failed_msg]


def test_pdf_page_warning() -> None:
    text = " ".join(["invoice"] * 40)
    result = ExtractionResult(succeeded=True, source="pdf", text=text, confidence=80, word_count=40, page_count=7)
    q = assess_extraction(result)
    assert q.tier == "good"
    assert any("multiple pages" in w for w in q.warnings)


def test_thresholds_are_overridable() -> None:
    strict = QualityThresholds(poor_confidence=90, fair_confidence=95, poor_words=1, fair_words=1, little_text_chars=1)
    q = assess_extraction(_image("Total 630.00 card", 92), strict)
    assert q.tier == "fair"
