from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_pdf
from finpilot.core.errors import ExtractionError
from finpilot.pipelines.pdf_pipeline import (
    ConfidenceWeights,
    calculate_text_confidence,
    extract_text_from_pdf,
    extract_text_from_pdfs,
    get_pdf_info,
    is_pdf_file,
)

BILL_LINES = [
    "TAX INVOICE",
    "Spice Route Restaurant",
    "Date: 12/03/2024",
    "Chicken Burger Rs. 350.00",
    "Coke Rs. 80.00",
    "Total Amount Rs. 430.00",
]


def test_confidence_empty_is_zero() -> None:
    assert calculate_text_confidence("") == 0


def test_confidence_base_only() -> None:
    assert calculate_text_confidence("hello") == 40


def test_confidence_counts_patterns() -> None:
    # "total" plus a number
    assert calculate_text_confidence("Total: 100") == 50


def test_confidence_is_capped() -> None:
    text = "Invoice total amount Rs. 1,250.00 date 12/03/2024 " + "x" * 600
    assert calculate_text_confidence(text) == 100


def test_confidence_weights_are_overridable() -> None:
    weights = ConfidenceWeights(base=10, length_bonus=0, pattern_bonus=1)
    assert calculate_text_confidence("Total: 100", weights) == 12


def test_is_pdf_file() -> None:
    assert is_pdf_file("a/b/Bill.PDF")
    assert not is_pdf_file("receipt.png")


def test_extracts_text_layer(tmp_path: Path) -> None:
    pdf = make_pdf(tmp_path / "bill.pdf", BILL_LINES)
    result = extract_text_from_pdf(str(pdf))

    assert result.succeeded
    assert result.source == "pdf"
    assert result.page_count == 1
    assert "Chicken Burger" in result.text
    assert result.word_count >= 15
    assert result.confidence >= 70


def test_missing_pdf_raises(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError):
        extract_text_from_pdf(str(tmp_path / "nope.pdf"))


def test_corrupt_pdf_raises(tmp_path: Path) -> None:
    bad = tmp_path / "bad.pdf"
    bad.write_bytes(b"this is not a pdf at all")
    with pytest.raises(ExtractionError):
        extract_text_from_pdf(str(bad))


def test_batch_keeps_going_after_failure(tmp_path: Path) -> None:
    good = make_pdf(tmp_path / "bill.pdf", BILL_LINES)
    results = extract_text_from_pdfs([str(tmp_path / "missing.pdf"), str(good)])
    assert [r.succeeded for r in results] == [False, True]
    assert results[0].text == ""


def test_pdf_info(tmp_path: Path) -> None:
    pdf = make_pdf(tmp_path / "bill.pdf", BILL_LINES)
    info = get_pdf_info(str(pdf))
    assert info["page_count"] == 1
    assert "producer" in info["metadata"]
