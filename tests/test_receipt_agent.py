from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import FakeInferenceClient, as_json, make_pdf
from finpilot.agents.receipt_agent import ReceiptAgent
from finpilot.core.errors import ExtractionError, InferenceError, InputRejectedError
from finpilot.models.extraction import ExtractionResult
from finpilot.utils.llm_client import UnavailableClient

REPLY = {
    "merchantName": "Spice Route",
    "totalAmount": 785,
    "transactions": [
        {"name": "Chicken Burger", "amount": 350, "category": "Food"},
        {"name": "Fries", "amount": 355, "category": "Food"},
        {"name": "Coke", "amount": 80, "category": "Food"},
    ],
    "confidence": "high",
}


def _extraction(text: str, confidence: float = 85) -> ExtractionResult:
    return ExtractionResult(
        succeeded=True, source="image", text=text, raw_text=text, confidence=confidence, word_count=len(text.split())
    )


def test_successful_scan_carries_quality_tier() -> None:
    text = "SPICE ROUTE Chicken Burger ₹350.00 Fries ₹355.00 Coke ₹80.00 Total: ₹785.00"
    agent = ReceiptAgent(FakeInferenceClient([as_json(REPLY)]))
    out = asyncio.run(agent.process_extraction(_extraction(text)))

    assert out.success
    assert out.receipt.quality_tier in ("good", "fair")
    assert len(out.transactions) == 3
    assert out.check.valid
    assert out.fallback is None


def test_service_failure_falls_back() -> None:
    agent = ReceiptAgent(FakeInferenceClient([InferenceError("timeout")]))
    out = asyncio.run(agent.process_extraction(_extraction("Thanks! total due Rs. 450 visit again")))

    assert not out.success
    assert len(out.transactions) == 1
    assert out.fallback.amount == 450
    assert out.fallback.category == "Other"
    assert out.fallback.provenance.confidence_tier == "low"
    assert "timeout" in out.error
    assert any("review" in w for w in out.warnings)


@pytest.mark.parametrize("text", ["", "ab", "Total Rs. 90"])
def test_never_returns_empty_transactions(text: str) -> None:
    agent = ReceiptAgent(UnavailableClient())
    out = asyncio.run(agent.process_extraction(_extraction(text, confidence=20 if text else 0)))
    assert len(out.transactions) >= 1


def test_scan_pdf_end_to_end(tmp_path: Path) -> None:
    pdf = make_pdf(
        tmp_path / "bill.pdf",
        ["TAX INVOICE", "Spice Route", "Chicken Burger Rs. 350.00", "Total Amount Rs. 785.00"],
    )
    client = FakeInferenceClient([as_json(REPLY)])
    out = asyncio.run(ReceiptAgent(client).scan_pdf(str(pdf), "application/pdf"))

    assert out.success
    assert out.extraction.source == "pdf"
    assert "Chicken Burger" in client.prompts[0]


def test_scan_rejects_wrong_kind(tmp_path: Path) -> None:
    p = tmp_path / "notes.txt"
    p.write_text("Total 100")
    with pytest.raises(InputRejectedError):
        asyncio.run(ReceiptAgent(FakeInferenceClient()).scan_image(str(p)))


def test_scan_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InputRejectedError):
        asyncio.run(ReceiptAgent(FakeInferenceClient()).scan_pdf(str(tmp_path / "nope.pdf")))


def test_corrupt_pdf_surfaces_extraction_error(tmp_path: Path) -> None:
    bad = tmp_path / "bad.pdf"
    bad.write_bytes(b"garbage bytes")
    with pytest.raises(ExtractionError):
        asyncio.run(ReceiptAgent(FakeInferenceClient()).scan_pdf(str(bad)))
