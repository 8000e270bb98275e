from __future__ import annotations

import asyncio
from functools import partial
from typing import Callable, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from finpilot.config import get_settings
from finpilot.core.errors import InputRejectedError
from finpilot.models.extraction import ExtractionResult, QualityAssessment
from finpilot.models.transaction import ParsedReceipt, ParsedTransaction, TransactionCheck
from finpilot.pipelines.fallback import create_fallback_transaction
from finpilot.pipelines.ocr_pipeline import extract_text_from_image
from finpilot.pipelines.pdf_pipeline import extract_text_from_pdf
from finpilot.pipelines.quality_gate import assess_extraction
from finpilot.pipelines.receipt_parser import parse_receipt_text, validate_transaction_data
from finpilot.pipelines.upload_validator import ArtifactKind, validate_file
from finpilot.utils.llm_client import InferenceClient


class ScanOutcome(BaseModel):
    success: bool
    extraction: ExtractionResult
    quality: QualityAssessment
    receipt: Optional[ParsedReceipt] = None
    transactions: List[ParsedTransaction] = Field(default_factory=list)
    check: Optional[TransactionCheck] = None
    fallback: Optional[ParsedTransaction] = None
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class ReceiptAgent:
    """
    Receipt scan: validate -> extract -> quality gate -> parse -> fallback.

    Input and extraction failures raise; everything after extraction degrades
    to a best-effort result with at least one transaction.
    """

    def __init__(
        self,
        client: InferenceClient,
        *,
        language: Optional[str] = None,
        preprocess: Optional[bool] = None,
        pdf_ocr_fallback: Optional[bool] = None,
    ) -> None:
        s = get_settings()
        self.client = client
        self.language = language or s.OCR_LANGUAGE
        self.preprocess = s.OCR_PREPROCESS if preprocess is None else preprocess
        self.pdf_ocr_fallback = s.PDF_OCR_FALLBACK if pdf_ocr_fallback is None else pdf_ocr_fallback

    async def scan_image(self, path: str, mime_type: Optional[str] = None) -> ScanOutcome:
        extract = partial(extract_text_from_image, language=self.language, preprocess=self.preprocess)
        return await self._scan(path, "image", mime_type, extract)

    async def scan_pdf(self, path: str, mime_type: Optional[str] = None) -> ScanOutcome:
        extract = partial(extract_text_from_pdf, ocr_fallback=self.pdf_ocr_fallback, language=self.language)
        return await self._scan(path, "pdf", mime_type, extract)

    async def _scan(
        self,
        path: str,
        kind: ArtifactKind,
        mime_type: Optional[str],
        extract: Callable[[str], ExtractionResult],
    ) -> ScanOutcome:
        check = validate_file(path, kind, mime_type)
        if not check.valid:
            raise InputRejectedError(check.error or "Invalid upload")

        # OCR/PDF parsing is CPU-bound; keep it off the event loop.
        extraction = await asyncio.to_thread(extract, path)
        return await self.process_extraction(extraction)

    async def process_extraction(self, extraction: ExtractionResult) -> ScanOutcome:
        quality = assess_extraction(extraction)
        if quality.warnings:
            logger.info("Extraction quality={} warnings={}", quality.tier, quality.warnings)

        parsed = await parse_receipt_text(extraction.text, self.client, quality_tier=quality.tier)
        if parsed.success and parsed.receipt is not None:
            return ScanOutcome(
                success=True,
                extraction=extraction,
                quality=quality,
                receipt=parsed.receipt,
                transactions=list(parsed.receipt.transactions),
                check=validate_transaction_data(parsed.receipt),
                warnings=list(quality.warnings),
            )

        logger.warning("Structured parse failed ({}); using fallback transaction", parsed.error)
        fallback = create_fallback_transaction(extraction.text)
        return ScanOutcome(
            success=False,
            extraction=extraction,
            quality=quality,
            transactions=[fallback],
            fallback=fallback,
            error=parsed.error,
            warnings=list(quality.warnings) + ["Automatic parsing failed; review the suggested transaction."],
        )
