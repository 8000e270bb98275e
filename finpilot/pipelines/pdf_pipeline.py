"""
PDF bill/receipt text extraction.

Text-layer PDFs carry no OCR confidence, so one is synthesized from length
and bill-like keyword patterns (``calculate_text_confidence``). Scanned PDFs
with an empty text layer can optionally be rasterized and OCRed instead.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Pattern, Tuple

import pdfplumber
from loguru import logger
from pdf2image import convert_from_path

from finpilot.core.errors import ExtractionError
from finpilot.models.extraction import ExtractionResult
from finpilot.pipelines.ocr_pipeline import clean_text, count_lines, count_words, ocr_pil

BILL_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"total", re.IGNORECASE),
    re.compile(r"amount", re.IGNORECASE),
    re.compile(r"date", re.IGNORECASE),
    re.compile(r"₹|rs\.?|inr", re.IGNORECASE),
    re.compile(r"\d{1,3}(,\d{3})*(\.\d{2})?"),
    re.compile(r"\d{2}[-/]\d{2}[-/]\d{2,4}"),
    re.compile(r"invoice|receipt|bill", re.IGNORECASE),
)


@dataclass(frozen=True)
class ConfidenceWeights:
    base: float = 40.0
    length_thresholds: Tuple[int, ...] = (50, 200, 500)
    length_bonus: float = 10.0
    pattern_bonus: float = 5.0
    cap: float = 100.0


DEFAULT_WEIGHTS = ConfidenceWeights()


def calculate_text_confidence(text: str, weights: ConfidenceWeights = DEFAULT_WEIGHTS) -> float:
    if not text:
        return 0.0

    confidence = weights.base
    for threshold in weights.length_thresholds:
        if len(text) > threshold:
            confidence += weights.length_bonus
    for pattern in BILL_PATTERNS:
        if pattern.search(text):
            confidence += weights.pattern_bonus
    return min(confidence, weights.cap)


def is_pdf_file(path: str) -> bool:
    return os.path.splitext(path or "")[1].lower() == ".pdf"


def _ocr_pages(pdf_path: str, language: str) -> Tuple[str, float]:
    pages = convert_from_path(pdf_path, dpi=220)
    texts: List[str] = []
    confs: List[float] = []
    for p in pages:
        text, conf = ocr_pil(p, language=language)
        texts.append(text)
        confs.append(conf)
    return "\n\n".join(texts), (sum(confs) / len(confs) if confs else 0.0)


def extract_text_from_pdf(
    pdf_path: str,
    *,
    weights: ConfidenceWeights = DEFAULT_WEIGHTS,
    ocr_fallback: bool = False,
    language: str = "eng",
) -> ExtractionResult:
    if not os.path.exists(pdf_path):
        raise ExtractionError(f"PDF file not found: {pdf_path}")

    logger.info("Starting PDF text extraction for {}", os.path.basename(pdf_path))
    try:
        with pdfplumber.open(pdf_path) as pdf:
            page_count = len(pdf.pages)
            raw_text = "\n".join((page.extract_text() or "") for page in pdf.pages).strip()
    except Exception as e:
        raise ExtractionError(f"PDF text extraction failed: {e}") from e

    cleaned = clean_text(raw_text)
    confidence = calculate_text_confidence(cleaned, weights)

    if not cleaned and ocr_fallback:
        logger.info("PDF has no text layer; rasterizing {} page(s) for OCR", page_count)
        try:
            raw_text, confidence = _ocr_pages(pdf_path, language)
        except Exception as e:
            raise ExtractionError(f"PDF OCR fallback failed: {e}") from e
        raw_text = raw_text.strip()
        cleaned = clean_text(raw_text)

    logger.info("PDF extraction completed pages={} chars={} confidence={:.0f}", page_count, len(cleaned), confidence)
    return ExtractionResult(
        succeeded=True,
        source="pdf",
        text=cleaned,
        raw_text=raw_text,
        confidence=confidence,
        word_count=count_words(cleaned),
        line_count=count_lines(cleaned),
        page_count=page_count,
    )


def extract_text_from_pdfs(pdf_paths: List[str], **kwargs) -> List[ExtractionResult]:
    results: List[ExtractionResult] = []
    for idx, path in enumerate(pdf_paths, start=1):
        try:
            results.append(extract_text_from_pdf(path, **kwargs))
        except ExtractionError as e:
            logger.warning("PDF {}/{} failed: {}", idx, len(pdf_paths), e)
            results.append(ExtractionResult.failed("pdf", str(e)))
    return results


def get_pdf_info(pdf_path: str) -> Dict[str, Any]:
    """Page count and document metadata without extracting text."""
    if not os.path.exists(pdf_path):
        raise ExtractionError(f"PDF file not found: {pdf_path}")
    try:
        with pdfplumber.open(pdf_path) as pdf:
            meta = pdf.metadata or {}
            return {
                "page_count": len(pdf.pages),
                "metadata": {
                    "title": str(meta.get("Title", "")),
                    "author": str(meta.get("Author", "")),
                    "creator": str(meta.get("Creator", "")),
                    "producer": str(meta.get("Producer", "")),
                    "creation_date": str(meta.get("CreationDate", "")),
                    "modification_date": str(meta.get("ModDate", "")),
                },
            }
    except Exception as e:
        raise ExtractionError(f"Could not read PDF info: {e}") from e
