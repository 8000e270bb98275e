import os
import re
from typing import Dict, List, Tuple

import cv2
import numpy as np
import pytesseract
from loguru import logger
from PIL import Image, UnidentifiedImageError

from finpilot.core.errors import ExtractionError
from finpilot.models.extraction import ExtractionResult

_TESSERACT_CONFIG = "--oem 3 --psm 6"


def _preprocess(img_bgr: np.ndarray) -> np.ndarray:
    gray = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2GRAY)
    gray = cv2.bilateralFilter(gray, 9, 75, 75)
    thr = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 2)
    return thr


def clean_text(text: str) -> str:
    t = (text or "").replace("\x0c", "\n")
    t = re.sub(r"\s+", " ", t)
    t = re.sub(r"\n\s*\n", "\n", t)
    return t.strip()


def count_words(text: str) -> int:
    return len(text.split())


def count_lines(text: str) -> int:
    return len([ln for ln in text.split("\n") if ln.strip()])


def _at(data: Dict[str, List], key: str, i: int) -> int:
    col = data.get(key) or []
    return int(col[i]) if i < len(col) else 0


def _lines_from_data(data: Dict[str, List]) -> Tuple[str, float]:
    """Rebuild line-broken text and the mean word confidence from image_to_data output."""
    lines: Dict[Tuple[int, int, int, int], List[str]] = {}
    confs: List[float] = []
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        try:
            conf = float(data["conf"][i])
        except (KeyError, IndexError, TypeError, ValueError):
            conf = -1.0
        if not word or conf < 0:
            continue
        key = tuple(_at(data, k, i) for k in ("page_num", "block_num", "par_num", "line_num"))
        lines.setdefault(key, []).append(word)
        confs.append(conf)

    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    confidence = sum(confs) / len(confs) if confs else 0.0
    return text, max(0.0, min(100.0, confidence))


def ocr_pil(pil_img: Image.Image, language: str = "eng", preprocess: bool = True) -> Tuple[str, float]:
    """Run Tesseract on a PIL image; returns (raw text, confidence 0-100)."""
    img = np.array(pil_img.convert("RGB"))
    if preprocess:
        img_bgr = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
        img = _preprocess(img_bgr)
    data = pytesseract.image_to_data(
        img, lang=language, config=_TESSERACT_CONFIG, output_type=pytesseract.Output.DICT
    )
    return _lines_from_data(data)


def extract_text_from_image(image_path: str, *, language: str = "eng", preprocess: bool = True) -> ExtractionResult:
    """
    Image -> OCR -> cleaned text plus Tesseract's confidence.
    Unreadable or corrupt images raise ExtractionError.
    """
    if not os.path.exists(image_path):
        raise ExtractionError(f"Image file not found: {image_path}")

    logger.info("Starting OCR for {}", os.path.basename(image_path))
    try:
        with Image.open(image_path) as pil_img:
            raw_text, confidence = ocr_pil(pil_img, language=language, preprocess=preprocess)
    except (UnidentifiedImageError, OSError, pytesseract.TesseractError) as e:
        raise ExtractionError(f"OCR processing failed: {e}") from e

    raw_text = raw_text.strip()
    cleaned = clean_text(raw_text)
    logger.info("OCR completed confidence={:.2f} chars={}", confidence, len(cleaned))

    return ExtractionResult(
        succeeded=True,
        source="image",
        text=cleaned,
        raw_text=raw_text,
        confidence=confidence,
        word_count=count_words(cleaned),
        line_count=count_lines(cleaned),
    )


def extract_text_from_images(image_paths: List[str], **kwargs) -> List[ExtractionResult]:
    results: List[ExtractionResult] = []
    for idx, path in enumerate(image_paths, start=1):
        try:
            results.append(extract_text_from_image(path, **kwargs))
        except ExtractionError as e:
            logger.warning("Image {}/{} failed: {}", idx, len(image_paths), e)
            results.append(ExtractionResult.failed("image", str(e)))
    ok = sum(1 for r in results if r.succeeded)
    logger.info("Processed {}/{} images", ok, len(image_paths))
    return results
