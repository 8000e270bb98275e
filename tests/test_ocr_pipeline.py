from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest
import pytesseract
from PIL import Image

from finpilot.core.errors import ExtractionError
from finpilot.pipelines import ocr_pipeline
from finpilot.pipelines.ocr_pipeline import clean_text, extract_text_from_image, extract_text_from_images

TESSERACT_DATA: Dict[str, Any] = {
    "text": ["", "BIG", "BAZAAR", "Total", "450.00"],
    "conf": ["-1", "90", "80", "70", "60"],
    "page_num": [1, 1, 1, 1, 1],
    "block_num": [1, 1, 1, 1, 1],
    "par_num": [1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 2, 2],
}


@pytest.fixture
def fake_tesseract(monkeypatch: pytest.MonkeyPatch) -> Dict[str, Any]:
    calls: Dict[str, Any] = {}

    def image_to_data(img, lang="eng", config="", output_type=None):
        calls["lang"] = lang
        calls["config"] = config
        return TESSERACT_DATA

    monkeypatch.setattr(ocr_pipeline.pytesseract, "image_to_data", image_to_data)
    return calls


@pytest.fixture
def receipt_png(tmp_path: Path) -> Path:
    p = tmp_path / "receipt.png"
    Image.new("RGB", (240, 120), "white").save(p)
    return p


def test_clean_text_collapses_whitespace() -> None:
    assert clean_text("  BIG\tBAZAAR \n\n Total\x0c ") == "BIG BAZAAR Total"


def test_extract_text_from_image(fake_tesseract: Dict[str, Any], receipt_png: Path) -> None:
    result = extract_text_from_image(str(receipt_png), language="eng+hin")

    assert result.succeeded
    assert result.source == "image"
    assert result.raw_text == "BIG BAZAAR\nTotal 450.00"
    assert result.text == "BIG BAZAAR Total 450.00"
    assert result.confidence == pytest.approx(75.0)
    assert result.word_count == 4
    assert fake_tesseract["lang"] == "eng+hin"
    assert "--psm 6" in fake_tesseract["config"]


def test_no_words_gives_zero_confidence(monkeypatch: pytest.MonkeyPatch, receipt_png: Path) -> None:
    monkeypatch.setattr(
        ocr_pipeline.pytesseract,
        "image_to_data",
        lambda *a, **k: {"text": [""], "conf": ["-1"]},
    )
    result = extract_text_from_image(str(receipt_png), preprocess=False)
    assert result.text == ""
    assert result.confidence == 0


def test_missing_image_raises(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError):
        extract_text_from_image(str(tmp_path / "nope.png"))


def test_corrupt_image_raises(tmp_path: Path) -> None:
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"definitely not a png")
    with pytest.raises(ExtractionError):
        extract_text_from_image(str(bad))


def test_tesseract_failure_raises(monkeypatch: pytest.MonkeyPatch, receipt_png: Path) -> None:
    def boom(*a, **k):
        raise pytesseract.TesseractError(1, "tesseract crashed")

    monkeypatch.setattr(ocr_pipeline.pytesseract, "image_to_data", boom)
    with pytest.raises(ExtractionError):
        extract_text_from_image(str(receipt_png))


def test_batch(fake_tesseract: Dict[str, Any], receipt_png: Path, tmp_path: Path) -> None:
    results = extract_text_from_images([str(receipt_png), str(tmp_path / "missing.png")])
    assert [r.succeeded for r in results] == [True, False]
    assert results[1].error
