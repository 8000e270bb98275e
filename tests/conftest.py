from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import pytest
from fpdf import FPDF

from finpilot.core.action_catalogue import DEFAULT_CATALOGUE_PATH, ActionCatalogue, read_catalogue
from finpilot.utils.llm_client import InferenceClient, RemoteFile

Reply = Union[str, Exception]


class FakeInferenceClient(InferenceClient):
    """Scripted stand-in: each generate() call consumes the next reply."""

    name = "fake"

    def __init__(self, replies: Sequence[Reply] = (), *, upload_error: Optional[Exception] = None) -> None:
        self.replies: List[Reply] = list(replies)
        self.upload_error = upload_error
        self.prompts: List[str] = []
        self.files: List[Optional[RemoteFile]] = []
        self.uploads = 0
        self.deletes = 0

    async def generate(self, prompt: str, *, system_prompt: Optional[str] = None, file: Optional[RemoteFile] = None) -> str:
        self.prompts.append(prompt)
        self.files.append(file)
        if not self.replies:
            return ""
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def upload_file(self, path: str, *, mime_type: str, display_name: str = "") -> RemoteFile:
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads += 1
        return RemoteFile(name=f"files/{self.uploads}", uri=f"https://files.test/{self.uploads}", mime_type=mime_type)

    async def delete_file(self, remote: RemoteFile) -> None:
        self.deletes += 1


def as_json(obj: Any) -> str:
    return json.dumps(obj)


def make_pdf(path: Path, lines: Sequence[str]) -> Path:
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    for line in lines:
        pdf.cell(0, 10, line, new_x="LMARGIN", new_y="NEXT")
    pdf.output(str(path))
    return path


@pytest.fixture
def catalogue() -> ActionCatalogue:
    return read_catalogue(DEFAULT_CATALOGUE_PATH)


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    p = tmp_path / "question.wav"
    p.write_bytes(b"RIFF\x24\x00\x00\x00WAVEfmt ")
    return p
