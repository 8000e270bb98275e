from __future__ import annotations

import os
import re
import time
from dataclasses import dataclass
from typing import Dict, FrozenSet, Literal, Optional

from pydantic import BaseModel

ArtifactKind = Literal["image", "pdf", "audio"]

_MB = 1024 * 1024


@dataclass(frozen=True)
class ArtifactRules:
    extensions: FrozenSet[str]
    mime_types: FrozenSet[str]
    max_bytes: int
    label: str


ARTIFACT_RULES: Dict[str, ArtifactRules] = {
    "image": ArtifactRules(
        extensions=frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"}),
        mime_types=frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}),
        max_bytes=10 * _MB,
        label="JPEG, PNG, GIF and WebP images",
    ),
    "pdf": ArtifactRules(
        extensions=frozenset({".pdf"}),
        mime_types=frozenset({"application/pdf"}),
        max_bytes=15 * _MB,
        label="PDF files",
    ),
    "audio": ArtifactRules(
        extensions=frozenset({".mp3", ".wav", ".m4a", ".aac", ".ogg", ".webm"}),
        mime_types=frozenset(
            {"audio/mpeg", "audio/mp3", "audio/wav", "audio/webm", "audio/ogg", "audio/m4a", "audio/mp4", "audio/aac"}
        ),
        max_bytes=25 * _MB,
        label="audio files",
    ),
}

_AUDIO_MIME_BY_EXT = {
    ".mp3": "audio/mp3",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
}


class UploadCheck(BaseModel):
    valid: bool
    error: Optional[str] = None
    extension: str = ""
    mime_type: Optional[str] = None
    size: int = 0


def audio_mime_type(path: str) -> str:
    return _AUDIO_MIME_BY_EXT.get(os.path.splitext(path)[1].lower(), "audio/wav")


def validate_upload(filename: str, mime_type: Optional[str], size: int, kind: ArtifactKind) -> UploadCheck:
    """Check a declared upload against the per-kind extension, MIME and size rules."""
    rules = ARTIFACT_RULES[kind]
    ext = os.path.splitext(filename or "")[1].lower()

    if ext not in rules.extensions:
        allowed = ", ".join(sorted(rules.extensions))
        return UploadCheck(valid=False, error=f"Invalid file type. Allowed: {allowed}", extension=ext, size=size)

    if mime_type and mime_type.lower() not in rules.mime_types:
        return UploadCheck(
            valid=False,
            error=f"Invalid file type. Only {rules.label} are allowed.",
            extension=ext,
            mime_type=mime_type,
            size=size,
        )

    if size <= 0:
        return UploadCheck(valid=False, error="File is empty", extension=ext, mime_type=mime_type, size=size)

    if size > rules.max_bytes:
        return UploadCheck(
            valid=False,
            error=f"File size exceeds {rules.max_bytes // _MB}MB limit",
            extension=ext,
            mime_type=mime_type,
            size=size,
        )

    if kind == "audio" and not mime_type:
        mime_type = audio_mime_type(filename)

    return UploadCheck(valid=True, extension=ext, mime_type=mime_type, size=size)


def validate_file(path: str, kind: ArtifactKind, mime_type: Optional[str] = None) -> UploadCheck:
    if not os.path.isfile(path):
        return UploadCheck(valid=False, error="File not found")
    return validate_upload(os.path.basename(path), mime_type, os.path.getsize(path), kind)


def safe_upload_name(user_id: Optional[str], original_name: str) -> str:
    """``<user>_<millis>_<sanitized stem><ext>`` for storing uploads on disk."""
    stem, ext = os.path.splitext(os.path.basename(original_name or "upload"))
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", stem) or "upload"
    return f"{user_id or 'anonymous'}_{int(time.time() * 1000)}_{sanitized}{ext.lower()}"
