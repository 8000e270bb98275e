from __future__ import annotations

import abc
import asyncio
import os
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx
from google import genai
from google.genai import types
from loguru import logger

from finpilot.config import Settings, get_settings
from finpilot.core.errors import InferenceError, InferenceUnavailableError


@dataclass(frozen=True)
class RemoteFile:
    """Handle to a file uploaded to the inference service."""

    name: str
    uri: str
    mime_type: str


class InferenceClient(abc.ABC):
    """
    Contract for the external inference service.

    Calls are single-shot; timeout and retry policy belong to the caller.
    """

    name: str = "base"
    available: bool = True

    @abc.abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        file: Optional[RemoteFile] = None,
    ) -> str:
        """Send *prompt* (plus an optional uploaded file) and return the raw text."""

    @abc.abstractmethod
    async def upload_file(self, path: str, *, mime_type: str, display_name: str = "") -> RemoteFile:
        ...

    @abc.abstractmethod
    async def delete_file(self, remote: RemoteFile) -> None:
        ...

    @asynccontextmanager
    async def remote_file(self, path: str, mime_type: str) -> AsyncIterator[RemoteFile]:
        """Upload *path* for the duration of the block; deleted on every exit path."""
        remote = await self.upload_file(path, mime_type=mime_type, display_name=os.path.basename(path))
        logger.info("Uploaded {} to {} as {}", os.path.basename(path), self.name, remote.name)
        try:
            yield remote
        finally:
            try:
                await asyncio.shield(self.delete_file(remote))
                logger.info("Deleted remote file {}", remote.name)
            except InferenceError as e:
                logger.warning("Failed to delete remote file {}: {}", remote.name, e)


class GeminiClient(InferenceClient):
    """Google Gemini via the google-genai SDK; accepts text and audio."""

    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", timeout_s: float = 60.0) -> None:
        self.model = model
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        file: Optional[RemoteFile] = None,
    ) -> str:
        contents: list = []
        if file is not None:
            contents.append(types.Part.from_uri(file_uri=file.uri, mime_type=file.mime_type))
        contents.append(prompt)

        t0 = time.time()
        try:
            resp = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(system_instruction=system_prompt, temperature=0),
            )
        except Exception as e:
            raise InferenceError(f"Gemini request failed: {e}") from e
        out = resp.text or ""
        logger.info("Gemini response chars={} latency_s={:.2f}", len(out), time.time() - t0)
        return out

    async def upload_file(self, path: str, *, mime_type: str, display_name: str = "") -> RemoteFile:
        try:
            f = await self._client.aio.files.upload(
                file=path,
                config=types.UploadFileConfig(mime_type=mime_type, display_name=display_name or None),
            )
        except Exception as e:
            raise InferenceError(f"Gemini file upload failed: {e}") from e
        return RemoteFile(name=f.name or "", uri=f.uri or "", mime_type=f.mime_type or mime_type)

    async def delete_file(self, remote: RemoteFile) -> None:
        try:
            await self._client.aio.files.delete(name=remote.name)
        except Exception as e:
            raise InferenceError(f"Gemini file delete failed: {e}") from e


class AnthropicClient(InferenceClient):
    """Anthropic Messages API via httpx. Text only: audio uploads are refused."""

    name = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        file: Optional[RemoteFile] = None,
    ) -> str:
        if file is not None:
            raise InferenceUnavailableError("Anthropic backend does not accept audio input")

        payload = {
            "model": self.model,
            "max_tokens": 2048,
            "temperature": 0,
            "system": system_prompt
            or "You are a precise extraction engine. If asked for JSON, output ONLY valid JSON.",
            "messages": [{"role": "user", "content": [{"type": "text", "text": prompt}]}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }
        t0 = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                resp = await client.post(self.API_URL, headers=headers, json=payload)
            resp.raise_for_status()
            msg = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise InferenceError(f"Anthropic request failed: {e}") from e

        blocks = msg.get("content", []) if isinstance(msg, dict) else []
        out = "".join([b.get("text", "") for b in blocks if b.get("type") == "text"])
        logger.info("Anthropic response chars={} latency_s={:.2f}", len(out), time.time() - t0)
        return out

    async def upload_file(self, path: str, *, mime_type: str, display_name: str = "") -> RemoteFile:
        raise InferenceUnavailableError("Anthropic backend does not accept file uploads")

    async def delete_file(self, remote: RemoteFile) -> None:
        raise InferenceUnavailableError("Anthropic backend does not accept file uploads")


class UnavailableClient(InferenceClient):
    """Stand-in used when no credentials are configured; every call fails fast."""

    name = "unavailable"
    available = False

    def __init__(self, reason: str = "Inference service not configured. Set GOOGLE_API_KEY") -> None:
        self.reason = reason

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        file: Optional[RemoteFile] = None,
    ) -> str:
        raise InferenceUnavailableError(self.reason)

    async def upload_file(self, path: str, *, mime_type: str, display_name: str = "") -> RemoteFile:
        raise InferenceUnavailableError(self.reason)

    async def delete_file(self, remote: RemoteFile) -> None:
        raise InferenceUnavailableError(self.reason)


def build_inference_client(settings: Optional[Settings] = None) -> InferenceClient:
    s = settings or get_settings()
    if s.GOOGLE_API_KEY:
        return GeminiClient(api_key=s.GOOGLE_API_KEY, model=s.GEMINI_MODEL, timeout_s=s.INFERENCE_TIMEOUT_S)
    if s.ANTHROPIC_API_KEY:
        logger.warning("GOOGLE_API_KEY missing; using Anthropic (voice queries unavailable)")
        return AnthropicClient(api_key=s.ANTHROPIC_API_KEY, model=s.ANTHROPIC_MODEL, timeout_s=s.INFERENCE_TIMEOUT_S)
    logger.warning("No inference credentials configured; receipts will use fallback extraction")
    return UnavailableClient()
