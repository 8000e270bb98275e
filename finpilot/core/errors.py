"""
Exception hierarchy for the ingestion pipeline.

Only InputRejectedError and ExtractionError reach the caller; inference
errors are recovered inside the pipeline (fallback transaction for receipts,
``unknown`` intent for voice).
"""
from __future__ import annotations


class PipelineError(Exception):
    """Base class for every ingestion failure."""


class InputRejectedError(PipelineError):
    """Upload failed size/type validation. Terminal, no fallback."""


class ExtractionError(PipelineError):
    """OCR or PDF engine could not read the artifact."""


class InferenceError(PipelineError):
    """The external inference service failed or answered with garbage."""


class InferenceUnavailableError(InferenceError):
    """No usable inference backend (missing credentials, unsupported input)."""


class ResponseFormatError(InferenceError):
    """Inference response could not be parsed into the expected JSON shape."""
