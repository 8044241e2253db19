"""Error types raised by the retrieval pipeline.

Each error carries the HTTP status class it is surfaced with so the API layer
can map it without knowing about individual failure modes.
"""

from __future__ import annotations

from typing import Optional


class RagError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class QueryValidationError(RagError):
    """The question is missing, not a string, or blank."""

    status_code = 400


class UpstreamEmbeddingError(RagError):
    """The embedding service failed or answered with a non-success status."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None) -> None:
        if upstream_status is not None:
            message = f"OpenAI embeddings error: {upstream_status} {message}"
        super().__init__(message)
        self.upstream_status = upstream_status


class CorpusLoadError(RagError):
    """Chunk or vector data is missing, empty, or unparsable."""


class TableRenderError(RagError):
    """A table attachment could not be read or parsed."""
