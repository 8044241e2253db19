"""Request/response models for the public API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Incoming clinician question payload."""

    question: str = Field(..., min_length=1)
    top_k: Optional[int] = None
    scope: Optional[str] = None
    document_hint: Optional[str] = None


class ResultItem(BaseModel):
    """One ranked guideline passage."""

    doc_id: str
    guideline_title: Optional[str] = None
    year: Optional[int] = None
    chunk_id: str
    section_path: str
    text: str
    content_type: Optional[str] = None
    attachment_id: Optional[str] = None
    attachment_path: Optional[str] = None
    table_subtype: Optional[str] = None
    table_text: Optional[str] = None
    table_rows: Optional[List[Dict[str, Any]]] = None
    score: float


class QueryResponse(BaseModel):
    """Ranked passages returned to the caller."""

    question: str
    top_k: int
    scope: Optional[str] = None
    document_hint: Optional[str] = None
    results: List[ResultItem] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of every non-success response."""

    error: str
