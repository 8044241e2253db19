"""Chunk-level models used for indexing and retrieval."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Chunk(BaseModel):
    """A retrievable unit of guideline content, prose or table."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    doc_id: str
    chunk_id: Optional[str] = None
    section_path: str = ""
    content_type: Optional[str] = None
    text: str = ""
    caption: Optional[str] = None
    has_attachment: Optional[bool] = None
    attachment_id: Optional[str] = None
    attachment_path: Optional[str] = None
    guideline_title: Optional[str] = None
    year: Optional[int] = None
    scope: Optional[str] = None

    @property
    def is_table(self) -> bool:
        return (self.content_type or "").strip().lower() == "table"

    def embedding_text(self) -> str:
        """Text sent to the embedding model for this chunk."""
        parts = [self.caption or "", self.text or ""]
        return "\n".join(part.strip() for part in parts if part and part.strip())
