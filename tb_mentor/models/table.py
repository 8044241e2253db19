"""Table models shared by the normalizer, detector and renderers."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TableSubtype(str, Enum):
    """Semantic kind of a guideline table."""

    DOSING = "dosing"
    PEDS_DOSING = "peds_dosing"
    REGIMEN = "regimen"
    DECISION = "decision"
    TIMELINE = "timeline"
    INTERACTION = "interaction"
    TOXICITY = "toxicity"
    GENERIC = "generic"


class LogicalRow(BaseModel):
    """A table row keyed by its semantic header labels."""

    row_index: str
    position: int
    cells: Dict[str, str] = Field(default_factory=dict)


class NormalizedTable(BaseModel):
    """Header mapping plus logical rows derived from raw CSV rows."""

    header: Optional[Dict[str, str]] = None
    columns: List[str] = Field(default_factory=list)
    rows: List[LogicalRow] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows
