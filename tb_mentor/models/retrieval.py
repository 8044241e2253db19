"""Retrieval-stage models."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel


class Scope(str, Enum):
    """Topical scopes recognized by the heuristic filters."""

    PREVENTION = "prevention"
    SCREENING = "screening"
    DIAGNOSIS = "diagnosis"
    TREATMENT = "treatment"
    PEDIATRICS = "pediatrics"
    COMORBIDITIES = "comorbidities"
    DRUG_SAFETY = "drug-safety"
    PROGRAMMATIC = "programmatic"


class RankedCandidate(BaseModel):
    """Corpus position paired with its cosine similarity to the query."""

    index: int
    score: float
    channel: Literal["prose", "table"] = "prose"


class QueryClassification(BaseModel):
    """Scope and document hint that steer candidate selection."""

    scope: Optional[str] = None
    document_hint: Optional[str] = None
