"""Typed models shared across the application."""

from .chunk import Chunk
from .query import ErrorResponse, QueryRequest, QueryResponse, ResultItem
from .retrieval import QueryClassification, RankedCandidate, Scope
from .table import LogicalRow, NormalizedTable, TableSubtype

__all__ = [
    "Chunk",
    "ErrorResponse",
    "LogicalRow",
    "NormalizedTable",
    "QueryClassification",
    "QueryRequest",
    "QueryResponse",
    "RankedCandidate",
    "ResultItem",
    "Scope",
    "TableSubtype",
]
