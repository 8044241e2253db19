"""Read raw table rows referenced by a table chunk's attachment path."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tb_mentor.config import settings
from tb_mentor.errors import TableRenderError

logger = logging.getLogger(__name__)

RawRow = Dict[str, str]


def resolve_attachment_path(attachment_path: str, base_dir: Optional[Path] = None) -> Path:
    """Resolve a chunk attachment path against the RAG directory."""
    path = Path(attachment_path)
    if path.is_absolute():
        return path
    base = Path(base_dir) if base_dir is not None else settings.rag_dir_path
    candidate = base / path
    if not candidate.exists() and path.exists():
        return path
    return candidate


def _coerce_row(record: Any, source: Path) -> RawRow:
    if not isinstance(record, dict):
        raise TableRenderError(f"Table file {source} contains a non-object row: {record!r}")
    return {str(key): "" if value is None else str(value) for key, value in record.items()}


def _read_json(path: Path) -> List[RawRow]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if isinstance(payload, dict):
        payload = payload.get("rows", [])
    if not isinstance(payload, list):
        raise TableRenderError(f"Table file {path} must contain a list of rows.")
    return [_coerce_row(record, path) for record in payload]


def _read_jsonl(path: Path) -> List[RawRow]:
    rows: List[RawRow] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                rows.append(_coerce_row(json.loads(line), path))
    return rows


def _read_csv(path: Path) -> List[RawRow]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        return [_coerce_row(record, path) for record in csv.DictReader(handle)]


READERS = {
    ".json": _read_json,
    ".jsonl": _read_jsonl,
    ".csv": _read_csv,
}


def load_raw_rows(attachment_path: str, base_dir: Optional[Path] = None) -> List[RawRow]:
    """Load generic-column rows (``ColumnA``, ``ColumnB``, ... plus ``row_index``)."""
    path = resolve_attachment_path(attachment_path, base_dir)
    reader = READERS.get(path.suffix.lower())
    if reader is None:
        raise TableRenderError(f"Unsupported table file type for {path}")
    if not path.exists():
        raise TableRenderError(f"Table file {path} does not exist.")
    try:
        rows = reader(path)
    except TableRenderError:
        raise
    except (OSError, ValueError, csv.Error) as exc:
        raise TableRenderError(f"Failed to parse table file {path}: {exc}") from exc
    logger.debug("Loaded %s raw rows from %s", len(rows), path)
    return rows


def generic_columns(rows: Iterable[RawRow]) -> List[str]:
    """Positional column names in first-seen order, excluding ``row_index``."""
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key.strip().lower() == "row_index" or key in columns:
                continue
            columns.append(key)
    return columns
