"""Attach rendered table text to table results."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from tb_mentor.errors import TableRenderError
from tb_mentor.models.chunk import Chunk
from tb_mentor.models.query import ResultItem
from tb_mentor.tables.loader import load_raw_rows
from tb_mentor.tables.normalizer import normalize_table
from tb_mentor.tables.renderers import render_table
from tb_mentor.tables.subtypes import detect_table_subtype

logger = logging.getLogger(__name__)


def enrich_table_result(item: ResultItem, chunk: Chunk, base_dir: Optional[Path] = None) -> ResultItem:
    """Return ``item`` with table subtype, text and rows filled in.

    Non-table chunks and tables without an attachment are returned untouched.
    A table whose data cannot be read is returned unenriched.
    """
    if not chunk.is_table or not chunk.attachment_path:
        return item
    try:
        raw_rows = load_raw_rows(chunk.attachment_path, base_dir)
    except TableRenderError as exc:
        logger.warning("Skipping table enrichment for %s: %s", chunk.chunk_id, exc)
        return item

    table = normalize_table(raw_rows)
    subtype = detect_table_subtype(table, caption=chunk.caption, section_path=chunk.section_path)
    return item.model_copy(
        update={
            "table_subtype": subtype.value,
            "table_text": render_table(table, subtype, caption=chunk.caption),
            "table_rows": [row.model_dump() for row in table.rows],
        }
    )
