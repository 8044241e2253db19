"""Turn generic-column CSV rows into header-keyed logical rows."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from tb_mentor.models.table import LogicalRow, NormalizedTable
from tb_mentor.tables.loader import RawRow, generic_columns

HEADER_ROW_INDEX = "1"


def _row_index(row: RawRow) -> str:
    for key, value in row.items():
        if key.strip().lower() == "row_index":
            return str(value).strip()
    return ""


def _index_number(value: str) -> Optional[int]:
    try:
        number = float(value)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def _ordered(rows: Sequence[RawRow]) -> List[Tuple[int, RawRow]]:
    """Rows paired with their source position, sorted by ``row_index`` when every row has a numeric one."""
    positioned = list(enumerate(rows))
    numbers = [_index_number(_row_index(row)) for row in rows]
    if rows and all(number is not None for number in numbers):
        positioned.sort(key=lambda item: numbers[item[0]])
    return positioned


def find_header_row(rows: Sequence[RawRow]) -> Optional[RawRow]:
    """The row whose ``row_index`` is 1, else the first row."""
    if not rows:
        return None
    for row in rows:
        index = _row_index(row)
        if index == HEADER_ROW_INDEX or _index_number(index) == 1:
            return row
    return rows[0]


def _clean_label(label: str) -> str:
    return re.sub(r"\s+", " ", label).strip()


def header_labels(header_row: RawRow, columns: Sequence[str]) -> Dict[str, str]:
    """Map each generic column with a non-empty header cell to a unique label."""
    labels: Dict[str, str] = {}
    used: Dict[str, int] = {}
    for column in columns:
        label = _clean_label(header_row.get(column, ""))
        if not label:
            continue
        seen = used.get(label.lower(), 0) + 1
        used[label.lower()] = seen
        labels[column] = label if seen == 1 else f"{label} ({seen})"
    return labels


def normalize_table(rows: Sequence[RawRow]) -> NormalizedTable:
    """Relabel every non-header row under the header row's labels."""
    header_row = find_header_row(rows)
    if header_row is None:
        return NormalizedTable()

    labels = header_labels(header_row, generic_columns(rows))
    logical_rows: List[LogicalRow] = []
    for position, row in _ordered(rows):
        if row is header_row:
            continue
        cells = {}
        for column, label in labels.items():
            value = str(row.get(column, "") or "").strip()
            if value:
                cells[label] = value
        if not cells:
            continue
        logical_rows.append(LogicalRow(row_index=_row_index(row), position=position, cells=cells))

    return NormalizedTable(header=labels, columns=list(labels.values()), rows=logical_rows)
