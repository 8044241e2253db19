"""Render normalized tables as clinician-readable text.

Each subtype has its own line builder. A builder that cannot find the
columns it relies on returns no lines, and the table is rendered with the
generic builder instead, so a table with data is never rendered empty.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from tb_mentor.models.table import LogicalRow, NormalizedTable, TableSubtype
from tb_mentor.tables.subtypes import has_cue

logger = logging.getLogger(__name__)

NO_ROWS_NOTICE = "No rows found in this table."

Cell = Tuple[str, str]
LineBuilder = Callable[[Sequence[LogicalRow]], List[str]]

WEIGHT_KEYS = ("weight band", "weight", "body weight", "kg")
DRUG_KEYS = ("drug", "medicine", "medication", "formulation")
AGE_KEYS = ("age",)
REGIMEN_KEYS = ("regimen",)
COMPONENT_KEYS = ("drugs", "drug", "component", "composition", "medicine")
DURATION_KEYS = ("duration", "month", "length")
NOTE_KEYS = ("note", "comment", "population", "eligib", "remark")
CRITERIA_KEYS = ("criteria", "criterion", "condition", "finding", "result", "scenario", "situation", "if")
ACTION_KEYS = ("action", "then", "recommendation", "management", "next step", "decision")
TIME_KEYS = ("time point", "timepoint", "timing", "time", "schedule", "visit", "frequency", "when")
ACTIVITY_KEYS = ("test", "assessment", "monitoring", "investigation", "examination", "activity", "action")
PERIOD_CUES = ("month", "week", "baseline", "day", "end of")
PRESENCE_MARKS = {"x", "✓", "✔", "yes", "y", "+"}
DRUG_A_KEYS = ("drug a", "drug 1", "tb drug", "anti-tb", "drug")
DRUG_B_KEYS = ("drug b", "drug 2", "interacting", "co-administered", "concomitant", "antiretroviral", "arv", "with")
EFFECT_KEYS = ("effect", "interaction", "outcome", "consequence", "mechanism")
MANAGEMENT_KEYS = ("management", "recommendation", "action", "advice", "response")
EVENT_KEYS = ("adverse event", "adverse", "toxicity", "event", "side effect", "symptom", "condition")
GRADE_KEYS = ("grade", "severity")


def first_present(
    cells: Dict[str, str],
    candidates: Iterable[str],
    exclude: Iterable[str] = (),
) -> Optional[Cell]:
    """First ``(label, value)`` whose label has a word starting with a candidate fragment.

    Candidates are tried in priority order; labels in ``exclude`` and blank
    values are skipped.
    """
    skipped = set(exclude)
    for fragment in candidates:
        for label, value in cells.items():
            if label in skipped or not value.strip():
                continue
            if has_cue(label.lower(), (fragment,)):
                return label, value.strip()
    return None


def _labels_with(cells: Dict[str, str], fragments: Sequence[str]) -> Set[str]:
    return {label for label in cells if any(fragment in label.lower() for fragment in fragments)}


def _remaining(cells: Dict[str, str], used: Iterable[str]) -> List[Cell]:
    taken = set(used)
    return [(label, value) for label, value in cells.items() if label not in taken and value.strip()]


def _dosing_builder(pediatric: bool) -> LineBuilder:
    def build(rows: Sequence[LogicalRow]) -> List[str]:
        lines: List[str] = []
        for row in rows:
            cells = row.cells
            dose_labels = _labels_with(cells, ("dose", "dosage", "mg"))
            weight = first_present(cells, WEIGHT_KEYS, exclude=dose_labels)
            if not weight:
                continue
            used = [weight[0]]
            drug = first_present(cells, DRUG_KEYS, exclude=used + sorted(dose_labels))
            if drug:
                used.append(drug[0])
            age = first_present(cells, AGE_KEYS, exclude=used + sorted(dose_labels)) if pediatric else None
            if age:
                used.append(age[0])
            doses = _remaining(cells, used)
            if not doses:
                continue
            prefix = f"{drug[1]} - " if drug else ""
            age_part = f" ({age[0]}: {age[1]})" if age else ""
            dose_text = ", ".join(f"{label} {value}" for label, value in doses)
            lines.append(f"- {prefix}{weight[0]} {weight[1]}{age_part}: {dose_text}")
        return lines

    return build


def _regimen_lines(rows: Sequence[LogicalRow]) -> List[str]:
    lines: List[str] = []
    for row in rows:
        regimen = first_present(row.cells, REGIMEN_KEYS)
        if not regimen:
            continue
        components = first_present(row.cells, COMPONENT_KEYS, exclude=[regimen[0]])
        if not components:
            continue
        used = [regimen[0], components[0]]
        line = f"- {regimen[1]}: {components[1]}"
        duration = first_present(row.cells, DURATION_KEYS, exclude=used)
        if duration:
            used.append(duration[0])
            line += f" (duration: {duration[1]})"
        note = first_present(row.cells, NOTE_KEYS, exclude=used)
        if note:
            line += f". {note[0]}: {note[1]}"
        lines.append(line)
    return lines


def _decision_lines(rows: Sequence[LogicalRow]) -> List[str]:
    lines: List[str] = []
    for row in rows:
        action = first_present(row.cells, ACTION_KEYS)
        criteria = first_present(row.cells, CRITERIA_KEYS, exclude=[action[0]] if action else [])
        if not criteria or not action:
            continue
        lines.append(f"- If {criteria[1]}, then {action[1]}")
    return lines


def _timeline_lines(rows: Sequence[LogicalRow]) -> List[str]:
    lines: List[str] = []
    for row in rows:
        cells = row.cells
        time = first_present(cells, TIME_KEYS)
        if time:
            activity = first_present(cells, ACTIVITY_KEYS, exclude=[time[0]])
            rest = [activity] if activity else _remaining(cells, [time[0]])[:1]
            if rest:
                lines.append(f"- {time[1]}: {rest[0][1]}")
            continue

        # Monitoring grids: one column per time point, cells mark what is due.
        period_labels = _labels_with(cells, PERIOD_CUES)
        periods = [(label, value) for label, value in cells.items() if label in period_labels]
        others = _remaining(cells, period_labels)
        if not periods or not others:
            continue
        due = ", ".join(
            label if value.strip().lower() in PRESENCE_MARKS else f"{label} ({value})"
            for label, value in periods
        )
        lines.append(f"- {others[0][1]}: {due}")
    return lines


def _interaction_lines(rows: Sequence[LogicalRow]) -> List[str]:
    lines: List[str] = []
    for row in rows:
        drug_b = first_present(row.cells, DRUG_B_KEYS)
        drug_a = first_present(row.cells, DRUG_A_KEYS, exclude=[drug_b[0]] if drug_b else [])
        if not drug_a or not drug_b:
            continue
        used = [drug_a[0], drug_b[0]]
        effect = first_present(row.cells, EFFECT_KEYS, exclude=used)
        if effect:
            used.append(effect[0])
        management = first_present(row.cells, MANAGEMENT_KEYS, exclude=used)
        if not effect and not management:
            continue
        line = f"- {drug_a[1]} + {drug_b[1]}"
        if effect:
            line += f": {effect[1]}"
        if management:
            line += f". Management: {management[1]}"
        lines.append(line)
    return lines


def _toxicity_lines(rows: Sequence[LogicalRow]) -> List[str]:
    lines: List[str] = []
    for row in rows:
        cells = row.cells
        grade_labels = _labels_with(cells, GRADE_KEYS)
        event = first_present(cells, EVENT_KEYS, exclude=grade_labels)
        if not event:
            continue
        grades = [(label, cells[label]) for label in cells if label in grade_labels and cells[label].strip()]
        management = first_present(cells, MANAGEMENT_KEYS, exclude=[event[0], *grade_labels])
        if len(grades) == 1:
            line = f"- {event[1]} ({grades[0][1]})"
            if management:
                line += f": {management[1]}"
        elif grades:
            line = f"- {event[1]}: " + "; ".join(f"{label}: {value}" for label, value in grades)
        elif management:
            line = f"- {event[1]}: {management[1]}"
        else:
            continue
        lines.append(line)
    return lines


def _generic_lines(rows: Sequence[LogicalRow]) -> List[str]:
    lines: List[str] = []
    for number, row in enumerate(rows, start=1):
        pairs = "; ".join(f"{label}: {value}" for label, value in row.cells.items() if value.strip())
        if pairs:
            lines.append(f"Row {number}: {pairs}")
    return lines


LINE_BUILDERS: Dict[TableSubtype, LineBuilder] = {
    TableSubtype.DOSING: _dosing_builder(pediatric=False),
    TableSubtype.PEDS_DOSING: _dosing_builder(pediatric=True),
    TableSubtype.REGIMEN: _regimen_lines,
    TableSubtype.DECISION: _decision_lines,
    TableSubtype.TIMELINE: _timeline_lines,
    TableSubtype.INTERACTION: _interaction_lines,
    TableSubtype.TOXICITY: _toxicity_lines,
    TableSubtype.GENERIC: _generic_lines,
}


def _with_caption(lines: List[str], caption: Optional[str]) -> str:
    if caption and caption.strip():
        lines = [caption.strip(), *lines]
    return "\n".join(lines)


def render_generic(table: NormalizedTable, caption: Optional[str] = None) -> str:
    """List every non-empty ``label: value`` pair of every row."""
    lines = _generic_lines(table.rows)
    return _with_caption(lines or [NO_ROWS_NOTICE], caption)


def render_table(
    table: NormalizedTable,
    subtype: TableSubtype = TableSubtype.GENERIC,
    caption: Optional[str] = None,
) -> str:
    """Render with the subtype's builder, falling back to generic when it yields nothing."""
    if table.is_empty:
        return _with_caption([NO_ROWS_NOTICE], caption)
    builder = LINE_BUILDERS.get(TableSubtype(subtype), _generic_lines)
    lines = builder(table.rows)
    if not lines:
        logger.debug("No structured %s lines for table; using generic rendering.", subtype)
        return render_generic(table, caption)
    return _with_caption(lines, caption)
