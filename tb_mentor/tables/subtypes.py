"""Classify a normalized table into one of the known guideline table shapes.

Rules are checked in order and the first match wins. Dosing comes first,
then decision, regimen, timeline, interaction and toxicity.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple

from tb_mentor.models.table import NormalizedTable, TableSubtype

DOSING_HEADER_CUES = ("weight", "kg", "dose", "dosing", "mg")
DOSING_TEXT_CUES = ("dosing", "dose", "mg/kg", "weight band", "weight-band")
PEDIATRIC_CUES = ("child", "children", "paediatric", "pediatric", "infant", "neonate", "adolescent")
PEDIATRIC_HEADER_CUES = PEDIATRIC_CUES + ("age",)
DECISION_HEADER_CUES = ("criteria", "criterion", "if", "then", "recommendation", "action", "condition")
DECISION_TEXT_CUES = ("algorithm", "decision", "criteria")
REGIMEN_HEADER_CUES = ("regimen",)
REGIMEN_COMPONENT_CUES = ("drug", "component", "medicine", "composition")
TIMELINE_HEADER_CUES = ("month", "week", "time", "schedule", "visit", "monitoring", "baseline", "frequency")
INTERACTION_HEADER_CUES = (
    "interaction",
    "drug a",
    "drug b",
    "co-administered",
    "concomitant",
    "interacting",
)
INTERACTION_TEXT_CUES = ("interaction",)
TOXICITY_HEADER_CUES = ("grade", "severity", "toxicity", "adverse")


def has_cue(text: str, cues: Iterable[str]) -> bool:
    """True if any cue starts a word in ``text``."""
    return any(re.search(r"(?<![a-z0-9])" + re.escape(cue), text) for cue in cues)


@dataclass(frozen=True)
class TableFeatures:
    text: str
    headers: Tuple[str, ...]

    def header_has(self, cues: Sequence[str]) -> bool:
        return any(has_cue(header, cues) for header in self.headers)

    def text_has(self, cues: Sequence[str]) -> bool:
        return has_cue(self.text, cues)


@dataclass(frozen=True)
class SubtypeRule:
    subtype: TableSubtype
    predicate: Callable[[TableFeatures], bool]


def _is_dosing(features: TableFeatures) -> bool:
    return features.header_has(DOSING_HEADER_CUES) or features.text_has(DOSING_TEXT_CUES)


def _is_pediatric(features: TableFeatures) -> bool:
    return features.header_has(PEDIATRIC_HEADER_CUES) or features.text_has(PEDIATRIC_CUES)


def _is_decision(features: TableFeatures) -> bool:
    return features.header_has(DECISION_HEADER_CUES) or features.text_has(DECISION_TEXT_CUES)


def _is_regimen(features: TableFeatures) -> bool:
    return features.header_has(REGIMEN_HEADER_CUES) and features.header_has(REGIMEN_COMPONENT_CUES)


def _is_timeline(features: TableFeatures) -> bool:
    return features.header_has(TIMELINE_HEADER_CUES)


def _is_interaction(features: TableFeatures) -> bool:
    return features.header_has(INTERACTION_HEADER_CUES) or features.text_has(INTERACTION_TEXT_CUES)


def _is_toxicity(features: TableFeatures) -> bool:
    return features.header_has(TOXICITY_HEADER_CUES)


SUBTYPE_RULES: Tuple[SubtypeRule, ...] = (
    SubtypeRule(TableSubtype.DOSING, _is_dosing),
    SubtypeRule(TableSubtype.DECISION, _is_decision),
    SubtypeRule(TableSubtype.REGIMEN, _is_regimen),
    SubtypeRule(TableSubtype.TIMELINE, _is_timeline),
    SubtypeRule(TableSubtype.INTERACTION, _is_interaction),
    SubtypeRule(TableSubtype.TOXICITY, _is_toxicity),
)


def table_features(
    table: NormalizedTable, caption: Optional[str] = None, section_path: Optional[str] = None
) -> TableFeatures:
    text = " ".join(part for part in (caption or "", section_path or "") if part).lower()
    headers = tuple(label.lower() for label in table.columns)
    return TableFeatures(text=text, headers=headers)


def detect_table_subtype(
    table: NormalizedTable,
    caption: Optional[str] = None,
    section_path: Optional[str] = None,
) -> TableSubtype:
    features = table_features(table, caption, section_path)
    for rule in SUBTYPE_RULES:
        if rule.predicate(features):
            if rule.subtype is TableSubtype.DOSING and _is_pediatric(features):
                return TableSubtype.PEDS_DOSING
            return rule.subtype
    return TableSubtype.GENERIC
