"""Heuristic scope and document-hint inference from the question text.

Both inferences are driven by ordered rule tables evaluated with
``first_match``: the first rule that matches decides the result. Diagnosis
and drug-safety rules sit ahead of treatment so that generic treatment
vocabulary does not mask them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, TypeVar, Union

from tb_mentor.models.retrieval import QueryClassification, Scope

DIAGNOSIS_KEYWORDS: Tuple[str, ...] = (
    "diagnos",
    "algorithm",
    "cxr",
    "x-ray",
    "radiograph",
    "screen",
    "xpert",
    "naat",
    "truenat",
    "lamp",
    "wrd",
    "wrds",
    "lpa",
    "smear",
    "ultra",
)

TREATMENT_KEYWORDS: Tuple[str, ...] = (
    "treatment",
    "regimen",
    "therapy",
    "dosing",
    "dose",
    "4-month",
    "6-month",
    "bpal",
    "bdq",
    "pretomanid",
    "linezolid",
    "dr-tb",
    "drug-resistant",
)

SAFETY_KEYWORDS: Tuple[str, ...] = (
    "adverse",
    "toxicity",
    "monitor",
    "safety",
    "ecg",
    "qt",
    "lft",
    "renal",
    "hepat",
    "side effect",
    "side effects",
)

PEDIATRIC_KEYWORDS: Tuple[str, ...] = (
    "child",
    "children",
    "paediatric",
    "pediatric",
    "adolescent",
    "infant",
    "neonate",
)

PROGRAMMATIC_KEYWORDS: Tuple[str, ...] = (
    "program",
    "programmatic",
    "supply chain",
    "implementation",
    "health system",
    "adherence support",
    "community",
)


@dataclass(frozen=True)
class ScopeRule:
    """Infer ``scope`` when enough of ``keywords`` occur in the question.

    A single keyword hit is enough when ``companion`` also occurs.
    """

    scope: str
    keywords: Tuple[str, ...]
    min_count: int = 2
    companion: Optional[str] = None

    def matches(self, text: str) -> bool:
        count = keyword_score(text, self.keywords)
        if count >= self.min_count:
            return True
        return bool(self.companion) and count >= 1 and self.companion in text


@dataclass(frozen=True)
class AliasRule:
    """Map trigger phrases (plus any one of ``requires``) to a document hint."""

    target: str
    triggers: Tuple[str, ...]
    requires: Tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        if not any(trigger in text for trigger in self.triggers):
            return False
        return not self.requires or any(keyword in text for keyword in self.requires)


SCOPE_RULES: Tuple[ScopeRule, ...] = (
    ScopeRule(Scope.DIAGNOSIS.value, DIAGNOSIS_KEYWORDS, companion="module 3"),
    ScopeRule(Scope.PEDIATRICS.value, PEDIATRIC_KEYWORDS),
    ScopeRule(Scope.DRUG_SAFETY.value, SAFETY_KEYWORDS, companion="monitor"),
    ScopeRule(Scope.PROGRAMMATIC.value, PROGRAMMATIC_KEYWORDS),
    ScopeRule(Scope.TREATMENT.value, TREATMENT_KEYWORDS),
)

DOC_HINT_ALIASES: Tuple[AliasRule, ...] = (
    AliasRule(
        "module3_diagnosis",
        ("module 3", "module3", "module iii"),
        ("diagnos", "algorithm", "cxr"),
    ),
    AliasRule(
        "module4_treatment",
        ("module 4", "module4", "module iv"),
        ("treat", "regimen", "therapy"),
    ),
    AliasRule("consolidated_module3", ("consolidated", "module 3"), ("diagnos",)),
)

R = TypeVar("R", bound=Union[ScopeRule, AliasRule])


def first_match(rules: Iterable[R], text: str) -> Optional[R]:
    """Return the first rule that matches ``text``, or ``None``."""
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


def keyword_score(text: str, keywords: Sequence[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def _normalize_question(question: Optional[str]) -> str:
    if not isinstance(question, str):
        return ""
    return question.lower()


def infer_scope(question: Optional[str], rules: Sequence[ScopeRule] = SCOPE_RULES) -> Optional[str]:
    text = _normalize_question(question)
    if not text.strip():
        return None
    rule = first_match(rules, text)
    return rule.scope if rule else None


def infer_document_hint(
    question: Optional[str], rules: Sequence[AliasRule] = DOC_HINT_ALIASES
) -> Optional[str]:
    text = _normalize_question(question)
    if not text.strip():
        return None
    rule = first_match(rules, text)
    return rule.target if rule else None


def classify_query(
    question: Optional[str],
    scope: Optional[str] = None,
    document_hint: Optional[str] = None,
) -> QueryClassification:
    """Fill in whichever of scope / document hint the caller left empty."""
    return QueryClassification(
        scope=scope or infer_scope(question),
        document_hint=document_hint or infer_document_hint(question),
    )
