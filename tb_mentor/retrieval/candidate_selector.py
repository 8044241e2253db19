"""Narrow the candidate set by scope and document hint.

Neither filter is allowed to empty the candidate set: when a filter would
drop everything it is ignored and the wider set is kept.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence

from tb_mentor.models.chunk import Chunk
from tb_mentor.models.retrieval import Scope

logger = logging.getLogger(__name__)

ScopeMatcher = Callable[[str, str], bool]


def _contains_any(text: str, fragments: Sequence[str]) -> bool:
    return any(fragment in text for fragment in fragments)


SCOPE_HEURISTICS: Dict[str, ScopeMatcher] = {
    Scope.DIAGNOSIS.value: lambda doc, section: "diag" in doc
    or _contains_any(section, ("diagnos", "xpert", "cxr")),
    Scope.TREATMENT.value: lambda doc, section: "treat" in doc
    or _contains_any(section, ("treatment", "regimen")),
    Scope.DRUG_SAFETY.value: lambda doc, section: _contains_any(
        section, ("monitor", "ecg", "adverse", "safety")
    ),
    Scope.PEDIATRICS.value: lambda doc, section: _contains_any(doc, ("pediatric", "child"))
    or _contains_any(section, ("child", "adolescent")),
    Scope.PROGRAMMATIC.value: lambda doc, section: _contains_any(
        section, ("program", "implementation", "health system")
    ),
}


def _lower(value: Optional[object]) -> str:
    return str(value or "").lower()


def chunk_matches_scope(chunk: Chunk, scope: str) -> bool:
    wanted = scope.strip().lower()
    explicit = _lower(chunk.scope).strip()
    if explicit:
        return explicit == wanted
    matcher = SCOPE_HEURISTICS.get(wanted)
    if matcher is None:
        # Unrecognized scopes filter nothing out.
        return True
    return matcher(_lower(chunk.doc_id), _lower(chunk.section_path))


def filter_by_scope(indices: Sequence[int], chunks: Sequence[Chunk], scope: Optional[str]) -> List[int]:
    if not scope or not scope.strip():
        return list(indices)
    return [idx for idx in indices if chunk_matches_scope(chunks[idx], scope)]


def build_doc_hint_tokens(hint: Optional[str]) -> List[str]:
    """Normalized spellings of a document hint used for substring matching."""
    if not hint:
        return []
    raw = str(hint).lower().strip()
    if not raw:
        return []
    variants = [
        raw,
        re.sub(r"\s+", "", raw),
        re.sub(r"\s+", "_", raw),
        re.sub(r"[^a-z0-9]+", "", raw),
    ]
    tokens: List[str] = []
    for token in variants:
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def chunk_matches_hint(chunk: Chunk, tokens: Sequence[str]) -> bool:
    haystacks = (
        _lower(chunk.doc_id),
        _lower(chunk.section_path),
        _lower(chunk.guideline_title),
        _lower(chunk.scope),
    )
    return any(hay and any(token in hay for token in tokens) for hay in haystacks)


def filter_by_document_hint(
    indices: Sequence[int], chunks: Sequence[Chunk], hint: Optional[str]
) -> List[int]:
    tokens = build_doc_hint_tokens(hint)
    if not tokens:
        return list(indices)
    return [idx for idx in indices if chunk_matches_hint(chunks[idx], tokens)]


def select_candidates(
    indices: Sequence[int],
    chunks: Sequence[Chunk],
    scope: Optional[str] = None,
    document_hint: Optional[str] = None,
) -> List[int]:
    """Apply the scope filter, then the hint filter, falling back when either empties the set."""
    full = list(indices)
    scoped = filter_by_scope(full, chunks, scope)
    if not scoped:
        logger.info("Scope %r matched no chunks; using all %s candidates.", scope, len(full))
        scoped = full

    hinted = filter_by_document_hint(scoped, chunks, document_hint)
    if not hinted:
        logger.info("Document hint %r matched no chunks; keeping %s scoped candidates.", document_hint, len(scoped))
        hinted = scoped
    return hinted
