"""Dual-channel ranking of prose and table chunks with adjacency boosting."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from tb_mentor.config import settings
from tb_mentor.errors import CorpusLoadError
from tb_mentor.models.retrieval import RankedCandidate
from tb_mentor.retrieval.corpus_store import CorpusStore
from tb_mentor.retrieval.similarity import score_indices

logger = logging.getLogger(__name__)

SECTION_NUMBER_PATTERN = re.compile(r"\b\d+(?:\.\d+)*\b")


def extract_section_keys(section_path: Optional[str]) -> Set[str]:
    """Breadcrumb fragments used to decide whether two chunks are neighbours."""
    if not section_path:
        return set()
    lowered = str(section_path).lower()
    keys: Set[str] = set()
    whole = lowered.strip()
    if whole:
        keys.add(whole)
    for segment in lowered.split("|"):
        segment = segment.strip()
        if segment:
            keys.add(segment)
    keys.update(SECTION_NUMBER_PATTERN.findall(lowered))
    return keys


def clamp_top_k(top_k: Optional[int], corpus_size: int) -> int:
    """Clamp the requested result count to ``[1, max_top_k]`` and the corpus size."""
    requested = settings.default_top_k if top_k is None else int(top_k)
    clamped = max(1, min(requested, settings.max_top_k))
    return max(1, min(clamped, corpus_size)) if corpus_size else clamped


def dedupe_by_chunk_id(candidates: Iterable[RankedCandidate], store: CorpusStore) -> List[RankedCandidate]:
    """Keep the first occurrence of each chunk id, preserving order.

    Candidates whose chunk has no id cannot be told apart and are dropped.
    """
    seen: Set[str] = set()
    deduped: List[RankedCandidate] = []
    for candidate in candidates:
        chunk_id = store.chunks[candidate.index].chunk_id
        if not chunk_id or chunk_id in seen:
            continue
        seen.add(chunk_id)
        deduped.append(candidate)
    return deduped


class DualChannelRanker:
    """Scores prose and tables separately, then merges them into one top-K list.

    Tables embed poorly compared with prose, so a table that shares a document
    and a section key with one of the best prose hits is lifted to just below
    the best prose score. Each channel is capped before merging so neither can
    crowd the other out.
    """

    def __init__(
        self,
        store: CorpusStore,
        anchor_count: Optional[int] = None,
        prose_limit: Optional[int] = None,
        table_limit: Optional[int] = None,
        boost_ratio: Optional[float] = None,
    ) -> None:
        self.store = store
        self.anchor_count = settings.anchor_count if anchor_count is None else anchor_count
        self.prose_limit = settings.prose_channel_limit if prose_limit is None else prose_limit
        self.table_limit = settings.table_channel_limit if table_limit is None else table_limit
        self.boost_ratio = settings.table_boost_ratio if boost_ratio is None else boost_ratio

    def _partition(self, indices: Sequence[int]) -> Tuple[List[int], List[int]]:
        prose: List[int] = []
        tables: List[int] = []
        limit = len(self.store)
        for idx in indices:
            if idx < 0 or idx >= limit:
                continue
            if self.store.chunks[idx].is_table:
                tables.append(idx)
            else:
                prose.append(idx)
        return prose, tables

    def _anchor_keys(self, prose: Sequence[RankedCandidate]) -> List[Tuple[str, Set[str]]]:
        anchors: List[Tuple[str, Set[str]]] = []
        for candidate in prose[: self.anchor_count]:
            chunk = self.store.chunks[candidate.index]
            if not chunk.doc_id:
                continue
            anchors.append((chunk.doc_id, extract_section_keys(chunk.section_path)))
        return anchors

    def _boost_tables(
        self, tables: Sequence[RankedCandidate], prose: Sequence[RankedCandidate]
    ) -> List[RankedCandidate]:
        if not prose:
            return list(tables)
        anchors = self._anchor_keys(prose)
        floor = prose[0].score * self.boost_ratio
        boosted: List[RankedCandidate] = []
        for candidate in tables:
            chunk = self.store.chunks[candidate.index]
            table_keys = extract_section_keys(chunk.section_path)
            is_neighbour = bool(chunk.doc_id) and any(
                doc_id == chunk.doc_id and keys & table_keys for doc_id, keys in anchors
            )
            if is_neighbour and candidate.score < floor:
                logger.debug("Boosting table %s from %.4f to %.4f", chunk.chunk_id, candidate.score, floor)
                candidate = candidate.model_copy(update={"score": floor})
            boosted.append(candidate)
        return sorted(boosted, key=lambda item: item.score, reverse=True)

    def rank(
        self,
        query_vector: Sequence[float],
        indices: Sequence[int],
        top_k: Optional[int] = None,
    ) -> List[RankedCandidate]:
        if not len(self.store):
            raise CorpusLoadError("RAG store is empty or failed to load.")
        limit = clamp_top_k(top_k, len(self.store))

        prose_indices, table_indices = self._partition(indices)
        embeddings = self.store.embeddings
        prose = score_indices(query_vector, embeddings, prose_indices, channel="prose")
        tables = score_indices(query_vector, embeddings, table_indices, channel="table")
        tables = self._boost_tables(tables, prose)

        merged = prose[: self.prose_limit] + tables[: self.table_limit]
        merged.sort(key=lambda item: item.score, reverse=True)
        return dedupe_by_chunk_id(merged, self.store)[:limit]
