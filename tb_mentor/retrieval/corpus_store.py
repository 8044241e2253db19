"""Precomputed chunk + embedding corpus held in memory for exhaustive scans."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import ValidationError

from tb_mentor.config import settings
from tb_mentor.errors import CorpusLoadError
from tb_mentor.models.chunk import Chunk
from tb_mentor.retrieval.similarity import l2_normalize

logger = logging.getLogger(__name__)


def load_chunks(path: Path) -> Iterator[Chunk]:
    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                yield Chunk(**json.loads(line))
            except (json.JSONDecodeError, ValidationError, TypeError) as exc:
                raise CorpusLoadError(f"Invalid chunk record at {path}:{line_no}: {exc}") from exc


def load_raw_embeddings(path: Path) -> List[List[float]]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
        except json.JSONDecodeError as exc:
            raise CorpusLoadError(f"Embeddings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise CorpusLoadError(f"Embeddings file {path} must contain a JSON list of vectors.")
    return raw


class CorpusStore:
    """Immutable pairing of chunk records with their normalized vectors.

    Position ``i`` in ``chunks`` corresponds to position ``i`` in
    ``embeddings``. A count mismatch is tolerated: only the aligned prefix is
    scorable.
    """

    def __init__(self, chunks: Iterable[Chunk], embeddings: Iterable[Sequence[float]]) -> None:
        self._chunks: Tuple[Chunk, ...] = tuple(chunks)
        normalized = []
        for vector in embeddings:
            arr = l2_normalize(vector)
            arr.setflags(write=False)
            normalized.append(arr)
        self._embeddings: Tuple[np.ndarray, ...] = tuple(normalized)
        if len(self._embeddings) != len(self._chunks):
            logger.warning(
                "Embeddings count (%s) != chunks count (%s); scoring the first %s positions.",
                len(self._embeddings),
                len(self._chunks),
                len(self),
            )

    @classmethod
    def from_files(cls, chunks_path: Path, embeddings_path: Path) -> "CorpusStore":
        for path in (chunks_path, embeddings_path):
            if not path.exists():
                raise CorpusLoadError(f"RAG store file {path} does not exist.")
        try:
            chunks = list(load_chunks(chunks_path))
            raw_embeddings = load_raw_embeddings(embeddings_path)
            store = cls(chunks, raw_embeddings)
        except (OSError, ValueError, TypeError) as exc:
            raise CorpusLoadError(f"RAG store failed to load: {exc}") from exc
        if not store.chunks or not store.embeddings:
            raise CorpusLoadError("RAG store is empty or failed to load.")
        logger.info("Loaded %s chunks and %s embeddings from %s", len(store.chunks), len(store.embeddings), chunks_path.parent)
        return store

    @property
    def chunks(self) -> Tuple[Chunk, ...]:
        return self._chunks

    @property
    def embeddings(self) -> Tuple[np.ndarray, ...]:
        return self._embeddings

    def __len__(self) -> int:
        return min(len(self._chunks), len(self._embeddings))

    def indices(self) -> List[int]:
        return list(range(len(self)))


_store: Optional[CorpusStore] = None
_store_lock = threading.Lock()


def get_corpus_store() -> CorpusStore:
    """Load the corpus once per process; concurrent first calls share one load."""
    global _store
    if _store is not None:
        return _store
    with _store_lock:
        if _store is None:
            _store = CorpusStore.from_files(settings.chunks_path_obj, settings.embeddings_path_obj)
    return _store
