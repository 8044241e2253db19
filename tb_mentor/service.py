"""Request pipeline: validate, classify, embed, select, rank, render tables."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from fastapi.concurrency import run_in_threadpool

from tb_mentor.errors import QueryValidationError
from tb_mentor.models.query import QueryRequest, QueryResponse, ResultItem
from tb_mentor.models.retrieval import RankedCandidate
from tb_mentor.retrieval.candidate_selector import select_candidates
from tb_mentor.retrieval.corpus_store import CorpusStore, get_corpus_store
from tb_mentor.retrieval.embedder import OpenAIEmbeddingClient
from tb_mentor.retrieval.query_classifier import classify_query
from tb_mentor.retrieval.ranker import DualChannelRanker, clamp_top_k
from tb_mentor.tables.enrichment import enrich_table_result

logger = logging.getLogger(__name__)


def validate_question(question: object) -> str:
    if not isinstance(question, str) or not question.strip():
        raise QueryValidationError("Missing or empty 'question' string in request body.")
    return question


def build_result_item(store: CorpusStore, candidate: RankedCandidate) -> ResultItem:
    chunk = store.chunks[candidate.index]
    return ResultItem(
        doc_id=chunk.doc_id,
        guideline_title=chunk.guideline_title,
        year=chunk.year,
        chunk_id=chunk.chunk_id,
        section_path=chunk.section_path,
        text=chunk.text,
        content_type=chunk.content_type,
        attachment_id=chunk.attachment_id,
        attachment_path=chunk.attachment_path,
        score=candidate.score,
    )


class RagQueryService:
    """Answers one clinician question with the best-matching guideline passages."""

    def __init__(
        self,
        store_loader: Callable[[], CorpusStore] = get_corpus_store,
        embedder: Optional[OpenAIEmbeddingClient] = None,
        table_dir: Optional[Path] = None,
    ) -> None:
        self.store_loader = store_loader
        self._embedder = embedder
        self.table_dir = table_dir

    @property
    def embedder(self) -> OpenAIEmbeddingClient:
        if self._embedder is None:
            self._embedder = OpenAIEmbeddingClient()
        return self._embedder

    async def query(self, request: QueryRequest) -> QueryResponse:
        question = validate_question(request.question)
        classification = classify_query(question, request.scope, request.document_hint)

        store = await run_in_threadpool(self.store_loader)
        top_k = clamp_top_k(request.top_k, len(store))
        query_vector = await self.embedder.embed_query(question)

        candidates = select_candidates(
            store.indices(),
            store.chunks,
            scope=classification.scope,
            document_hint=classification.document_hint,
        )
        ranked = DualChannelRanker(store).rank(query_vector, candidates, top_k=top_k)

        results: List[ResultItem] = []
        for candidate in ranked:
            item = build_result_item(store, candidate)
            results.append(enrich_table_result(item, store.chunks[candidate.index], self.table_dir))

        logger.info(
            "Answered question (%s chars) scope=%s hint=%s candidates=%s results=%s",
            len(question),
            classification.scope,
            classification.document_hint,
            len(candidates),
            len(results),
        )
        return QueryResponse(
            question=question,
            top_k=top_k,
            scope=classification.scope,
            document_hint=classification.document_hint,
            results=results,
        )
