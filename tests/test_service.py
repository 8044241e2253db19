"""Tests for the end-to-end query pipeline with a mocked embedding client."""

import json
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest

from conftest import MONITORING_SECTION, make_chunk

from tb_mentor.errors import QueryValidationError, UpstreamEmbeddingError
from tb_mentor.models.query import QueryRequest
from tb_mentor.retrieval.corpus_store import CorpusStore
from tb_mentor.service import RagQueryService

MONITORING_QUESTION = "What are the recommended monitoring steps for a patient on bedaquiline?"


@pytest.fixture
def embedder(query_vector):
    client = Mock()
    client.embed_query = AsyncMock(return_value=np.asarray(query_vector))
    return client


@pytest.fixture
def service(store, embedder):
    return RagQueryService(store_loader=lambda: store, embedder=embedder)


class TestRagQueryService:
    @pytest.mark.asyncio
    async def test_monitoring_question(self, service, embedder):
        response = await service.query(QueryRequest(question=MONITORING_QUESTION))

        embedder.embed_query.assert_awaited_once_with(MONITORING_QUESTION)
        assert response.scope == "drug-safety"
        assert response.document_hint is None
        assert response.results[0].chunk_id == "c-0"
        assert {item.chunk_id for item in response.results} == {"c-0", "t-2"}
        assert response.results[1].score >= 0.98 * response.results[0].score - 1e-9

    @pytest.mark.asyncio
    async def test_invariants(self, service):
        response = await service.query(QueryRequest(question="Tell me about tuberculosis", top_k=3))
        assert response.top_k == 3
        assert len(response.results) <= response.top_k
        chunk_ids = [item.chunk_id for item in response.results]
        assert len(chunk_ids) == len(set(chunk_ids))
        scores = [item.score for item in response.results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_top_k_clamped(self, service):
        response = await service.query(QueryRequest(question="latent TB", top_k=50))
        assert response.top_k == 4
        response = await service.query(QueryRequest(question="latent TB", top_k=0))
        assert response.top_k == 1
        assert len(response.results) == 1

    @pytest.mark.asyncio
    async def test_explicit_scope_and_hint(self, service):
        response = await service.query(
            QueryRequest(question="anything", scope="diagnosis", document_hint="module3_diagnosis")
        )
        assert response.scope == "diagnosis"
        assert response.document_hint == "module3_diagnosis"
        assert [item.chunk_id for item in response.results] == ["c-1"]

    @pytest.mark.asyncio
    async def test_scope_without_matches_falls_back(self, embedder):
        chunks = [make_chunk("a", section_path="Regimens"), make_chunk("b", section_path="Diagnosis")]
        store = CorpusStore(chunks, [[1.0, 0.0], [0.0, 1.0]])
        service = RagQueryService(store_loader=lambda: store, embedder=embedder)
        embedder.embed_query.return_value = np.asarray([1.0, 0.0])

        response = await service.query(QueryRequest(question="TB in children", scope="pediatrics"))
        assert len(response.results) == 2

    @pytest.mark.asyncio
    async def test_table_results_are_rendered(self, tmp_path, embedder):
        rows = [
            {"row_index": "1", "ColumnA": "Weight (kg)", "ColumnB": "Dose (mg)"},
            {"row_index": "2", "ColumnA": "30-35", "ColumnB": "400"},
        ]
        (tmp_path / "dosing.json").write_text(json.dumps(rows), encoding="utf-8")
        chunks = [
            make_chunk("p", section_path=MONITORING_SECTION),
            make_chunk(
                "t",
                section_path=MONITORING_SECTION,
                content_type="table",
                attachment_path="dosing.json",
                text="",
            ),
            make_chunk("broken", content_type="table", attachment_path="missing.json"),
        ]
        store = CorpusStore(chunks, [[1.0, 0.0], [0.0, 1.0], [0.5, 0.5]])
        service = RagQueryService(store_loader=lambda: store, embedder=embedder, table_dir=tmp_path)
        embedder.embed_query.return_value = np.asarray([1.0, 0.0])

        response = await service.query(QueryRequest(question="dose"))
        by_id = {item.chunk_id: item for item in response.results}
        assert by_id["t"].table_subtype == "dosing"
        assert by_id["t"].table_text == "- Weight (kg) 30-35: Dose (mg) 400"
        assert by_id["broken"].table_text is None
        assert by_id["p"].table_subtype is None

    @pytest.mark.asyncio
    async def test_blank_question_rejected(self, embedder):
        loader = Mock()
        service = RagQueryService(store_loader=loader, embedder=embedder)
        with pytest.raises(QueryValidationError):
            await service.query(QueryRequest(question="   "))
        loader.assert_not_called()
        embedder.embed_query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, service, embedder):
        embedder.embed_query.side_effect = UpstreamEmbeddingError("rate limited", upstream_status=429)
        with pytest.raises(UpstreamEmbeddingError) as excinfo:
            await service.query(QueryRequest(question=MONITORING_QUESTION))
        assert "429" in str(excinfo.value)
