"""Unit tests for the dual-channel ranker."""

import pytest

from conftest import MONITORING_SECTION, make_chunk

from tb_mentor.errors import CorpusLoadError
from tb_mentor.retrieval.corpus_store import CorpusStore
from tb_mentor.retrieval.ranker import DualChannelRanker, clamp_top_k, extract_section_keys


class TestExtractSectionKeys:
    def test_full_path_segments_and_numbers(self):
        keys = extract_section_keys("Module 4 | 2.5.2 Monitoring | Annex 3")
        assert "module 4 | 2.5.2 monitoring | annex 3" in keys
        assert {"module 4", "2.5.2 monitoring", "annex 3"} <= keys
        assert {"4", "2.5.2", "3"} <= keys

    def test_empty(self):
        assert extract_section_keys("") == set()
        assert extract_section_keys(None) == set()


class TestClampTopK:
    @pytest.mark.parametrize(
        "requested,size,expected",
        [(None, 20, 8), (0, 20, 1), (-3, 20, 1), (3, 20, 3), (50, 20, 8), (8, 5, 5)],
    )
    def test_clamp(self, requested, size, expected):
        assert clamp_top_k(requested, size) == expected


class TestDualChannelRanker:
    def test_results_sorted_and_within_top_k(self, store, query_vector):
        ranked = DualChannelRanker(store).rank(query_vector, store.indices(), top_k=3)
        assert len(ranked) == 3
        scores = [candidate.score for candidate in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_adjacent_table_is_boosted(self, store, query_vector):
        ranked = DualChannelRanker(store).rank(query_vector, store.indices(), top_k=8)
        by_index = {candidate.index: candidate for candidate in ranked}
        assert [candidate.index for candidate in ranked][:2] == [0, 2]
        assert by_index[2].score >= 0.98 * by_index[0].score - 1e-9
        assert by_index[2].channel == "table"

    def test_table_in_other_document_not_boosted(self, query_vector):
        chunks = [
            make_chunk("p", section_path=MONITORING_SECTION),
            make_chunk("t", doc_id="another_doc", section_path=MONITORING_SECTION, content_type="table"),
        ]
        store = CorpusStore(chunks, [[1.0, 0.0], [0.2, 0.98]])
        ranked = DualChannelRanker(store).rank(query_vector[:2], store.indices())
        table = next(candidate for candidate in ranked if candidate.index == 1)
        assert table.score < 0.5

    def test_no_anchors_no_boost(self, store, query_vector):
        ranked = DualChannelRanker(store, anchor_count=0).rank(query_vector, store.indices())
        table = next(candidate for candidate in ranked if candidate.index == 2)
        assert table.score < 0.5

    def test_tables_only_corpus(self, query_vector):
        chunks = [make_chunk("t1", content_type="table"), make_chunk("t2", content_type="TABLE")]
        store = CorpusStore(chunks, [[0.0, 1.0], [1.0, 0.0]])
        ranked = DualChannelRanker(store).rank(query_vector[:2], store.indices())
        assert [candidate.index for candidate in ranked] == [1, 0]

    def test_dedupe_keeps_higher_scored_copy(self, corpus_chunks, corpus_vectors, query_vector):
        chunks = corpus_chunks + [make_chunk("c-0", section_path="Elsewhere")]
        vectors = corpus_vectors + [[0.9, 0.1, 0.0, 0.0]]
        store = CorpusStore(chunks, vectors)
        ranked = DualChannelRanker(store).rank(query_vector, store.indices())
        chunk_ids = [store.chunks[candidate.index].chunk_id for candidate in ranked]
        assert len(chunk_ids) == len(set(chunk_ids))
        assert ranked[0].index == 0

    def test_chunks_without_id_are_dropped(self, corpus_chunks, corpus_vectors, query_vector):
        chunks = corpus_chunks + [make_chunk(None, section_path="Orphan")]
        vectors = corpus_vectors + [[1.0, 0.0, 0.0, 0.0]]
        store = CorpusStore(chunks, vectors)
        ranked = DualChannelRanker(store).rank(query_vector, store.indices())
        assert 4 not in [candidate.index for candidate in ranked]
        assert all(store.chunks[candidate.index].chunk_id for candidate in ranked)

    def test_channel_limits(self, store, query_vector):
        ranked = DualChannelRanker(store, prose_limit=1, table_limit=1).rank(query_vector, store.indices())
        assert sorted(candidate.channel for candidate in ranked) == ["prose", "table"]

    def test_respects_narrowed_indices(self, store, query_vector):
        ranked = DualChannelRanker(store).rank(query_vector, [1, 3])
        assert {candidate.index for candidate in ranked} == {1, 3}

    def test_empty_store_is_fatal(self, query_vector):
        with pytest.raises(CorpusLoadError):
            DualChannelRanker(CorpusStore([], [])).rank(query_vector, [])
