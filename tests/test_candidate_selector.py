"""Unit tests for scope / document-hint candidate filtering."""

from conftest import make_chunk

from tb_mentor.retrieval.candidate_selector import (
    build_doc_hint_tokens,
    chunk_matches_scope,
    filter_by_document_hint,
    filter_by_scope,
    select_candidates,
)


class TestScopeFilter:
    def test_explicit_chunk_scope_is_exact(self):
        chunk = make_chunk("a", scope="Treatment", section_path="Diagnosis | Xpert")
        assert chunk_matches_scope(chunk, "treatment")
        assert not chunk_matches_scope(chunk, "diagnosis")

    def test_diagnosis_heuristics(self):
        assert chunk_matches_scope(make_chunk("a", doc_id="who_diag_module"), "diagnosis")
        assert chunk_matches_scope(make_chunk("b", section_path="CXR reading"), "diagnosis")
        assert not chunk_matches_scope(make_chunk("c", doc_id="handbook", section_path="Regimens"), "diagnosis")

    def test_drug_safety_heuristics(self):
        assert chunk_matches_scope(make_chunk("a", section_path="Active drug safety monitoring"), "drug-safety")
        assert not chunk_matches_scope(make_chunk("b", section_path="Case finding"), "drug-safety")

    def test_pediatric_heuristics(self):
        assert chunk_matches_scope(make_chunk("a", doc_id="child_tb_handbook"), "pediatrics")
        assert chunk_matches_scope(make_chunk("b", section_path="Adolescents"), "pediatrics")

    def test_unknown_scope_passes_everything(self, corpus_chunks):
        indices = list(range(len(corpus_chunks)))
        assert filter_by_scope(indices, corpus_chunks, "comorbidities") == indices
        assert filter_by_scope(indices, corpus_chunks, "made-up") == indices

    def test_no_scope(self, corpus_chunks):
        assert filter_by_scope([0, 1], corpus_chunks, None) == [0, 1]


class TestDocumentHint:
    def test_tokens(self):
        assert build_doc_hint_tokens("  Module 3 Diagnosis ") == [
            "module 3 diagnosis",
            "module3diagnosis",
            "module_3_diagnosis",
        ]

    def test_tokens_empty(self):
        assert build_doc_hint_tokens(None) == []
        assert build_doc_hint_tokens("   ") == []

    def test_matches_doc_id_and_title(self):
        chunks = [
            make_chunk("a", doc_id="module3_diagnosis"),
            make_chunk("b", doc_id="x", guideline_title="WHO Module 4: treatment"),
            make_chunk("c", doc_id="other"),
        ]
        assert filter_by_document_hint([0, 1, 2], chunks, "module3_diagnosis") == [0]
        assert filter_by_document_hint([0, 1, 2], chunks, "module 4") == [1]


class TestSelectCandidates:
    def test_scope_then_hint(self, corpus_chunks):
        indices = list(range(len(corpus_chunks)))
        assert select_candidates(indices, corpus_chunks, scope="drug-safety") == [0, 2]

    def test_scope_fallback_when_nothing_matches(self):
        chunks = [
            make_chunk("a", doc_id="adult_handbook", section_path="Regimens"),
            make_chunk("b", doc_id="adult_handbook", section_path="Diagnosis"),
        ]
        assert select_candidates([0, 1], chunks, scope="pediatrics") == [0, 1]

    def test_hint_fallback_keeps_scoped_set(self, corpus_chunks):
        indices = list(range(len(corpus_chunks)))
        selected = select_candidates(indices, corpus_chunks, scope="drug-safety", document_hint="no_such_module")
        assert selected == [0, 2]

    def test_hint_narrows(self, corpus_chunks):
        indices = list(range(len(corpus_chunks)))
        assert select_candidates(indices, corpus_chunks, document_hint="module3_diagnosis") == [1]
