"""Shared fixtures: a tiny in-memory corpus with hand-picked vectors."""

from typing import Any, Dict, Optional

import pytest

from tb_mentor.models.chunk import Chunk
from tb_mentor.retrieval.corpus_store import CorpusStore

MONITORING_SECTION = "Chapter 4 | Drug-Resistant TB | Monitoring 5.2"


def make_chunk(chunk_id: Optional[str], **overrides: Any) -> Chunk:
    fields: Dict[str, Any] = {
        "doc_id": "tb_handbook_module4_treatment",
        "chunk_id": chunk_id,
        "section_path": "",
        "content_type": "text",
        "text": f"Passage {chunk_id}",
    }
    fields.update(overrides)
    return Chunk(**fields)


@pytest.fixture
def corpus_chunks():
    return [
        make_chunk(
            "c-0",
            section_path=MONITORING_SECTION,
            text="For patients receiving bedaquiline, monitor ECG and liver function.",
        ),
        make_chunk(
            "c-1",
            doc_id="module3_diagnosis",
            section_path="Diagnosis | Xpert algorithm 2.5.2",
            text="Use a WHO-recommended rapid diagnostic test.",
        ),
        make_chunk(
            "t-2",
            section_path=MONITORING_SECTION,
            content_type="table",
            text="",
            caption="Monitoring schedule for bedaquiline",
        ),
        make_chunk(
            "c-3",
            doc_id="pediatric_handbook",
            section_path="Children | Dosing",
            text="Weight-band dosing for children.",
        ),
    ]


@pytest.fixture
def corpus_vectors():
    return [
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.2, 0.0, 0.98, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ]


@pytest.fixture
def store(corpus_chunks, corpus_vectors):
    return CorpusStore(corpus_chunks, corpus_vectors)


@pytest.fixture
def query_vector():
    return [1.0, 0.0, 0.0, 0.0]
