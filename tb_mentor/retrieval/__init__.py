"""Retrieval stack utilities."""

from .candidate_selector import select_candidates
from .corpus_store import CorpusStore, get_corpus_store
from .embedder import OpenAIEmbeddingClient
from .query_classifier import classify_query
from .ranker import DualChannelRanker

__all__ = [
    "CorpusStore",
    "DualChannelRanker",
    "OpenAIEmbeddingClient",
    "classify_query",
    "get_corpus_store",
    "select_candidates",
]
