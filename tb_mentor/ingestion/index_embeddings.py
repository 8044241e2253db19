"""Embed the chunk corpus into the parallel embeddings file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List

from openai import OpenAI

from tb_mentor.config import settings
from tb_mentor.models.chunk import Chunk
from tb_mentor.retrieval.corpus_store import load_chunks

logger = logging.getLogger(__name__)


def chunk_batches(items: Iterable[Chunk], batch_size: int) -> Iterable[List[Chunk]]:
    batch: List[Chunk] = []
    for item in items:
        batch.append(item)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def embed_batch(client: OpenAI, batch: List[Chunk], model: str) -> List[List[float]]:
    # The embeddings API rejects empty strings.
    texts = [chunk.embedding_text() or chunk.section_path or chunk.chunk_id or chunk.doc_id for chunk in batch]
    response = client.embeddings.create(model=model, input=texts)
    ordered = sorted(response.data, key=lambda item: item.index)
    return [list(item.embedding) for item in ordered]


def build_embeddings(
    chunks_path: Path,
    client: OpenAI,
    model: str,
    batch_size: int,
) -> List[List[float]]:
    vectors: List[List[float]] = []
    for batch in chunk_batches(load_chunks(chunks_path), batch_size):
        vectors.extend(embed_batch(client, batch, model))
        logger.info("Embedded %s chunks", len(vectors))
    return vectors


def write_embeddings(vectors: List[List[float]], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(vectors, handle)


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    chunks_path = settings.chunks_path_obj
    if not chunks_path.exists():
        logger.error("Chunk file %s does not exist.", chunks_path)
        return
    if not settings.openai_api_key:
        logger.error("OPENAI_API_KEY is not configured in the environment.")
        return

    client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
    vectors = build_embeddings(
        chunks_path, client, settings.openai_model_embedding, settings.embedding_batch_size
    )
    write_embeddings(vectors, settings.embeddings_path_obj)
    logger.info("Wrote %s embeddings to %s", len(vectors), settings.embeddings_path_obj)


if __name__ == "__main__":
    main()
