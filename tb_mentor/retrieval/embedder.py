"""Async client that embeds clinician questions via the OpenAI embeddings API."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from openai import APIError, APIStatusError, AsyncOpenAI

from tb_mentor.config import settings
from tb_mentor.errors import UpstreamEmbeddingError
from tb_mentor.retrieval.similarity import l2_normalize

logger = logging.getLogger(__name__)


class OpenAIEmbeddingClient:
    """Lazily initializes the async OpenAI Python SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise UpstreamEmbeddingError("OPENAI_API_KEY is not set")
        self.model = model or settings.openai_model_embedding
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or settings.openai_base_url,
            timeout=settings.openai_timeout_seconds,
            max_retries=0,
        )

    async def embed_query(self, question: str) -> np.ndarray:
        """Return the L2-normalized embedding of ``question``."""
        try:
            response = await self.client.embeddings.create(model=self.model, input=question)
        except APIStatusError as exc:
            raise UpstreamEmbeddingError(exc.message, upstream_status=exc.status_code) from exc
        except APIError as exc:
            raise UpstreamEmbeddingError(f"OpenAI embeddings request failed: {exc}") from exc
        if not response.data:
            raise UpstreamEmbeddingError("OpenAI embeddings response contained no vectors.")
        vector = l2_normalize(response.data[0].embedding)
        logger.debug("Query embedding length: %s", vector.size)
        return vector
