"""Application configuration loaded from environment variables."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    openai_api_key: Optional[str] = Field(
        default=None, description="Secret key for OpenAI APIs."
    )
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_embedding: str = "text-embedding-3-large"
    openai_timeout_seconds: float = 30.0

    rag_dir: str = "public/rag"
    chunks_file: str = "chunks.jsonl"
    embeddings_file: str = "embeddings.json"

    default_top_k: int = 8
    max_top_k: int = 8
    anchor_count: int = 10
    prose_channel_limit: int = 10
    table_channel_limit: int = 5
    table_boost_ratio: float = 0.98
    embedding_batch_size: int = 64

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def rag_dir_path(self) -> Path:
        return Path(self.rag_dir)

    @property
    def chunks_path_obj(self) -> Path:
        return self.rag_dir_path / self.chunks_file

    @property
    def embeddings_path_obj(self) -> Path:
        return self.rag_dir_path / self.embeddings_file


settings = Settings()
