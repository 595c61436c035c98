"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # LLM Provider: "gemini" (REST with API key) or "ollama" (local)
    llm_provider: str = "ollama"

    # Paths
    data_dir: Path = Path("data")
    index_dir: Path = Path("data/indices")
    # Rule tables ship as package data; override to load a custom set
    rules_dir: Path | None = None

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.0

    # Ollama
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # Provider timeouts (seconds); the core never retries
    llm_timeout_seconds: float = 60.0

    # Embeddings
    embedding_model: str = "paraphrase-multilingual-MiniLM-L12-v2"
    embedding_dimension: int = 384

    # Search
    search_default_limit: int = 8
    keyword_match_cap: int = 5
    vector_score_threshold: float = 0.7
    slow_search_ms: float = 500.0
    cache_key_prefix_length: int = 10
    routing_default_boost: float = 3.0

    # Cache
    cache_max_size: int = 5000
    search_cache_ttl: int = 3600
    embedding_cache_ttl: int = 604800

    # Before this date an unrouted query defaults to the 2025 edition
    version_cutoff_date: date = date(2026, 1, 1)

    # Intent confidence (bounded, monotonic in cue count)
    intent_confidence_base: float = 0.5
    intent_confidence_step: float = 0.1
    intent_confidence_cap: float = 0.9
    intent_exclusive_confidence: float = 0.95

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_rate_limit_rpm: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
