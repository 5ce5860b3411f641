"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match the delegation behavior (3 retries, 30s timeout, ...)

Collaborators:
  - container.py: reads settings for backend selection
  - application/usecases: builds TaskOptions from settings
  - crosscutting/logger.py: log level and format

Constraints:
  - No business logic, configuration only

Notes:
  - Uses pydantic-settings for env parsing and validation
  - Singleton via lru_cache
  - Durations are milliseconds, like the option names of the public API
  - FRAGDELEGATE_ENV_FILE picks the dotenv file; empty disables it
"""

import os
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

FRAGMENT_MODES = frozenset({"semantic", "simple"})
MERGE_STRATEGIES = frozenset({"simple", "comprehensive", "prioritized", "consensus"})


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        log_level: Logging level name (default: INFO)
        log_json: Emit JSON logs (default: True)
        fake_llm: Use the deterministic fake backend (no network)
        ollama_endpoint: Base URL of the Ollama-compatible server
        default_model: Model used for the single-call fallback
        fragment_mode: semantic | simple (default: semantic)
        max_tokens_per_fragment: Estimated token budget per fragment (default: 2048)
        merge_strategy: simple | comprehensive | prioritized | consensus
        concurrency_limit: Fragments executed simultaneously (default: 3)
        max_retries: Backend attempts per fragment (default: 3)
        timeout_ms: Timeout per backend call (default: 30000)
        retry_backoff_ms: Linear backoff unit between attempts (default: 1000)
        inter_batch_pause_ms: Pause between concurrent batches (default: 1000)
        connectivity_timeout_ms: Timeout per connectivity probe (default: 10000)
    """

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Backend
    fake_llm: bool = False
    ollama_endpoint: str = "http://localhost:11434"
    default_model: str = "llama3.2"

    # Fragmentation
    fragment_mode: str = "semantic"
    max_tokens_per_fragment: int = 2048

    # Dispatch / merge
    merge_strategy: str = "comprehensive"
    concurrency_limit: int = 3
    max_retries: int = 3
    timeout_ms: int = 30000
    retry_backoff_ms: int = 1000
    inter_batch_pause_ms: int = 1000
    connectivity_timeout_ms: int = 10000

    @field_validator("fragment_mode")
    @classmethod
    def fragment_mode_valid(cls, v: str) -> str:
        mode = (v or "semantic").strip().lower()
        if mode not in FRAGMENT_MODES:
            raise ValueError("fragment_mode must be semantic or simple")
        return mode

    @field_validator("merge_strategy")
    @classmethod
    def merge_strategy_valid(cls, v: str) -> str:
        strategy = (v or "comprehensive").strip().lower()
        if strategy not in MERGE_STRATEGIES:
            raise ValueError(
                "merge_strategy must be simple, comprehensive, prioritized or consensus"
            )
        return strategy

    @field_validator(
        "max_tokens_per_fragment", "concurrency_limit", "max_retries", "timeout_ms"
    )
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("retry_backoff_ms", "inter_batch_pause_ms")
    @classmethod
    def must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    model_config = SettingsConfigDict(
        env_file=os.getenv("FRAGDELEGATE_ENV_FILE", ".env") or None,
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
