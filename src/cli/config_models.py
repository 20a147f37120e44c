"""Pydantic configuration models for the companion memory engine."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"auto", "claude", "openai", "gemini"}


class LLMConfig(BaseModel):
    """LLM provider configuration for primary extraction."""

    provider: str = "auto"
    model: Optional[str] = None  # None = provider's cheap-tier default
    api_key: Optional[str] = None
    timeout: float = 30.0
    max_tokens: int = 800

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout must be positive, got {v}")
        return v


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/.companion-memory/memory.db")
    log_file: Optional[Path] = Path("~/.companion-memory/memory.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db_path = self.db_path.expanduser()
        if self.log_file:
            self.log_file = self.log_file.expanduser()
        return self


class ExtractionConfig(BaseModel):
    """Extraction and batching configuration."""

    use_primary: bool = True
    pacing_delay: float = 0.1
    batch_size: int = 10
    max_turn_chars: int = 3000

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"batch_size must be >= 1, got {v}")
        return v

    @field_validator("pacing_delay")
    @classmethod
    def validate_pacing(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"pacing_delay must be >= 0, got {v}")
        return v


class RetrievalConfig(BaseModel):
    """Recall ranking configuration."""

    default_limit: int = 10
    context_limit: int = 5
    context_min_importance: float = 0.5
    recency_decay_days: float = 30.0
    relevance_weight: float = 0.7

    @field_validator("relevance_weight", "context_min_importance")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"value must be 0-1, got {v}")
        return v

    @field_validator("recency_decay_days")
    @classmethod
    def validate_decay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"recency_decay_days must be positive, got {v}")
        return v


class RetryConfig(BaseModel):
    """Retry/backoff configuration for rate-limited LLM calls."""

    max_attempts: int = 3
    min_wait: float = 2.0
    max_wait: float = 30.0


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file_level: str = "DEBUG"
    json_mode: bool = False

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class MemoryEngineConfig(BaseModel):
    """Main configuration model."""

    user_id: str = "default"
    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in the API key."""
        if self.llm.api_key:
            key = self.llm.api_key
            if key.startswith("${") and key.endswith("}"):
                env_var = key[2:-1]
                self.llm.api_key = os.getenv(env_var, "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryEngineConfig":
        return cls.model_validate(data)
