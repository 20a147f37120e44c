"""Multi-provider LLM abstraction layer."""

from .base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError
from .factory import create_cheap_provider, create_llm_provider, provider_from_config

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "create_cheap_provider",
    "provider_from_config",
    "LLMError",
    "LLMRateLimitError",
    "LLMAuthError",
]
