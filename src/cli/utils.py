"""Shared CLI utilities."""

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components(use_ai: bool = True, config_model=None):
    """Initialize all memory components from config.

    Args:
        use_ai: If False, skip the LLM provider and run rule-based extraction only
        config_model: Pre-loaded MemoryEngineConfig (loaded from disk when None)
    """
    from cli.config import load_config_model
    from llm import LLMError, provider_from_config
    from memory import (
        BatchCoordinator,
        MemoryExtractor,
        MemoryPipeline,
        MemoryRetriever,
        SQLiteMemoryStore,
    )

    config = config_model or load_config_model()

    provider = None
    use_primary = use_ai and config.extraction.use_primary
    if use_primary:
        try:
            provider = provider_from_config(config.llm)
        except LLMError as e:
            logger.warning("memory.llm_unavailable", error=str(e))
            console.print(f"[yellow]LLM unavailable, using rule-based extraction:[/] {e}")
            use_primary = False

    store = SQLiteMemoryStore(config.paths.db_path)
    extractor = MemoryExtractor(
        provider=provider,
        use_primary=use_primary,
        max_tokens=config.llm.max_tokens,
        max_turn_chars=config.extraction.max_turn_chars,
        retry_attempts=config.retry.max_attempts,
        retry_min_wait=config.retry.min_wait,
        retry_max_wait=config.retry.max_wait,
    )
    coordinator = BatchCoordinator(extractor, pacing_delay=config.extraction.pacing_delay)
    retriever = MemoryRetriever(
        store,
        relevance_weight=config.retrieval.relevance_weight,
        decay_days=config.retrieval.recency_decay_days,
        context_min_importance=config.retrieval.context_min_importance,
    )
    pipeline = MemoryPipeline(
        store,
        coordinator=coordinator,
        retriever=retriever,
        batch_size=config.extraction.batch_size,
        context_limit=config.retrieval.context_limit,
    )

    return {
        "config": config,
        "store": store,
        "extractor": extractor,
        "coordinator": coordinator,
        "retriever": retriever,
        "pipeline": pipeline,
    }
