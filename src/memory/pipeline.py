"""Memory pipeline: orchestrates extract -> store -> consolidate."""

import threading
from datetime import datetime
from typing import Optional

import structlog

from observability import metrics

from .batch import BatchCoordinator
from .consolidator import consolidate
from .conversations import chunked
from .errors import StoreUnavailable
from .extractor import MemoryExtractor
from .models import Profile, Turn
from .retriever import MemoryRetriever, extract_keywords
from .store import MemoryStore

logger = structlog.get_logger()


class MemoryPipeline:
    """Runs the ingest path and assembles prompt context for one store."""

    def __init__(
        self,
        store: MemoryStore,
        coordinator: BatchCoordinator | None = None,
        retriever: MemoryRetriever | None = None,
        batch_size: int = 10,
        context_limit: int = 5,
    ):
        self.store = store
        self.coordinator = coordinator or BatchCoordinator(MemoryExtractor())
        self.retriever = retriever or MemoryRetriever(store)
        self.batch_size = batch_size
        self.context_limit = context_limit

    def ingest(
        self,
        user_id: str,
        turns: list[Turn],
        cancel_event: Optional[threading.Event] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """Extract and persist turns chunk by chunk, then rebuild the profile.

        Each chunk is saved as soon as it is extracted, so a cancelled run keeps
        everything saved before the cancellation.

        Raises:
            StoreUnavailable: items or profile could not be persisted.
        """
        stats = {"turns": len(turns), "chunks": 0, "items_extracted": 0, "cancelled": False}
        base_id = self._next_conversation_id(user_id)

        for chunk_index, chunk in enumerate(chunked(turns, self.batch_size)):
            if cancel_event is not None and cancel_event.is_set():
                stats["cancelled"] = True
                break

            items = self.coordinator.extract_batch(
                chunk,
                starting_id=base_id + chunk_index * self.batch_size,
                cancel_event=cancel_event,
            )
            saved = self.store.save_items(user_id, items)
            metrics.counter("memory.items_stored", saved)
            stats["chunks"] += 1
            stats["items_extracted"] += len(items)
            logger.info(
                "memory.chunk_processed",
                user_id=user_id,
                chunk=chunk_index,
                turns=len(chunk),
                items=len(items),
            )

        if cancel_event is not None and cancel_event.is_set():
            stats["cancelled"] = True
            logger.info("memory.ingest_cancelled", user_id=user_id, **stats)
            return stats

        profile = self.rebuild_profile(user_id, now=now)
        stats["interests"] = len(profile.interests)
        logger.info("memory.ingest_complete", user_id=user_id, **stats)
        return stats

    def _next_conversation_id(self, user_id: str) -> int:
        """One past the highest numeric conversation id already stored."""
        stored = [
            int(item.conversation_id)
            for item in self.store.load_items(user_id)
            if item.conversation_id.isdigit()
        ]
        return max(stored) + 1 if stored else 0

    def rebuild_profile(self, user_id: str, now: Optional[datetime] = None) -> Profile:
        """Consolidate the stored corpus and overwrite the stored profile."""
        items = self.store.load_items(user_id)
        profile = consolidate(user_id, items, now=now)
        self.store.save_profile(profile)
        logger.info("memory.profile_rebuilt", user_id=user_id, items=len(items))
        return profile

    def build_prompt_context(
        self, user_id: str, keywords: list[str], now: Optional[datetime] = None
    ) -> str:
        """Profile summary plus relevant memories, ready for a chat prompt.

        Never raises: missing or unreadable memory yields "".
        """
        profile_text = ""
        try:
            profile = self.store.load_profile(user_id)
        except StoreUnavailable as e:
            logger.warning("memory.context.profile_unavailable", user_id=user_id, error=str(e))
            profile = None
        if profile is not None and not profile.is_empty():
            profile_text = "## User Profile\n\n" + profile.summary_text()

        memory_text = self.retriever.generate_context(
            user_id, keywords, limit=self.context_limit, now=now
        )
        return "\n\n".join(part for part in (profile_text, memory_text) if part)

    def context_for_message(
        self, user_id: str, message: str, now: Optional[datetime] = None
    ) -> str:
        """Prompt context for an incoming chat message, keyed on its salient words."""
        keywords = extract_keywords(message)
        logger.debug("memory.context.keywords", user_id=user_id, keywords=keywords)
        return self.build_prompt_context(user_id, keywords, now=now)
