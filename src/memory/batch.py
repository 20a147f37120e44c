"""Batch extraction over many turns with per-turn failure isolation."""

import threading
import time
from typing import Callable, Optional

import structlog

from observability import metrics

from .extractor import MemoryExtractor
from .models import MemoryItem, Turn

logger = structlog.get_logger()


class BatchCoordinator:
    """Drives the extractor over a sequence of turns.

    A failing turn is logged and skipped; it never aborts the rest of the batch.
    """

    def __init__(
        self,
        extractor: MemoryExtractor,
        pacing_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.extractor = extractor
        self.pacing_delay = pacing_delay
        self._sleep = sleep

    @property
    def paced(self) -> bool:
        """True when turns go through the network-backed extraction path."""
        return bool(getattr(self.extractor, "use_primary", False)) and self.pacing_delay > 0

    def extract_batch(
        self,
        turns: list[Turn],
        starting_id: int = 0,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[MemoryItem]:
        """Extract all turns in order. conversation_id = starting_id + index."""
        all_items: list[MemoryItem] = []
        failed = 0

        for index, turn in enumerate(turns):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("memory.batch_cancelled", processed=index, total=len(turns))
                break

            if index > 0 and self.paced:
                self._sleep(self.pacing_delay)

            conversation_id = str(starting_id + index)
            try:
                items = self.extractor.extract(turn, conversation_id)
            except Exception as e:
                failed += 1
                metrics.counter("memory.batch.turn_failed")
                logger.warning(
                    "memory.batch_turn_failed", conversation_id=conversation_id, error=str(e)
                )
                continue
            all_items.extend(items)

        logger.debug(
            "memory.batch_complete",
            turns=len(turns),
            items=len(all_items),
            failed=failed,
        )
        return all_items
