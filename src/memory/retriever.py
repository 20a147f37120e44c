"""Relevance + recency ranking over stored memories."""

import math
import string
from datetime import datetime, timezone
from typing import Optional

import structlog

from .errors import StoreUnavailable
from .models import MemoryItem, Query, ScoredMemory, ensure_utc
from .store import MemoryStore

logger = structlog.get_logger()

# Points per keyword by where it matches
CONTENT_POINTS = 3
TOPIC_POINTS = 2
ENTITY_POINTS = 1

STOPWORDS = frozenset(
    "the a an is are was were to of and or but in on at by for with about as from "
    "i you me my your".split()
)
MAX_MESSAGE_KEYWORDS = 5


def extract_keywords(text: str, limit: int = MAX_MESSAGE_KEYWORDS) -> list[str]:
    """Recall keywords from a raw chat message.

    Lowercased words with surrounding punctuation trimmed, minus stopwords and
    words of two characters or fewer, first ``limit`` in message order.
    """
    words = (word.strip(string.punctuation) for word in text.lower().split())
    keywords = [w for w in words if len(w) > 2 and w not in STOPWORDS]
    return keywords[:limit]


def relevance_score(item: MemoryItem, keywords: list[str]) -> float:
    """Keyword overlap against content, topics, entities, normalised to [0, 1].

    Content substring = 3, exact topic = 2, exact entity = 1 (case-insensitive),
    divided by 3 * len(keywords). Blank keywords are ignored; no keywords -> 1.0.
    """
    keywords = [k.strip() for k in keywords if k.strip()]
    if not keywords:
        return 1.0

    content = item.content.lower()
    topics = {t.lower() for t in item.topics}
    entities = {e.lower() for e in item.entities}

    points = 0
    for keyword in keywords:
        kw = keyword.lower()
        if kw in content:
            points += CONTENT_POINTS
        if kw in topics:
            points += TOPIC_POINTS
        if kw in entities:
            points += ENTITY_POINTS

    return min(1.0, points / (CONTENT_POINTS * len(keywords)))


def recency_score(timestamp: datetime, now: datetime, decay_days: float = 30.0) -> float:
    """exp(-days_since / decay_days). Future timestamps score 1.0."""
    days = (ensure_utc(now) - ensure_utc(timestamp)).total_seconds() / 86400
    return math.exp(-max(0.0, days) / decay_days)


def time_ago(timestamp: datetime, now: datetime) -> str:
    """Relative phrasing for prompt context ("3 days ago")."""
    seconds = (ensure_utc(now) - ensure_utc(timestamp)).total_seconds()
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = int(seconds // size)
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"


class MemoryRetriever:
    """Scores and ranks a user's memories for prompt-time recall."""

    def __init__(
        self,
        store: MemoryStore,
        relevance_weight: float = 0.7,
        decay_days: float = 30.0,
        context_min_importance: float = 0.5,
    ):
        self.store = store
        self.relevance_weight = relevance_weight
        self.decay_days = decay_days
        self.context_min_importance = context_min_importance

    def query(
        self, user_id: str, q: Query, now: Optional[datetime] = None
    ) -> list[ScoredMemory]:
        """Top ``q.limit`` memories by combined score.

        Ties on combined score go to the more recent memory, then corpus order.
        A store failure degrades to an empty result.
        """
        now = now or datetime.now(timezone.utc)
        try:
            corpus = self.store.load_items(user_id)
        except StoreUnavailable as e:
            logger.warning("memory.retrieve.store_unavailable", user_id=user_id, error=str(e))
            return []

        scored = []
        for item in self._filter(corpus, q):
            relevance = relevance_score(item, q.keywords)
            recency = recency_score(item.timestamp, now, self.decay_days)
            combined = self.relevance_weight * relevance + (1 - self.relevance_weight) * recency
            scored.append(
                ScoredMemory(
                    item=item,
                    relevance_score=relevance,
                    recency_score=recency,
                    combined_score=combined,
                )
            )

        # sorted() is stable, so corpus order is the final tie-break
        scored = sorted(
            scored,
            key=lambda s: (s.combined_score, s.item.timestamp),
            reverse=True,
        )
        return scored[: max(0, q.limit)]

    @staticmethod
    def _filter(items: list[MemoryItem], q: Query) -> list[MemoryItem]:
        if q.time_range:
            start, end = (ensure_utc(t) for t in q.time_range)
            items = [i for i in items if start <= i.timestamp <= end]
        if q.kinds:
            items = [i for i in items if i.kind in q.kinds]
        return [i for i in items if i.importance >= q.min_importance]

    def generate_context(
        self,
        user_id: str,
        keywords: list[str],
        limit: int = 5,
        now: Optional[datetime] = None,
    ) -> str:
        """Numbered, prompt-ready block of relevant memories; "" when none qualify."""
        now = now or datetime.now(timezone.utc)
        results = self.query(
            user_id,
            Query(keywords=list(keywords), min_importance=self.context_min_importance, limit=limit),
            now=now,
        )
        if not results:
            return ""

        lines = ["## Relevant Past Conversations", ""]
        for index, result in enumerate(results, start=1):
            item = result.item
            lines.append(f"{index}. [{item.kind.value}] {item.content}")
            if item.topics:
                lines.append(f"   Topics: {', '.join(item.topics)}")
            lines.append(f"   ({time_ago(item.timestamp, now)})")
            lines.append("")
        return "\n".join(lines)
