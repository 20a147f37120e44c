"""Consolidation: full-corpus rebuild of a user's profile ("frontal cortex").

Consolidation is a pure function of the item corpus. Running it twice on the
same items yields the same profile apart from ``last_updated``; map keys are
derived from item content rather than generated randomly.
"""

import hashlib
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from .models import (
    ConversationPatterns,
    EmotionalProfile,
    MemoryItem,
    MemoryKind,
    Profile,
)

QUESTION_TYPES = ("why", "how", "what", "when", "where", "who")
MIN_INTEREST_COUNT = 2

# "user" or "user's" as a whole word; "username" is left intact
_USER_WORD = re.compile(r"\buser(?:'s)?\b\s*", re.IGNORECASE)


def _opaque_id(kind: MemoryKind, position: int, content: str) -> str:
    digest = hashlib.sha1(f"{kind.value}:{position}:{content}".encode()).hexdigest()
    return digest[:16]


def _strip_user(content: str) -> str:
    return _USER_WORD.sub("", content).strip()


def _topic_counts(items: list[MemoryItem]) -> Counter:
    counts: Counter = Counter()
    for item in items:
        counts.update(item.topics)
    return counts


def consolidate(
    user_id: str, items: list[MemoryItem], now: Optional[datetime] = None
) -> Profile:
    """Fold the full item corpus into a fresh profile."""
    profile = Profile(user_id=user_id, last_updated=now or datetime.now(timezone.utc))

    for position, item in enumerate(items):
        if item.kind == MemoryKind.FACT and "user" in item.content.lower():
            profile.core_facts[_opaque_id(item.kind, position, item.content)] = _strip_user(
                item.content
            )
        elif item.kind == MemoryKind.PREFERENCE:
            profile.preferences[_opaque_id(item.kind, position, item.content)] = item.content
        elif item.kind == MemoryKind.RELATIONSHIP and item.entities:
            # Last writer wins per entity
            profile.relationships[item.entities[0]] = item.content
        elif item.kind == MemoryKind.GOAL:
            profile.goals.append(item.content)
        elif item.kind == MemoryKind.SKILL:
            profile.skills.append(item.content)

    topic_counts = _topic_counts(items)
    # most_common keeps first-seen order among equal counts
    profile.interests = [
        topic for topic, count in topic_counts.most_common() if count >= MIN_INTEREST_COUNT
    ]

    profile.emotional_profile = _emotional_profile(items)
    profile.conversation_patterns = _conversation_patterns(items, topic_counts)
    return profile


def _emotional_profile(items: list[MemoryItem]) -> EmotionalProfile:
    emotions = [i for i in items if i.kind == MemoryKind.EMOTION]
    sentiment_counts = Counter(e.sentiment for e in emotions)

    triggers = {}
    for emotion in emotions:
        for topic in emotion.topics:
            # Later emotions override earlier associations
            triggers[topic] = emotion.sentiment

    return EmotionalProfile(
        dominant_emotions=[s for s, _ in sentiment_counts.most_common()],
        triggers=triggers,
    )


def _conversation_patterns(items: list[MemoryItem], topic_counts: Counter) -> ConversationPatterns:
    conversation_ids = {i.conversation_id for i in items}
    average = len(items) / len(conversation_ids) if conversation_ids else 0.0

    found = set()
    for question in (i for i in items if i.kind == MemoryKind.QUESTION):
        content = question.content.lower()
        found.update(q for q in QUESTION_TYPES if q in content)

    return ConversationPatterns(
        common_topics=dict(topic_counts),
        average_conversation_length=average,
        question_types=[q for q in QUESTION_TYPES if q in found],
    )
