"""Rule-based memory extraction, used when the LLM path is unavailable."""

import re
import string
from datetime import datetime

from .models import IMPORTANCE, MemoryItem, MemoryKind
from .sentiment import EMOTION_KEYWORDS

PREFERENCE_MARKERS = ("i like", "i love", "i prefer")
GOAL_MARKERS = ("i want to", "i need to", "i hope to")
RELATIONSHIP_MARKERS = ("my mom", "my dad", "my sister", "my brother", "my friend")

# "i really like", "i just want to" count as the bare marker
_INTENSIFIERS = ("really", "just", "also", "totally", "so", "do", "still")


def _marker_pattern(markers: tuple[str, ...]) -> re.Pattern:
    verbs = "|".join(re.escape(m[len("i "):]) for m in markers)
    adverbs = "|".join(re.escape(a) for a in _INTENSIFIERS)
    return re.compile(rf"\bi(?:\s+(?:{adverbs}))*\s+(?:{verbs})")


_PREFERENCE_RE = _marker_pattern(PREFERENCE_MARKERS)
_GOAL_RE = _marker_pattern(GOAL_MARKERS)


def has_marker(lower: str, markers: tuple[str, ...], pattern: re.Pattern) -> bool:
    return any(m in lower for m in markers) or bool(pattern.search(lower))

COMMON_TOPICS = (
    "dinosaurs",
    "space",
    "animals",
    "music",
    "art",
    "reading",
    "games",
    "school",
    "friends",
    "family",
    "sports",
    "food",
    "nature",
)


def extract_topics(text: str) -> list[str]:
    """Common topic tags mentioned anywhere in text."""
    lower = text.lower()
    return [t for t in COMMON_TOPICS if t in lower]


def extract_entities(text: str) -> list[str]:
    """Capitalised whitespace-delimited tokens of length >= 2."""
    entities = []
    for token in text.split():
        word = token.strip(string.punctuation)
        if len(word) >= 2 and word[0].isupper():
            entities.append(word)
    return entities


def extract_rule_based(
    user_text: str, conversation_id: str, timestamp: datetime
) -> list[MemoryItem]:
    """At most one item per category: preference, emotion, goal, relationship."""
    lower = user_text.lower()
    items: list[MemoryItem] = []

    def _item(kind: MemoryKind, **kwargs) -> MemoryItem:
        return MemoryItem(
            conversation_id=conversation_id,
            timestamp=timestamp,
            kind=kind,
            content=user_text,
            importance=IMPORTANCE[kind],
            **kwargs,
        )

    if has_marker(lower, PREFERENCE_MARKERS, _PREFERENCE_RE):
        items.append(_item(MemoryKind.PREFERENCE, topics=tuple(extract_topics(user_text))))

    for keyword, sentiment in EMOTION_KEYWORDS.items():
        if keyword in lower:
            items.append(_item(MemoryKind.EMOTION, sentiment=sentiment))
            break

    if has_marker(lower, GOAL_MARKERS, _GOAL_RE):
        items.append(_item(MemoryKind.GOAL))

    for marker in RELATIONSHIP_MARKERS:
        if marker in lower:
            items.append(
                _item(MemoryKind.RELATIONSHIP, entities=tuple(extract_entities(user_text)))
            )
            break

    return items
