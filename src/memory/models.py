"""Data models for conversational long-term memory."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MemoryKind(str, Enum):
    FACT = "fact"
    PREFERENCE = "preference"
    EMOTION = "emotion"
    GOAL = "goal"
    RELATIONSHIP = "relationship"
    SKILL = "skill"
    QUESTION = "question"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


# Static weight assigned at extraction time
IMPORTANCE = {
    MemoryKind.FACT: 0.7,
    MemoryKind.PREFERENCE: 0.8,
    MemoryKind.EMOTION: 0.6,
    MemoryKind.GOAL: 0.9,
    MemoryKind.RELATIONSHIP: 0.9,
    MemoryKind.SKILL: 0.5,
    MemoryKind.QUESTION: 0.5,
}


def ensure_utc(dt: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted) into aware UTC.

    Raises:
        ValueError: value is not a recognisable ISO-8601 timestamp.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def _unique(values) -> tuple[str, ...]:
    seen = []
    for v in values or ():
        if v not in seen:
            seen.append(v)
    return tuple(seen)


@dataclass(frozen=True)
class Turn:
    """One user/assistant exchange from the conversation source."""

    user_text: str
    assistant_text: str
    timestamp: datetime

    @classmethod
    def from_dict(cls, data: dict) -> "Turn":
        """Build a turn from a raw conversation record.

        Accepts ``user``/``user_text`` and ``assistant``/``assistant_text``/``moxie``.
        Raises ValueError when the timestamp is missing or unparseable.
        """
        user_text = data.get("user_text", data.get("user")) or ""
        assistant_text = (
            data.get("assistant_text", data.get("assistant", data.get("moxie"))) or ""
        )
        return cls(
            user_text=str(user_text),
            assistant_text=str(assistant_text),
            timestamp=parse_timestamp(data.get("timestamp")),
        )

    def is_complete(self) -> bool:
        return bool(self.user_text.strip()) and bool(self.assistant_text.strip())


@dataclass(frozen=True)
class MemoryItem:
    """One atomic fact distilled from a conversation turn. Immutable."""

    conversation_id: str
    timestamp: datetime
    kind: MemoryKind
    content: str
    topics: tuple[str, ...] = ()
    entities: tuple[str, ...] = ()
    sentiment: Sentiment = Sentiment.NEUTRAL
    importance: float = 0.5

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "kind", MemoryKind(self.kind))
        object.__setattr__(self, "sentiment", Sentiment(self.sentiment))
        object.__setattr__(self, "topics", _unique(self.topics))
        object.__setattr__(self, "entities", _unique(self.entities))
        if not 0.0 <= self.importance <= 1.0:
            raise ValueError(f"importance must be in [0, 1], got {self.importance}")


@dataclass
class Query:
    """Retrieval request. Empty ``kinds`` means no kind filter."""

    keywords: list[str] = field(default_factory=list)
    time_range: Optional[tuple[datetime, datetime]] = None
    kinds: set[MemoryKind] = field(default_factory=set)
    min_importance: float = 0.0
    limit: int = 10


@dataclass
class ScoredMemory:
    item: MemoryItem
    relevance_score: float
    recency_score: float
    combined_score: float


class EmotionalProfile(BaseModel):
    dominant_emotions: list[Sentiment] = Field(default_factory=list)
    triggers: dict[str, Sentiment] = Field(default_factory=dict)


class ConversationPatterns(BaseModel):
    common_topics: dict[str, int] = Field(default_factory=dict)
    average_conversation_length: float = 0.0
    question_types: list[str] = Field(default_factory=list)


class Profile(BaseModel):
    """Consolidated long-lived summary of one user ("frontal cortex")."""

    user_id: str
    core_facts: dict[str, str] = Field(default_factory=dict)
    preferences: dict[str, str] = Field(default_factory=dict)
    relationships: dict[str, str] = Field(default_factory=dict)
    goals: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    emotional_profile: EmotionalProfile = Field(default_factory=EmotionalProfile)
    conversation_patterns: ConversationPatterns = Field(default_factory=ConversationPatterns)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_empty(self) -> bool:
        return not any(
            [
                self.core_facts,
                self.preferences,
                self.relationships,
                self.goals,
                self.skills,
                self.interests,
            ]
        )

    def summary_text(self) -> str:
        """Prompt-ready rendering. Empty sections are omitted."""
        sections = []
        if self.core_facts:
            sections.append(
                "[CORE FACTS]\n" + "\n".join(f"- {v}" for v in self.core_facts.values())
            )
        if self.preferences:
            sections.append(
                "[PREFERENCES]\n" + "\n".join(f"- {v}" for v in self.preferences.values())
            )
        if self.relationships:
            sections.append(
                "[IMPORTANT PEOPLE]\n"
                + "\n".join(f"- {name}: {text}" for name, text in self.relationships.items())
            )
        if self.goals:
            sections.append("[GOALS]\n" + "\n".join(f"- {g}" for g in self.goals))
        if self.skills:
            sections.append("[SKILLS]\n" + "\n".join(f"- {s}" for s in self.skills))
        if self.interests:
            sections.append("[INTERESTS]\n" + ", ".join(self.interests))
        return "\n\n".join(sections)
