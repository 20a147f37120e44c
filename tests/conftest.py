"""Shared test fixtures for the companion memory engine."""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_metrics():
    from observability import metrics

    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def now():
    return T0


@pytest.fixture
def make_turn():
    """Factory for conversation turns."""
    from memory.models import Turn

    def _make(user="I like space", assistant="Space is great!", timestamp=T0):
        return Turn(user_text=user, assistant_text=assistant, timestamp=timestamp)

    return _make


@pytest.fixture
def make_item():
    """Factory for memory items with sensible defaults."""
    from memory.models import MemoryItem, MemoryKind, Sentiment

    def _make(
        content="User likes space",
        kind=MemoryKind.PREFERENCE,
        conversation_id="0",
        timestamp=T0,
        topics=(),
        entities=(),
        sentiment=Sentiment.NEUTRAL,
        importance=0.8,
    ):
        return MemoryItem(
            conversation_id=conversation_id,
            timestamp=timestamp,
            kind=kind,
            content=content,
            topics=tuple(topics),
            entities=tuple(entities),
            sentiment=sentiment,
            importance=importance,
        )

    return _make


@pytest.fixture
def provider():
    """LLM provider double returning an empty extraction payload."""
    mock = MagicMock()
    mock.generate.return_value = json.dumps(
        {
            "facts": [],
            "preferences": [],
            "emotions": [],
            "topics": [],
            "entities": [],
            "questions": [],
            "goals": [],
        }
    )
    return mock


@pytest.fixture
def memory_store():
    from memory.store import InMemoryStore

    return InMemoryStore()


@pytest.fixture
def sqlite_store(tmp_path):
    from memory.store import SQLiteMemoryStore

    return SQLiteMemoryStore(tmp_path / "memory.db")


@pytest.fixture
def conversation_file(tmp_path):
    """Exported conversation with three turns, one day apart."""
    records = [
        {
            "user": "I really like dinosaurs and space",
            "moxie": "That's awesome!",
            "timestamp": (T0 - timedelta(days=2)).isoformat(),
        },
        {
            "user": "My friend Sam is scared of the dark",
            "moxie": "Lots of people are.",
            "timestamp": (T0 - timedelta(days=1)).isoformat(),
        },
        {
            "user": "I want to be an astronaut",
            "moxie": "You can do it!",
            "timestamp": T0.isoformat().replace("+00:00", "Z"),
        },
    ]
    path = tmp_path / "conversation.json"
    path.write_text(json.dumps(records))
    return path
